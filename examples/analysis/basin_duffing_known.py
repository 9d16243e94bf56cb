"""
Demonstration of basin of attraction analysis for the unforced Duffing
oscillator with two fixed point attractors at +1 and -1.
"""
import numpy as np

from nldyn.analysis import attractor_basin
from nldyn.plot import export, basin_plot


def duffing(u, p, t):
    delta, alpha, beta = p
    x, y = u
    return np.array([y, -delta * y - alpha * x - beta * x**3])


res = attractor_basin(
    duffing,
    (0.02, -0.5, 0.5),
    # Order matters: a state within maxdist of both is labelled with the first.
    attractors=[[1.0, 0.0], [-1.0, 0.0]],
    maxdist=0.1,
    delta=0.02,
    tmax=600.0,
    xlims=(-1.5, 1.5),
    ylims=(-1.5, 1.5),
    parallel_mode="threads",
)

print(f"grid: {res.shape[0]} x {res.shape[1]}, failed: {res.meta['n_failed']}")
for label in (0, 1, 2):
    print(f"label {label}: {100.0 * res.fraction(label):.1f}%")

basin_plot(res, title="Duffing basins")
export.show()
