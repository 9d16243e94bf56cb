"""
Basins of the stroboscopic map of the forced, damped Duffing oscillator.

The forcing phase is carried as a third state variable, so the grid is built
with ``n_state=3`` and every initial condition starts at phase 0.
"""
import math

import numpy as np

from nldyn.analysis import attractor_basin, poincare_section
from nldyn.config import SolverConfig
from nldyn.plot import export, basin_plot

PERIOD = 2 * math.pi
PARAMS = (0.15, -1.0, 1.0, 0.1)  # damping, alpha, beta, forcing amplitude


def forced_duffing(u, p, t):
    delta, alpha, beta, gamma = p
    x, y, phi = u
    return np.array([y, -delta * y - alpha * x - beta * x**3 + gamma * math.cos(phi), 1.0])


# Locate the two period-1 orbits by sampling the section from either well.
cfg = SolverConfig(method="DOP853", rtol=1e-8, atol=1e-10)
attractors = []
for x0 in (1.0, -1.0):
    sec = poincare_section(forced_duffing, [x0, 0.0, 0.0], PARAMS, PERIOD, tcycles=200, ncycles=1, config=cfg)
    attractors.append(sec.points[-1, :2])
    print(f"section point from x0={x0:+.0f}: {sec.points[-1, :2]}")

res = attractor_basin(
    forced_duffing,
    PARAMS,
    attractors,
    maxdist=0.05,
    delta=0.05,
    tmax=100 * PERIOD,
    xlims=(-2.0, 2.0),
    ylims=(-2.0, 2.0),
    n_state=3,
    config=cfg,
)

ax = basin_plot(res, title="Forced Duffing: period-1 basins")
export.savefig(ax, "forced_duffing_basins.png")
export.show()
