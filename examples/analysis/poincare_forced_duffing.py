"""
Stroboscopic section, a zoomed window of it and a recurrence plot for the
chaotic forced Duffing oscillator.
"""
import math

import matplotlib.pyplot as plt
import numpy as np

from nldyn.analysis import poincare_section, poincare_zoom, recurrence_matrix
from nldyn.plot import export

PERIOD = 2 * math.pi / 1.2
PARAMS = (0.3, -1.0, 1.0, 0.5, 1.2)  # damping, alpha, beta, amplitude, frequency


def forced_duffing(u, p, t):
    delta, alpha, beta, gamma, omega = p
    x, y, phi = u
    return np.array([y, -delta * y - alpha * x - beta * x**3 + gamma * math.cos(phi), omega])


u0 = [0.1, 0.0, 0.0]
sec = poincare_section(forced_duffing, u0, PARAMS, PERIOD, tcycles=50, ncycles=3000)
zoom = poincare_zoom(
    forced_duffing, u0, PARAMS, PERIOD,
    xlims=(0.8, 1.2), ylims=(-0.2, 0.2), npts=500, maxiter=20, ncycles=2000,
)
rec = recurrence_matrix(forced_duffing, sec.u0, PARAMS, PERIOD, dd=0.05, npts=400, ncycles=40)

fig, axes = plt.subplots(1, 3, figsize=(14, 4.5), layout="constrained")
axes[0].plot(sec.points[:, 0], sec.points[:, 1], ",k")
axes[0].set_title("Poincare section")
axes[1].plot(zoom.points[:, 0], zoom.points[:, 1], ".k", markersize=1)
axes[1].set_title(f"zoom ({zoom.points.shape[0]} of {zoom.visited} points)")
axes[2].imshow(rec.levels, origin="lower", cmap="gray")
axes[2].set_title("recurrence levels")
for ax in axes[:2]:
    ax.set_xlabel("x")
    ax.set_ylabel("y")

export.show()
