"""
Stable and unstable manifolds of the saddle in the unforced double well,
and of the saddle orbit of a forced linear saddle on its Poincare section.
"""
import math

import numpy as np
import matplotlib.pyplot as plt

from nldyn.analysis import flow_manifolds, saddle_manifolds_forced, saddle_orbit


def double_well(u, p, t):
    d = p
    return np.array([u[1], u[0] - u[0] ** 3 - d * u[1]])


def double_well_jac(u, p):
    d = p
    return np.array([[0.0, 1.0], [1.0 - 3.0 * u[0] ** 2, -d]])


def forced_saddle(u, p, t):
    a = p
    return np.array([a * u[0] + math.cos(u[2]), -a * u[1], 1.0])


def forced_saddle_jac(u, p):
    a = p
    return np.array([[a, 0.0, -math.sin(u[2])], [0.0, -a, 0.0], [0.0, 0.0, 0.0]])


lims = (-2.0, 2.0)
flow = flow_manifolds(
    double_well, double_well_jac, [[0.0, 0.0], [1.0, 0.0], [-1.0, 0.0]], 0.25,
    tmax=40.0, xlims=lims, ylims=lims,
)

fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(10, 5))
for saddle in flow.saddles:
    for b in saddle.unstable:
        ax1.plot(b.points[:, 0], b.points[:, 1], "r-", lw=1)
    for b in saddle.stable:
        ax1.plot(b.points[:, 0], b.points[:, 1], "b-", lw=1)
for a in flow.attractors:
    ax1.plot(a[0], a[1], "ko")
ax1.set_xlim(lims)
ax1.set_ylim(lims)
ax1.set_title("double well")

orbit = saddle_orbit(forced_saddle, [0.0, 0.05], 0.1, 2 * math.pi, lam=1.0)
forced = saddle_manifolds_forced(
    forced_saddle, forced_saddle_jac, orbit.point, 0.1, 2 * math.pi, npts=100, xlims=lims, ylims=lims,
)
up = forced.section_points("unstable")
down = forced.section_points("stable")
ax2.plot(up[:, 0], up[:, 1], "r.", ms=2)
ax2.plot(down[:, 0], down[:, 1], "b.", ms=2)
ax2.plot(orbit.point[0], orbit.point[1], "k+")
ax2.set_xlim(lims)
ax2.set_ylim(lims)
ax2.set_title("forced saddle, section")
plt.show()
