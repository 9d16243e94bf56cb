"""
Find the unstable period-1 orbit of a forced saddle with the
Schmelcher-Diakonos iteration and compare it with the exact orbit.
"""
import math

import numpy as np

from nldyn.analysis import saddle_orbit


def forced_saddle(u, p, t):
    a = p
    return np.array([a * u[0] + math.cos(u[2]), -a * u[1], 1.0])


a = 0.1
res = saddle_orbit(forced_saddle, [0.0, 0.05], a, 2 * math.pi, lam=1.0)
exact = np.array([-a / (1.0 + a * a), 0.0])

print(f"converged: {res.converged} after {res.iterations} iterations (transform {res.transform_index})")
print(f"orbit point: {res.point}, exact: {exact}, error: {np.linalg.norm(res.point - exact):.2e}")
