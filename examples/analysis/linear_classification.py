"""
Classify a few planar linear systems on the trace-determinant plane and draw
the basins of the stable ones (a single attractor at the origin).
"""
import numpy as np

from nldyn.analysis import attractor_basin, classify_linear, divergence, linear_field
from nldyn.plot import export, basin_plot

systems = {
    "saddle": [[1.0, 0.0], [0.0, -1.0]],
    "stable node": [[-1.0, 0.0], [0.0, -2.0]],
    "stable focus": [[-0.2, 1.0], [-1.0, -0.2]],
    "center": [[0.0, 1.0], [-1.0, 0.0]],
}

for name, A in systems.items():
    res = classify_linear(A)
    print(f"{name:>12}: tr={res.trace:+.2f} det={res.det:+.2f} -> {res.kind}")

sep = divergence(linear_field(systems["saddle"]), [0.0, 1.0], None, 5.0, delta=1e-9)
rate = np.polyfit(sep.t, sep.log10_distance, 1)[0] * np.log(10.0)
print(f"separation rate for the saddle: {rate:.4f} (eigenvalue 1)")

# Only the stable y direction reaches the origin for the saddle.
basin = attractor_basin(linear_field(systems["saddle"]), None, [[0.0, 0.0]], 0.1, delta=0.05, tmax=10.0)
basin_plot(basin, title="saddle: points reaching the origin")
export.show()
