"""Analysis namespace for nldyn (basins, forced flows, manifolds, linear systems)."""

import importlib

from nldyn.analysis.divergence import DivergenceResult, divergence
from nldyn.analysis.forced import (
    PoincareSection,
    PoincareZoom,
    SaddleOrbit,
    poincare_section,
    poincare_zoom,
    saddle_orbit,
)
from nldyn.analysis.linear import LinearClassification, classify_linear, linear_field
from nldyn.analysis.manifold import (
    FlowManifolds,
    ForcedManifolds,
    ManifoldBranch,
    SaddleManifolds,
    flow_manifolds,
    saddle_manifolds_forced,
)
from nldyn.analysis.recurrence import RecurrenceResult, recurrence_matrix

# The basin module pulls in numba; load it on first use.
_BASIN_EXPORTS = {
    "MAX_ATTRACTORS",
    "UNCLASSIFIED",
    "BasinResult",
    "attractor_basin",
    "basin_grid",
    "classify_point",
    "classify_states",
    "assemble_raster",
    "clear_corner_label",
}

__all__ = [
    # Basins
    *sorted(_BASIN_EXPORTS),
    # Forced flows
    "PoincareSection",
    "PoincareZoom",
    "SaddleOrbit",
    "poincare_section",
    "poincare_zoom",
    "saddle_orbit",
    "RecurrenceResult",
    "recurrence_matrix",
    # Manifolds
    "ManifoldBranch",
    "SaddleManifolds",
    "FlowManifolds",
    "ForcedManifolds",
    "flow_manifolds",
    "saddle_manifolds_forced",
    # Trajectories
    "DivergenceResult",
    "divergence",
    # Linear systems
    "LinearClassification",
    "classify_linear",
    "linear_field",
]


def __getattr__(name):
    if name in _BASIN_EXPORTS:
        module = importlib.import_module("nldyn.analysis.basin")
        value = getattr(module, name)
        globals()[name] = value
        return value
    raise AttributeError(f"module 'nldyn.analysis' has no attribute '{name}'")
