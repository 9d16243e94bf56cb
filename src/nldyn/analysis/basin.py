# src/nldyn/analysis/basin.py
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Literal, Optional, Sequence

import numpy as np
from numba import njit, prange

from nldyn.config import SolverConfig
from nldyn.errors import AttractorLimitError
from nldyn.runtime.field import VectorField, check_vector_field
from nldyn.runtime.integrate import integrate_batch
from nldyn.runtime.status import OK

__all__ = [
    "MAX_ATTRACTORS",
    "UNCLASSIFIED",
    "BasinResult",
    "attractor_basin",
    "basin_grid",
    "classify_point",
    "classify_states",
    "assemble_raster",
    "clear_corner_label",
]

# Labels 1..MAX_ATTRACTORS plus UNCLASSIFIED fill the 8-colour palette.
MAX_ATTRACTORS = 7
UNCLASSIFIED = 0

# Tolerance for the closed-range grid count (xmin:delta:xmax).
_GRID_EPS = 1e-10


@dataclass
class BasinResult:
    labels: np.ndarray        # (nx, ny) int8, labels[i, j] <-> (x[i], y[j])
    x: np.ndarray             # (nx,)
    y: np.ndarray             # (ny,)
    attractors: np.ndarray    # (k, 2)
    maxdist: float
    status: np.ndarray        # (nx, ny) int32 integration Status codes
    meta: dict[str, object] = field(default_factory=dict)

    @property
    def shape(self) -> tuple[int, int]:
        return tuple(self.labels.shape)  # type: ignore[return-value]

    def fraction(self, label: int) -> float:
        """Share of grid points carrying ``label``."""
        if self.labels.size == 0:
            return 0.0
        return float(np.count_nonzero(self.labels == label)) / float(self.labels.size)


def _axis_points(name: str, lims: Sequence[float], delta: float) -> np.ndarray:
    if len(lims) != 2:
        raise ValueError(f"{name} must be a (min, max) pair")
    lo, hi = float(lims[0]), float(lims[1])
    if not (math.isfinite(lo) and math.isfinite(hi)):
        raise ValueError(f"{name} bounds must be finite")
    if hi < lo:
        raise ValueError(f"{name} must satisfy min <= max (got {lo}, {hi})")
    n = int(math.floor((hi - lo) / delta + _GRID_EPS)) + 1
    return lo + delta * np.arange(n, dtype=np.float64)


def basin_grid(
    xlims: Sequence[float],
    ylims: Sequence[float],
    delta: float,
    *,
    n_state: int = 2,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Sample the region on a regular lattice with spacing ``delta``.

    Each axis is the closed range ``min, min+delta, ...`` that never exceeds
    ``max``; when the span is not a multiple of ``delta`` the last point falls
    short of ``max``. Returns ``(x, y, ic)`` where row ``i*ny + j`` of ``ic``
    is ``[x[i], y[j], 0, ..., 0]`` with length ``n_state``.
    """
    delta = float(delta)
    if not (math.isfinite(delta) and delta > 0.0):
        raise ValueError("delta must be a positive finite number")
    if int(n_state) < 2:
        raise ValueError("n_state must be at least 2")
    x = _axis_points("xlims", xlims, delta)
    y = _axis_points("ylims", ylims, delta)
    nx, ny = x.size, y.size
    ic = np.zeros((nx * ny, int(n_state)), dtype=np.float64)
    ic[:, 0] = np.repeat(x, ny)
    ic[:, 1] = np.tile(y, nx)
    return x, y, ic


def _coerce_attractors(attractors: Sequence[Sequence[float]] | np.ndarray) -> np.ndarray:
    arr = np.asarray(attractors, dtype=np.float64)
    if arr.size == 0:
        return np.zeros((0, 2), dtype=np.float64)
    if arr.ndim == 2 and len(arr) > MAX_ATTRACTORS:
        raise AttractorLimitError(len(arr), MAX_ATTRACTORS)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"attractors must be a sequence of 2D points, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ValueError("attractor coordinates must be finite")
    return np.ascontiguousarray(arr)


def _check_maxdist(maxdist: float) -> float:
    val = float(maxdist)
    if not (math.isfinite(val) and val > 0.0):
        raise ValueError("maxdist must be a positive finite number")
    return val


@njit(parallel=True, cache=False)
def _first_within_kernel(
    points: np.ndarray,
    ok: np.ndarray,
    attractors: np.ndarray,
    maxdist: float,
    labels: np.ndarray,
) -> None:
    n = points.shape[0]
    k = attractors.shape[0]
    for i in prange(n):
        label = 0
        if ok[i]:
            for m in range(k):
                dx = points[i, 0] - attractors[m, 0]
                dy = points[i, 1] - attractors[m, 1]
                # NaN distances compare False and leave the point unclassified.
                if math.sqrt(dx * dx + dy * dy) <= maxdist:
                    label = m + 1
                    break
        labels[i] = label


def classify_states(
    states: np.ndarray,
    attractors: Sequence[Sequence[float]] | np.ndarray,
    maxdist: float,
    *,
    status: np.ndarray | None = None,
) -> np.ndarray:
    """
    Label terminal states by the first attractor within ``maxdist``.

    Only the first two coordinates of each state are compared. Attractors are
    tested in list order and the first one within tolerance wins, even when a
    later one is closer. Rows with a non-OK ``status`` or non-finite
    coordinates get label 0.
    """
    att = _coerce_attractors(attractors)
    tol = _check_maxdist(maxdist)
    pts = np.atleast_2d(np.asarray(states, dtype=np.float64))
    if pts.ndim != 2 or pts.shape[1] < 2:
        raise ValueError(f"states must have shape (n, >=2), got {pts.shape}")
    n = pts.shape[0]
    ok = np.all(np.isfinite(pts[:, :2]), axis=1)
    if status is not None:
        status_arr = np.asarray(status).reshape(-1)
        if status_arr.shape[0] != n:
            raise ValueError("status must have one entry per state")
        ok &= status_arr == OK
    labels = np.zeros((n,), dtype=np.int64)
    if n:
        _first_within_kernel(np.ascontiguousarray(pts[:, :2]), ok, att, tol, labels)
    return labels.astype(np.int8)


def classify_point(
    state: Sequence[float] | np.ndarray,
    attractors: Sequence[Sequence[float]] | np.ndarray,
    maxdist: float,
) -> int:
    """Label of a single terminal state (see :func:`classify_states`)."""
    row = np.asarray(state, dtype=np.float64).reshape(1, -1)
    return int(classify_states(row, attractors, maxdist)[0])


def clear_corner_label(raster: np.ndarray) -> np.ndarray:
    """
    Force ``raster[0, 0]`` to the unclassified label, in place.

    Keeps label 0 present in every raster so a contour-based colour scale
    stays anchored on the background colour.
    """
    if raster.size:
        raster[0, 0] = UNCLASSIFIED
    return raster


def assemble_raster(
    labels: np.ndarray,
    nx: int,
    ny: int,
    *,
    clear_corner: bool = True,
) -> np.ndarray:
    """Reshape flat labels (x outer, y inner) into an ``(nx, ny)`` raster."""
    flat = np.asarray(labels).reshape(-1)
    if flat.shape[0] != int(nx) * int(ny):
        raise ValueError(f"expected {int(nx) * int(ny)} labels for a {nx}x{ny} grid, got {flat.shape[0]}")
    raster = flat.astype(np.int8, copy=True).reshape(int(nx), int(ny))
    if clear_corner:
        clear_corner_label(raster)
    return raster


def attractor_basin(
    f: VectorField,
    params: Any,
    attractors: Sequence[Sequence[float]] | np.ndarray,
    maxdist: float,
    *,
    delta: float = 0.1,
    tmax: float = 1000.0,
    xlims: Sequence[float] = (-1.0, 1.0),
    ylims: Sequence[float] = (-1.0, 1.0),
    n_state: int = 2,
    clear_corner: bool = True,
    config: SolverConfig | None = None,
    parallel_mode: Optional[Literal["auto", "threads", "process", "none"]] = None,
    max_workers: Optional[int] = None,
) -> BasinResult:
    """
    Classify a rectangular region of initial conditions by the attractor they reach.

    Every grid point is integrated to ``tmax``; its terminal state (first two
    coordinates) is compared with ``attractors`` in order and takes the 1-based
    index of the first one within ``maxdist``. Points that reach none of them,
    or whose integration fails, keep label 0.

    Parameters
    ----------
    f : callable
        Vector field ``f(state, params, t) -> derivative``.
    params : object
        Passed to ``f`` unchanged.
    attractors : sequence of (x, y)
        At most 7 reference points. Order sets the labels and breaks ties.
    maxdist : float
        Distance tolerance for a terminal state to count as converged.
    delta : float, default=0.1
        Grid spacing in both axes.
    tmax : float, default=1000.0
        Integration horizon.
    xlims, ylims : (min, max)
        Region bounds. See :func:`basin_grid` for the stepping rule.
    n_state : int, default=2
        State dimension. Coordinates beyond the first two start at 0 (use 3 for
        a forced flow whose third variable is the forcing phase).
    clear_corner : bool, default=True
        Force ``labels[0, 0]`` to 0 after classification.
    config : SolverConfig | None
        Solver method, tolerances and pool defaults.
    parallel_mode, max_workers
        Override the pool settings of ``config`` for this call.

    Returns
    -------
    BasinResult
        ``labels`` is the ``(nx, ny)`` int8 raster with ``labels[i, j]`` for
        grid point ``(x[i], y[j])``.

    Raises
    ------
    AttractorLimitError
        More than 7 attractors; raised before any integration.
    VectorFieldSignatureError
        ``f`` cannot be called as ``f(state, params, t)``.
    """
    att = _coerce_attractors(attractors)
    tol = _check_maxdist(maxdist)
    check_vector_field(f)
    if not (math.isfinite(float(tmax)) and float(tmax) > 0.0):
        raise ValueError("tmax must be a positive finite number")

    x, y, ic = basin_grid(xlims, ylims, delta, n_state=n_state)
    nx, ny = x.size, y.size

    cfg = (config or SolverConfig()).with_overrides(
        parallel_mode=parallel_mode,
        max_workers=max_workers,
    )
    batch = integrate_batch(f, ic, params, float(tmax), config=cfg)

    flat = classify_states(batch.states, att, tol, status=batch.status)
    labels = assemble_raster(flat, nx, ny, clear_corner=clear_corner)
    status = batch.status.reshape(nx, ny)

    return BasinResult(
        labels=labels,
        x=x,
        y=y,
        attractors=att,
        maxdist=tol,
        status=status,
        meta={
            "tmax": float(tmax),
            "delta": float(delta),
            "n_state": int(n_state),
            "method": cfg.method,
            "parallel_mode": cfg.parallel_mode,
            "max_workers": cfg.resolved_workers(),
            "n_failed": batch.n_failed,
            "clear_corner": bool(clear_corner),
        },
    )
