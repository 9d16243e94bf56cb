# src/nldyn/analysis/recurrence.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np
from scipy.spatial.distance import cdist

from nldyn.config import SolverConfig
from nldyn.runtime.field import VectorField, check_vector_field
from nldyn.runtime.integrate import integrate

__all__ = ["RecurrenceResult", "recurrence_matrix"]

_LONG_PERIOD = 1000.0
_RECURRENCE_TMAX_CAP = 1e4


@dataclass
class RecurrenceResult:
    t: np.ndarray          # (npts,)
    states: np.ndarray     # (npts, n_state)
    distance: np.ndarray   # (npts, npts) raw distances in (x, y, phase)
    levels: np.ndarray     # (npts, npts) quantised, in [0, steps]


def recurrence_matrix(
    f: VectorField,
    u0: Sequence[float] | np.ndarray,
    params: Any,
    period: float,
    *,
    dd: float = 0.002,
    steps: int = 10,
    tcycles: int = 0,
    npts: int = 300,
    ncycles: int = 10,
    config: SolverConfig | None = None,
) -> RecurrenceResult:
    """
    Pairwise distances between samples of one trajectory of a forced flow.

    Samples are embedded as ``(x, y, t mod period)``. Distances are binned as
    ``floor(d / dd) / steps`` and clipped at ``steps``, so nearby returns show
    up as low levels.

    The third embedding coordinate is the forcing phase ``t mod period``. Older
    notebook versions of this plot used ``y mod period`` there, so their
    matrices are not comparable entry by entry with this one.
    """
    check_vector_field(f)
    period = float(period)
    if not period > 0.0:
        raise ValueError("period must be positive")
    if not float(dd) > 0.0 or int(steps) <= 0 or int(npts) < 2:
        raise ValueError("dd and steps must be positive and npts at least 2")

    start = np.asarray(u0, dtype=np.float64)
    if tcycles > 0:
        span = tcycles * period
        trans = integrate(f, start, params, (0.0, span), t_eval=(span,), config=config)
        start = np.asarray(trans.y[:, -1], dtype=np.float64)

    tmax = ncycles * period
    if period > _LONG_PERIOD:
        tmax = min(tmax, _RECURRENCE_TMAX_CAP)
    ts = np.linspace(0.0, tmax, int(npts))
    sol = integrate(f, start, params, (0.0, tmax), t_eval=ts, config=config)
    states = np.asarray(sol.y.T)

    embed = np.column_stack([states[:, 0], states[:, 1], np.mod(ts, period)])
    dist = cdist(embed, embed, metric="euclidean")
    levels = np.floor(dist / float(dd)) / float(steps)
    levels[levels > steps] = steps
    return RecurrenceResult(t=ts, states=states, distance=dist, levels=levels)
