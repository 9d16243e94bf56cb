# src/nldyn/analysis/divergence.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np

from nldyn.config import SolverConfig
from nldyn.runtime.field import VectorField, check_vector_field
from nldyn.runtime.integrate import integrate

__all__ = ["DivergenceResult", "divergence"]


@dataclass
class DivergenceResult:
    t: np.ndarray
    reference: np.ndarray      # (n, n_state)
    perturbed: np.ndarray      # (n, n_state)
    distance: np.ndarray       # |x_ref - x_pert| on the first coordinate
    log10_distance: np.ndarray


def divergence(
    f: VectorField,
    u0: Sequence[float] | np.ndarray,
    params: Any,
    tmax: float,
    *,
    delta: float = 1e-12,
    dt: float = 0.001,
    config: SolverConfig | None = None,
) -> DivergenceResult:
    """
    Separation of two trajectories started ``delta`` apart in the first coordinate.

    A straight segment in ``log10_distance`` against ``t`` has slope
    ``lambda / ln(10)``, with ``lambda`` the leading Lyapunov exponent.
    """
    check_vector_field(f)
    tmax = float(tmax)
    if not tmax > 0.0 or not float(dt) > 0.0:
        raise ValueError("tmax and dt must be positive")
    if float(delta) == 0.0:
        raise ValueError("delta must be non-zero")

    u_ref = np.array(u0, dtype=np.float64, copy=True)
    u_pert = u_ref.copy()
    u_pert[0] += float(delta)

    ts = np.arange(0.0, tmax, float(dt))
    if ts.size == 0 or ts[-1] < tmax:
        ts = np.append(ts, tmax)
    ref = integrate(f, u_ref, params, (0.0, tmax), t_eval=ts, config=config)
    pert = integrate(f, u_pert, params, (0.0, tmax), t_eval=ts, config=config)

    dist = np.abs(ref.y[0] - pert.y[0])
    with np.errstate(divide="ignore"):
        log_dist = np.log10(dist)
    return DivergenceResult(
        t=ts,
        reference=np.asarray(ref.y.T),
        perturbed=np.asarray(pert.y.T),
        distance=dist,
        log10_distance=log_dist,
    )
