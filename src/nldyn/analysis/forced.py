# src/nldyn/analysis/forced.py
"""
Helpers for periodically forced planar flows.

The forced flows handled here are autonomous 3D systems ``(x, y, phi)`` or
explicitly time-dependent 2D systems. Sampling the flow once per forcing
period gives the stroboscopic (Poincaré) map of the plane.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence
import warnings

import numpy as np

from nldyn.config import SolverConfig
from nldyn.errors import IntegrationError
from nldyn.runtime.field import VectorField, check_vector_field
from nldyn.runtime.integrate import integrate

__all__ = [
    "PoincareSection",
    "PoincareZoom",
    "SaddleOrbit",
    "poincare_section",
    "poincare_zoom",
    "saddle_orbit",
]

# Horizon cap for slow forcing (period > _LONG_PERIOD).
_LONG_PERIOD = 1000.0
_SECTION_TMAX_CAP = 1e5

# Tight tolerances for the stroboscopic map used by saddle_orbit.
_ORBIT_CONFIG = SolverConfig(method="DOP853", rtol=1e-12, atol=1e-12)


@dataclass
class PoincareSection:
    t: np.ndarray         # (m,) sample times, multiples of the period
    points: np.ndarray    # (m, n_state)
    u0: np.ndarray        # state after the transient


@dataclass
class PoincareZoom:
    points: np.ndarray    # (m, 2) section points inside the window
    iterations: int
    visited: int          # section points computed, inside or not


@dataclass
class SaddleOrbit:
    point: np.ndarray     # (2,) fixed point of the stroboscopic map
    converged: bool
    iterations: int
    transform_index: int  # index into the stabilising transforms, -1 if none converged


def _check_period(period: float) -> float:
    val = float(period)
    if not val > 0.0:
        raise ValueError("period must be positive")
    return val


def _skip_transient(
    f: VectorField,
    u0: np.ndarray,
    params: Any,
    span: float,
    config: SolverConfig | None,
) -> np.ndarray:
    if span <= 0.0:
        return u0
    sol = integrate(f, u0, params, (0.0, span), t_eval=(span,), config=config)
    return np.asarray(sol.y[:, -1], dtype=np.float64)


def _section_times(period: float, ncycles: int, tmax: float) -> np.ndarray:
    t = period * np.arange(1, int(ncycles) + 1, dtype=np.float64)
    return t[t <= tmax * (1.0 + 1e-12)]


def poincare_section(
    f: VectorField,
    u0: Sequence[float] | np.ndarray,
    params: Any,
    period: float,
    *,
    tcycles: int = 0,
    ncycles: int = 10,
    config: SolverConfig | None = None,
) -> PoincareSection:
    """
    Stroboscopic section of a forced flow.

    The first ``tcycles`` periods are discarded as transient; the flow then
    restarts at t=0 from the end of the transient and is sampled at
    ``t = k*period`` for ``k = 1..ncycles``. For slow forcing
    (``period > 1000``) the horizon is capped at 1e5 and later samples are
    dropped.
    """
    check_vector_field(f)
    period = _check_period(period)
    if int(tcycles) < 0 or int(ncycles) <= 0:
        raise ValueError("tcycles must be non-negative and ncycles positive")

    start = _skip_transient(f, np.asarray(u0, dtype=np.float64), params, tcycles * period, config)
    tmax = ncycles * period
    if period > _LONG_PERIOD:
        tmax = min(tmax, _SECTION_TMAX_CAP)
    t_save = _section_times(period, ncycles, tmax)
    if t_save.size == 0:
        return PoincareSection(t=t_save, points=np.zeros((0, start.size)), u0=start)

    sol = integrate(f, start, params, (0.0, float(t_save[-1])), t_eval=t_save, config=config)
    return PoincareSection(t=np.asarray(sol.t), points=np.asarray(sol.y.T), u0=start)


def _inbox(points: np.ndarray, xlims: Sequence[float], ylims: Sequence[float]) -> np.ndarray:
    x = points[:, 0]
    y = points[:, 1]
    return (xlims[0] < x) & (x < xlims[1]) & (ylims[0] < y) & (y < ylims[1])


def poincare_zoom(
    f: VectorField,
    u0: Sequence[float] | np.ndarray,
    params: Any,
    period: float,
    *,
    xlims: Sequence[float] = (-1.0, 1.0),
    ylims: Sequence[float] = (-1.0, 1.0),
    npts: int = 1000,
    maxiter: int = 1000,
    tcycles: int = 30,
    ncycles: int = 1000,
    config: SolverConfig | None = None,
) -> PoincareZoom:
    """
    Collect section points inside a window of the plane.

    Sections of ``ncycles`` periods are computed back to back, each starting
    from the last point of the previous one, until at least ``npts`` points
    fell strictly inside the window or ``maxiter`` sections were computed.
    """
    check_vector_field(f)
    period = _check_period(period)
    if int(npts) <= 0 or int(maxiter) <= 0 or int(ncycles) <= 0:
        raise ValueError("npts, maxiter and ncycles must be positive")

    state = _skip_transient(f, np.asarray(u0, dtype=np.float64), params, tcycles * period, config)
    t_save = period * np.arange(1, int(ncycles) + 1, dtype=np.float64)

    kept: list[np.ndarray] = []
    kpts = 0
    kiter = 0
    visited = 0
    while kpts < npts and kiter < maxiter:
        sol = integrate(f, state, params, (0.0, float(t_save[-1])), t_eval=t_save, config=config)
        chunk = np.asarray(sol.y.T)
        mask = _inbox(chunk, xlims, ylims)
        kept.append(chunk[mask, :2])
        kpts += int(np.count_nonzero(mask))
        visited += chunk.shape[0]
        state = chunk[-1]
        kiter += 1

    if kpts < npts:
        warnings.warn(
            f"poincare_zoom collected {kpts} of {npts} points in {kiter} iterations.",
            RuntimeWarning,
            stacklevel=2,
        )
    points = np.concatenate(kept, axis=0) if kept else np.zeros((0, 2))
    return PoincareZoom(points=points, iterations=kiter, visited=visited)


def _stroboscopic_map(
    f: VectorField,
    u: np.ndarray,
    params: Any,
    period: float,
    n_state: int,
    config: SolverConfig,
) -> np.ndarray:
    y0 = np.zeros((n_state,), dtype=np.float64)
    y0[:2] = u
    sol = integrate(f, y0, params, (0.0, period), t_eval=(period,), config=config)
    return np.asarray(sol.y[:2, -1], dtype=np.float64)


def saddle_orbit(
    f: VectorField,
    u0: Sequence[float] | np.ndarray,
    params: Any,
    period: float,
    *,
    lam: float = 0.001,
    maxiter: int = 10000,
    disttol: float = 1e-9,
    inftol: float = 10.0,
    n_state: int = 3,
    config: SolverConfig | None = None,
) -> SaddleOrbit:
    """
    Locate a periodic orbit of a forced planar flow, stable or not.

    Applies the Schmelcher-Diakonos transformation to the stroboscopic map
    ``P``: ``u <- u + L (P(u) - u)`` with ``L`` drawn from
    ``lam * {diag(1, 1), diag(1, -1), diag(-1, 1)}``. One of these turns any
    hyperbolic fixed point of ``P`` into an attracting one for small ``lam``.
    A transform is abandoned once ``|u| > inftol``; the first transform whose
    step shrinks below ``disttol`` gives the result.

    ``P`` starts each period from ``[u[0], u[1], 0, ...]`` with length
    ``n_state`` and integrates with DOP853 at ``rtol = atol = 1e-12`` unless
    ``config`` is given.
    """
    check_vector_field(f)
    period = _check_period(period)
    if int(n_state) < 2:
        raise ValueError("n_state must be at least 2")
    start = np.asarray(u0, dtype=np.float64).reshape(-1)[:2]
    if start.size != 2:
        raise ValueError("u0 must provide at least two coordinates")
    cfg = config or _ORBIT_CONFIG

    transforms = (
        float(lam) * np.array([[1.0, 0.0], [0.0, 1.0]]),
        float(lam) * np.array([[1.0, 0.0], [0.0, -1.0]]),
        float(lam) * np.array([[-1.0, 0.0], [0.0, 1.0]]),
    )
    total = 0
    for k, L in enumerate(transforms):
        u = start.copy()
        for _ in range(int(maxiter)):
            total += 1
            try:
                image = _stroboscopic_map(f, u, params, period, int(n_state), cfg)
            except IntegrationError:
                break
            u_next = u + L @ (image - u)
            if np.linalg.norm(u_next) > inftol:
                break
            if np.linalg.norm(u - u_next) < disttol:
                return SaddleOrbit(point=u_next, converged=True, iterations=total, transform_index=k)
            u = u_next

    return SaddleOrbit(point=start.copy(), converged=False, iterations=total, transform_index=-1)
