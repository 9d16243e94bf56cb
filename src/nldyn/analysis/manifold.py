# src/nldyn/analysis/manifold.py
"""
Stable and unstable manifolds of saddles.

Both entry points take the Jacobian as a callable ``jac(state, params)``, so
no differentiation happens here. Each manifold branch starts a small offset
``delta`` away from the saddle along an eigenvector (on both sides) and is
integrated forward for unstable directions and backward for stable ones. A
branch stops early once it leaves the disc ``x**2 + y**2 <= R**2`` where ``R``
is the larger side of the plotting window.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

import numpy as np

from nldyn.config import SolverConfig
from nldyn.runtime.field import VectorField, check_vector_field
from nldyn.runtime.integrate import integrate

__all__ = [
    "ManifoldBranch",
    "SaddleManifolds",
    "FlowManifolds",
    "ForcedManifolds",
    "flow_manifolds",
    "saddle_manifolds_forced",
]

Jacobian = Callable[[np.ndarray, Any], Any]

# Tight tolerances for the periodic orbit that seeds forced manifolds.
_ORBIT_CONFIG = SolverConfig(method="DOP853", rtol=1e-12, atol=1e-12)


@dataclass
class ManifoldBranch:
    kind: str             # "stable" | "unstable" | "repeller"
    sign: int             # +1 / -1 side of the eigenvector
    start: np.ndarray     # seed state, saddle + sign * delta * v
    t: np.ndarray         # (m,)
    points: np.ndarray    # (m, n_state)
    escaped: bool         # stopped at the escape radius
    t0: float = 0.0


@dataclass
class SaddleManifolds:
    fixed_point: np.ndarray
    eigenvalues: np.ndarray
    eigenvectors: np.ndarray   # columns, as returned by numpy.linalg.eig
    branches: list[ManifoldBranch] = field(default_factory=list)

    @property
    def unstable(self) -> list[ManifoldBranch]:
        return [b for b in self.branches if b.kind == "unstable"]

    @property
    def stable(self) -> list[ManifoldBranch]:
        return [b for b in self.branches if b.kind == "stable"]


@dataclass
class FlowManifolds:
    saddles: list[SaddleManifolds]
    attractors: list[np.ndarray]       # det >= 0, tr < 0
    repellers: list[np.ndarray]        # det >= 0, tr >= 0
    repeller_orbits: list[ManifoldBranch] = field(default_factory=list)
    escape_radius: float = 0.0


@dataclass
class ForcedManifolds:
    orbit_t: np.ndarray        # (npts+1,) seed times over one period
    orbit: np.ndarray          # (npts+1, n_state) saddle orbit at those times
    branches: list[ManifoldBranch]
    escape_radius: float = 0.0

    def section_points(self, kind: str) -> np.ndarray:
        """Stroboscopic samples (first two coordinates) of all ``kind`` branches."""
        chunks = [b.points[:, :2] for b in self.branches if b.kind == kind]
        if not chunks:
            return np.zeros((0, 2))
        return np.concatenate(chunks, axis=0)


class _EscapeRadius:
    """Terminal ``solve_ivp`` event: crossing outward through ``|(x, y)| = radius``."""

    terminal = True
    direction = 1.0

    def __init__(self, radius: float):
        self.r2 = float(radius) * float(radius)

    def __call__(self, t: float, y: np.ndarray) -> float:
        return float(y[0] * y[0] + y[1] * y[1] - self.r2)


def _escape_radius(xlims: Sequence[float], ylims: Sequence[float]) -> float:
    xrange = float(xlims[1]) - float(xlims[0])
    yrange = float(ylims[1]) - float(ylims[0])
    if not (xrange > 0.0 and yrange > 0.0):
        raise ValueError("xlims and ylims must satisfy min < max")
    return max(xrange, yrange)


def _jacobian(jac: Jacobian, u: np.ndarray, params: Any, n: int) -> np.ndarray:
    J = np.asarray(jac(u, params), dtype=np.float64)
    if J.shape != (n, n):
        raise ValueError(f"jac must return a ({n}, {n}) matrix, got shape {J.shape}")
    if not np.all(np.isfinite(J)):
        raise ValueError("jac returned non-finite entries")
    return J


def _branch(
    f: VectorField,
    start: np.ndarray,
    params: Any,
    t_span: tuple[float, float],
    event: _EscapeRadius,
    *,
    kind: str,
    sign: int,
    t_eval: np.ndarray | None,
    config: SolverConfig | None,
) -> ManifoldBranch:
    sol = integrate(f, start, params, t_span, t_eval=t_eval, events=event, config=config)
    return ManifoldBranch(
        kind=kind,
        sign=sign,
        start=start,
        t=np.asarray(sol.t),
        points=np.asarray(sol.y.T),
        escaped=sol.status == 1,
        t0=float(t_span[0]),
    )


def flow_manifolds(
    f: VectorField,
    jac: Jacobian,
    fixed_points: Sequence[Sequence[float]] | np.ndarray,
    params: Any,
    *,
    tmax: float = 30.0,
    delta: float = 0.001,
    repeller_orbits: bool = False,
    xlims: Sequence[float] = (-1.0, 1.0),
    ylims: Sequence[float] = (-1.0, 1.0),
    config: SolverConfig | None = None,
) -> FlowManifolds:
    """
    Manifolds of the saddles among the fixed points of a planar flow.

    Fixed points with ``det J < 0`` are saddles and get four branches: the
    unstable direction integrated over ``[0, tmax]`` and the stable one over
    ``[0, -tmax]``, each from both sides. The others are sorted into
    attractors (``tr J < 0``) and repellers. With ``repeller_orbits`` one
    trajectory from ``u + (delta, delta)`` is integrated over ``[0, 3*tmax]``
    for every repeller.

    Parameters
    ----------
    f : callable
        Vector field ``f(state, params, t)``.
    jac : callable
        ``jac(state, params)`` returning the 2x2 Jacobian of ``f``.
    fixed_points : sequence of (x, y)
        Equilibria to examine. They are not refined.
    """
    check_vector_field(f)
    if not callable(jac):
        raise TypeError("jac must be callable")
    tmax = float(tmax)
    if not tmax > 0.0 or not float(delta) > 0.0:
        raise ValueError("tmax and delta must be positive")
    radius = _escape_radius(xlims, ylims)
    event = _EscapeRadius(radius)

    pts = np.asarray(fixed_points, dtype=np.float64)
    if pts.size == 0:
        pts = np.zeros((0, 2))
    if pts.ndim != 2 or pts.shape[1] != 2:
        raise ValueError(f"fixed_points must be a sequence of 2D points, got shape {pts.shape}")

    out = FlowManifolds(saddles=[], attractors=[], repellers=[], escape_radius=radius)
    for u0 in pts:
        J = _jacobian(jac, u0, params, 2)
        if np.linalg.det(J) < 0.0:
            w, V = np.linalg.eig(J)
            saddle = SaddleManifolds(fixed_point=u0.copy(), eigenvalues=w, eigenvectors=V)
            for n in range(2):
                v = np.real(V[:, n])
                if np.real(w[n]) > 0.0:
                    kind, span = "unstable", (0.0, tmax)
                else:
                    kind, span = "stable", (0.0, -tmax)
                for sign in (1, -1):
                    start = u0 + sign * float(delta) * v
                    saddle.branches.append(
                        _branch(f, start, params, span, event, kind=kind, sign=sign, t_eval=None, config=config)
                    )
            out.saddles.append(saddle)
        elif np.trace(J) < 0.0:
            out.attractors.append(u0.copy())
        else:
            out.repellers.append(u0.copy())
            if repeller_orbits:
                start = u0 + float(delta)
                out.repeller_orbits.append(
                    _branch(
                        f, start, params, (0.0, 3.0 * tmax), event,
                        kind="repeller", sign=1, t_eval=None, config=config,
                    )
                )
    return out


def saddle_manifolds_forced(
    f: VectorField,
    jac: Jacobian,
    us: Sequence[float] | np.ndarray,
    params: Any,
    period: float,
    *,
    ncycles: tuple[int, int] = (10, 3),
    npts: int = 300,
    delta: float = 0.01,
    xlims: Sequence[float] = (-1.0, 1.0),
    ylims: Sequence[float] = (-1.0, 1.0),
    n_state: int = 3,
    eig_tol: float = 1e-10,
    config: SolverConfig | None = None,
) -> ForcedManifolds:
    """
    Stroboscopic traces of the manifolds of a saddle periodic orbit.

    ``us`` is the orbit's point on the section (e.g. from :func:`saddle_orbit`).
    The orbit is sampled at ``npts + 1`` times over one period; at each sample
    ``jac`` is evaluated and every real eigen-direction is seeded on both
    sides. Unstable branches run forward to ``ncycles[0] * period`` and are
    recorded at ``t = period, 2*period, ...``; stable branches run backward to
    ``-ncycles[1] * period`` and are recorded at ``t = 0, -period, ...``.
    Directions whose eigenvalue is complex or within ``eig_tol`` of zero
    (such as the phase direction) are skipped.
    """
    check_vector_field(f)
    if not callable(jac):
        raise TypeError("jac must be callable")
    period = float(period)
    if not period > 0.0:
        raise ValueError("period must be positive")
    n_fwd, n_bwd = (int(c) for c in ncycles)
    if n_fwd < 1 or n_bwd < 1 or int(npts) < 1 or not float(delta) > 0.0:
        raise ValueError("ncycles, npts and delta must be positive")
    if int(n_state) < 2:
        raise ValueError("n_state must be at least 2")
    radius = _escape_radius(xlims, ylims)
    event = _EscapeRadius(radius)

    seed = np.zeros((int(n_state),), dtype=np.float64)
    seed[:2] = np.asarray(us, dtype=np.float64).reshape(-1)[:2]
    orbit_t = np.linspace(0.0, period, int(npts) + 1)
    orbit_sol = integrate(f, seed, params, (0.0, period), t_eval=orbit_t, config=_ORBIT_CONFIG)
    orbit = np.asarray(orbit_sol.y.T)

    fwd_save = period * np.arange(1, n_fwd + 1, dtype=np.float64)
    bwd_save = -period * np.arange(0, n_bwd + 1, dtype=np.float64)
    branches: list[ManifoldBranch] = []
    for u0, t0 in zip(orbit, orbit_t):
        J = _jacobian(jac, u0, params, u0.size)
        w, V = np.linalg.eig(J)
        for n in range(w.size):
            lam = float(np.real(w[n]))
            if abs(np.imag(w[n])) > eig_tol or abs(lam) <= eig_tol:
                continue
            v = np.real(V[:, n])
            if lam > 0.0:
                kind, span, t_eval = "unstable", (float(t0), float(fwd_save[-1])), fwd_save[fwd_save >= t0]
            else:
                kind, span, t_eval = "stable", (float(t0), float(bwd_save[-1])), bwd_save[bwd_save <= t0]
            for sign in (1, -1):
                start = u0 + sign * float(delta) * v
                branches.append(
                    _branch(f, start, params, span, event, kind=kind, sign=sign, t_eval=t_eval, config=config)
                )
    return ForcedManifolds(orbit_t=orbit_t, orbit=orbit, branches=branches, escape_radius=radius)
