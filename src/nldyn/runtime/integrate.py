# src/nldyn/runtime/integrate.py
from __future__ import annotations

from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass
import multiprocessing
from typing import Any, Literal, Optional, Sequence
import warnings

import numpy as np
from scipy.integrate import solve_ivp

from nldyn.config import SolverConfig
from nldyn.errors import IntegrationError
from nldyn.runtime.field import IvpRhs, VectorField, check_vector_field
from nldyn.runtime.status import OK, STEPFAIL, NAN_DETECTED, RHS_ERROR

__all__ = [
    "TerminalBatch",
    "integrate",
    "integrate_batch",
]


@dataclass
class TerminalBatch:
    """Terminal states of a batch run, row-aligned with the initial states."""

    states: np.ndarray   # (n, n_state); NaN rows for failed trajectories
    status: np.ndarray   # (n,) int32 Status codes

    def __len__(self) -> int:
        return int(self.status.shape[0])

    @property
    def ok(self) -> np.ndarray:
        return self.status == OK

    @property
    def n_failed(self) -> int:
        return int(np.count_nonzero(self.status != OK))


class _TerminalTask:
    """Integrate one initial state to ``tmax`` and keep only the end point."""

    __slots__ = ("rhs", "tmax", "solver_kwargs")

    def __init__(self, rhs: IvpRhs, tmax: float, solver_kwargs: dict[str, Any]):
        self.rhs = rhs
        self.tmax = tmax
        self.solver_kwargs = solver_kwargs

    def __getstate__(self):
        return (self.rhs, self.tmax, self.solver_kwargs)

    def __setstate__(self, state) -> None:
        self.rhs, self.tmax, self.solver_kwargs = state

    def __call__(self, u0: np.ndarray) -> tuple[np.ndarray, int]:
        y0 = np.array(u0, dtype=np.float64, copy=True)
        failed = np.full(y0.shape, np.nan, dtype=np.float64)
        try:
            sol = solve_ivp(
                self.rhs,
                (0.0, self.tmax),
                y0,
                t_eval=(self.tmax,),
                **self.solver_kwargs,
            )
        except Exception:
            # Any error raised by the field (or its output shape) marks just this point.
            return failed, RHS_ERROR
        if sol.status < 0 or sol.y.shape[1] == 0:
            return failed, STEPFAIL
        y_end = np.asarray(sol.y[:, -1], dtype=np.float64)
        if not np.all(np.isfinite(y_end)):
            return failed, NAN_DETECTED
        return y_end, OK


def _resolve_backend(mode: str) -> str:
    if mode == "auto":
        return "threads"
    if mode in ("threads", "process", "none"):
        return mode
    raise ValueError(f"Unknown parallel_mode {mode!r}")


def integrate_batch(
    f: VectorField,
    ic: np.ndarray | Sequence[Sequence[float]],
    params: Any,
    tmax: float,
    *,
    config: SolverConfig | None = None,
    parallel_mode: Optional[Literal["auto", "threads", "process", "none"]] = None,
    max_workers: Optional[int] = None,
) -> TerminalBatch:
    """
    Integrate every row of ``ic`` over ``[0, tmax]`` and return the terminal states.

    Trajectories are independent and run on a worker pool sized by
    ``max_workers`` (default: ``os.cpu_count()``). Output order always matches
    input order. A trajectory that fails is reported with a NaN row and a
    non-OK status instead of aborting the batch.

    ``parallel_mode="process"`` requires ``f`` and ``params`` to be picklable
    (module-level functions or instances of module-level classes). Workers are
    spawned, so they import ``f`` afresh from its module.
    """
    check_vector_field(f)
    if not tmax > 0.0:
        raise ValueError("tmax must be positive")
    if max_workers is not None and int(max_workers) <= 0:
        raise ValueError("max_workers must be positive when provided")

    cfg = (config or SolverConfig()).with_overrides(
        parallel_mode=parallel_mode,
        max_workers=None if max_workers is None else int(max_workers),
    )
    backend = _resolve_backend(cfg.parallel_mode)

    ic_arr = np.atleast_2d(np.asarray(ic, dtype=np.float64))
    if ic_arr.ndim != 2:
        raise ValueError(f"ic must be 2D (n_points, n_state), got shape {ic_arr.shape}")
    batch = ic_arr.shape[0]
    states = np.full(ic_arr.shape, np.nan, dtype=np.float64)
    status = np.full((batch,), OK, dtype=np.int32)
    if batch == 0:
        return TerminalBatch(states=states, status=status)

    task = _TerminalTask(IvpRhs(f, params), float(tmax), cfg.solve_ivp_kwargs())
    workers = cfg.resolved_workers()
    rows = list(ic_arr)

    if backend == "none" or workers == 1 or batch == 1:
        outcomes = [task(row) for row in rows]
    elif backend == "threads":
        with ThreadPoolExecutor(max_workers=workers) as ex:
            outcomes = list(ex.map(task, rows))
    else:
        chunksize = max(1, batch // (workers * 4))
        # Forking after numba has started its threading layer deadlocks the workers.
        ctx = multiprocessing.get_context("spawn")
        with ProcessPoolExecutor(max_workers=workers, mp_context=ctx) as ex:
            outcomes = list(ex.map(task, rows, chunksize=chunksize))

    for i, (y_end, code) in enumerate(outcomes):
        states[i, :] = y_end
        status[i] = code

    result = TerminalBatch(states=states, status=status)
    n_failed = result.n_failed
    if n_failed:
        warnings.warn(
            f"{n_failed} of {batch} trajectories failed to integrate "
            f"(tmax={float(tmax)}, method={cfg.method}).",
            RuntimeWarning,
            stacklevel=2,
        )
    return result


def integrate(
    f: VectorField,
    u0: np.ndarray | Sequence[float],
    params: Any,
    t_span: tuple[float, float],
    *,
    t_eval: np.ndarray | Sequence[float] | None = None,
    dense_output: bool = False,
    events=None,
    config: SolverConfig | None = None,
):
    """
    Integrate a single trajectory with ``solve_ivp``.

    Returns the ``OdeResult``. Raises :class:`IntegrationError` when the field
    raises or the solver fails. A terminal event in ``events`` ends the run
    early without an error (``sol.status == 1``).
    """
    check_vector_field(f)
    cfg = config or SolverConfig()
    t0, t1 = float(t_span[0]), float(t_span[1])
    y0 = np.array(u0, dtype=np.float64, copy=True)
    if y0.ndim != 1:
        raise ValueError(f"u0 must be 1D, got shape {y0.shape}")
    t_eval_arr = None
    if t_eval is not None:
        t_eval_arr = np.asarray(t_eval, dtype=np.float64)
        lo, hi = min(t0, t1), max(t0, t1)
        if t_eval_arr.size and (t_eval_arr.min() < lo or t_eval_arr.max() > hi):
            raise ValueError("t_eval values must lie within t_span")

    try:
        sol = solve_ivp(
            IvpRhs(f, params),
            (t0, t1),
            y0,
            t_eval=t_eval_arr,
            dense_output=dense_output,
            events=events,
            **cfg.solve_ivp_kwargs(),
        )
    except Exception as exc:
        raise IntegrationError(
            f"Vector field evaluation failed on [{t0}, {t1}]: {exc}",
            u0=y0,
            t_span=(t0, t1),
        ) from exc
    if not sol.success:
        raise IntegrationError(
            f"Integration failed on [{t0}, {t1}]: {sol.message}",
            u0=y0,
            t_span=(t0, t1),
        )
    return sol
