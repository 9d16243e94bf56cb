# src/nldyn/runtime/field.py
from __future__ import annotations

import inspect
from typing import Any, Callable

import numpy as np

from nldyn.errors import VectorFieldSignatureError

__all__ = ["VectorField", "check_vector_field", "IvpRhs"]

VectorField = Callable[[np.ndarray, Any, float], Any]


def check_vector_field(f: object) -> None:
    """
    Fail fast unless ``f`` can be called as ``f(state, params, t)``.

    In-place forms such as ``f(du, u, p, t)`` are rejected here rather than
    surfacing later as per-trajectory failures.
    """
    if not callable(f):
        raise VectorFieldSignatureError(f, "object is not callable")
    try:
        sig = inspect.signature(f)
    except (TypeError, ValueError):
        # Builtins and some C extensions expose no signature; accept them as-is.
        return
    try:
        sig.bind(None, None, None)
    except TypeError as exc:
        raise VectorFieldSignatureError(f, f"cannot bind (state, params, t): {exc}") from None


class IvpRhs:
    """
    Adapter from ``f(state, params, t)`` to the ``fun(t, y)`` form of ``solve_ivp``.

    A module-level class (not a closure) so it pickles for process pools.
    """

    __slots__ = ("f", "params")

    def __init__(self, f: VectorField, params: Any):
        self.f = f
        self.params = params

    def __call__(self, t: float, y: np.ndarray) -> np.ndarray:
        return np.asarray(self.f(y, self.params, t), dtype=np.float64)

    def __getstate__(self):
        return (self.f, self.params)

    def __setstate__(self, state) -> None:
        self.f, self.params = state
