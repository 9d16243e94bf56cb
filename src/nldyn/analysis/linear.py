# src/nldyn/analysis/linear.py
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

__all__ = ["LinearClassification", "LinearField", "classify_linear", "linear_field"]


@dataclass(frozen=True)
class LinearClassification:
    trace: float
    det: float
    eigenvalues: np.ndarray
    kind: str

    @property
    def stable(self) -> bool:
        return self.kind in ("stable node", "stable focus")


class LinearField:
    """Vector field ``u' = A u``; picklable, so usable with process pools."""

    def __init__(self, A):
        self.A = np.asarray(A, dtype=np.float64)

    def __call__(self, state, params, t):
        return self.A @ np.asarray(state, dtype=np.float64)

    def __repr__(self) -> str:
        return f"LinearField({self.A.tolist()!r})"


def linear_field(A) -> LinearField:
    arr = np.asarray(A, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
        raise ValueError(f"A must be a square matrix, got shape {arr.shape}")
    return LinearField(arr)


def classify_linear(A, *, tol: float = 1e-12) -> LinearClassification:
    """
    Place a 2x2 linear system on the trace-determinant plane.

    Nodes and foci are separated by the parabola ``det = tr**2 / 4``; points
    on it count as nodes.
    """
    arr = np.asarray(A, dtype=np.float64)
    if arr.shape != (2, 2):
        raise ValueError(f"A must be 2x2, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ValueError("A must be finite")

    tr = float(np.trace(arr))
    det = float(np.linalg.det(arr))
    eig = np.linalg.eigvals(arr)

    if det < -tol:
        kind = "saddle"
    elif abs(det) <= tol:
        kind = "degenerate"
    elif abs(tr) <= tol:
        kind = "center"
    else:
        side = "stable" if tr < 0.0 else "unstable"
        shape = "node" if tr * tr - 4.0 * det >= -tol else "focus"
        kind = f"{side} {shape}"
    return LinearClassification(trace=tr, det=det, eigenvalues=eig, kind=kind)
