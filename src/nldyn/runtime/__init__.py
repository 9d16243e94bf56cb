# src/nldyn/runtime/__init__.py
from __future__ import annotations

from nldyn.runtime.status import Status, OK, STEPFAIL, NAN_DETECTED, RHS_ERROR
from nldyn.runtime.field import VectorField, check_vector_field
from nldyn.runtime.integrate import TerminalBatch, integrate, integrate_batch

__all__ = [
    "Status", "OK", "STEPFAIL", "NAN_DETECTED", "RHS_ERROR",
    "VectorField", "check_vector_field",
    "TerminalBatch", "integrate", "integrate_batch",
]
