# src/nldyn/runtime/status.py
from __future__ import annotations
from enum import IntEnum

__all__ = [
    "Status",
    # int constants (jit-friendly)
    "OK", "STEPFAIL", "NAN_DETECTED", "RHS_ERROR",
]

class Status(IntEnum):
    """Stable per-trajectory outcome codes for batch integration."""
    OK = 0              # terminal state reached
    STEPFAIL = 2        # solver gave up (step-size collapse, too many steps)
    NAN_DETECTED = 3    # terminal state is not finite
    RHS_ERROR = 4       # vector field raised while being evaluated

# Plain int constants for kernels and comparisons against int arrays
OK: int = int(Status.OK)
STEPFAIL: int = int(Status.STEPFAIL)
NAN_DETECTED: int = int(Status.NAN_DETECTED)
RHS_ERROR: int = int(Status.RHS_ERROR)
