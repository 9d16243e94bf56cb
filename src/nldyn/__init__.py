# src/nldyn/__init__.py
from __future__ import annotations

import importlib

from nldyn.config import SolverConfig, load_config
from nldyn.errors import (
    NldynError, ConfigError, AttractorLimitError, VectorFieldSignatureError, IntegrationError,
)
from nldyn.runtime import (
    Status, OK, STEPFAIL, NAN_DETECTED, RHS_ERROR,
    TerminalBatch, integrate, integrate_batch,
)

__version__ = "0.1.0"

__all__ = [
    # Core entry points
    "attractor_basin", "BasinResult", "integrate", "integrate_batch", "TerminalBatch",
    # Configuration
    "SolverConfig", "load_config",
    # Status codes
    "Status", "OK", "STEPFAIL", "NAN_DETECTED", "RHS_ERROR",
    # Errors
    "NldynError", "ConfigError", "AttractorLimitError", "VectorFieldSignatureError", "IntegrationError",
]


def __getattr__(name):
    if name in ("attractor_basin", "BasinResult"):
        module = importlib.import_module("nldyn.analysis.basin")
        value = getattr(module, name)
        globals()[name] = value
        return value
    raise AttributeError(f"module 'nldyn' has no attribute '{name}'")
