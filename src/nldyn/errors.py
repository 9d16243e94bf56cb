# src/nldyn/errors.py
from __future__ import annotations

__all__ = [
    "NldynError",
    "ConfigError",
    "AttractorLimitError",
    "VectorFieldSignatureError",
    "IntegrationError",
]

class NldynError(Exception):
    """Base error for the nldyn package."""


class ConfigError(NldynError):
    """Raised when a configuration file or an analysis setup is malformed or invalid."""
    def __init__(self, message: str):
        super().__init__(message)


class AttractorLimitError(ConfigError):
    """Raised when more attractors are requested than the label palette can encode."""
    def __init__(self, count: int, limit: int):
        self.count = count
        self.limit = limit
        super().__init__(
            f"maximum number of attractors is {limit} (got {count})"
        )


class VectorFieldSignatureError(ConfigError):
    """Raised when a vector field does not accept ``(state, params, t)``."""
    def __init__(self, func: object, reason: str):
        self.func = func
        name = getattr(func, "__qualname__", None) or repr(func)
        msg = f"Vector field {name} has an unsupported signature: {reason}\n"
        msg += "Expected a callable f(state, params, t) -> derivative."
        super().__init__(msg)


class IntegrationError(NldynError):
    """Raised when a single trajectory fails to integrate."""
    def __init__(self, message: str, *, u0=None, t_span=None):
        self.u0 = u0
        self.t_span = t_span
        super().__init__(message)
