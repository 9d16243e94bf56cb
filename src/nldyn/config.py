# src/nldyn/config.py
"""
Solver and worker-pool configuration.

Defaults live in :class:`SolverConfig`. A TOML file can override them::

    [solver]
    method = "DOP853"
    rtol = 1e-8
    atol = 1e-10

    [parallel]
    mode = "threads"
    max_workers = 8

The file is only read by an explicit :func:`load_config` call; analysis
functions take the resulting object through their ``config`` argument.
"""
from __future__ import annotations

import dataclasses
import math
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from nldyn.errors import ConfigError

__all__ = [
    "SolverConfig",
    "load_config",
    "SOLVER_METHODS",
    "PARALLEL_MODES",
]

SOLVER_METHODS = ("RK45", "RK23", "DOP853", "Radau", "BDF", "LSODA")
PARALLEL_MODES = ("auto", "threads", "process", "none")

_SOLVER_KEYS = {"method", "rtol", "atol", "max_step"}
_PARALLEL_KEYS = {"mode", "max_workers"}


@dataclass(frozen=True)
class SolverConfig:
    """Settings forwarded to ``solve_ivp`` and to the batch worker pool."""

    method: str = "RK45"
    rtol: float = 1e-6
    atol: float = 1e-9
    max_step: Optional[float] = None
    parallel_mode: str = "threads"
    max_workers: Optional[int] = None

    def __post_init__(self) -> None:
        if self.method not in SOLVER_METHODS:
            raise ConfigError(
                f"Unknown solver method {self.method!r}; expected one of {SOLVER_METHODS}"
            )
        for name in ("rtol", "atol"):
            val = getattr(self, name)
            if isinstance(val, bool) or not isinstance(val, (int, float)) or not val > 0.0:
                raise ConfigError(f"{name} must be a positive number (got {val!r})")
        if self.max_step is not None:
            if isinstance(self.max_step, bool) or not isinstance(self.max_step, (int, float)) or not self.max_step > 0.0:
                raise ConfigError(f"max_step must be positive when provided (got {self.max_step!r})")
        if self.parallel_mode not in PARALLEL_MODES:
            raise ConfigError(
                f"Unknown parallel mode {self.parallel_mode!r}; expected one of {PARALLEL_MODES}"
            )
        if self.max_workers is not None:
            if isinstance(self.max_workers, bool) or not isinstance(self.max_workers, int) or self.max_workers <= 0:
                raise ConfigError(f"max_workers must be a positive integer (got {self.max_workers!r})")

    def with_overrides(self, **overrides: Any) -> "SolverConfig":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if not changes:
            return self
        return dataclasses.replace(self, **changes)

    def resolved_workers(self) -> int:
        if self.max_workers is not None:
            return int(self.max_workers)
        return os.cpu_count() or 1

    def solve_ivp_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"method": self.method, "rtol": self.rtol, "atol": self.atol}
        if self.max_step is not None:
            kwargs["max_step"] = self.max_step
        return kwargs


def _get_config_path() -> Path:
    """Return the config file location for this platform (NLDYN_CONFIG wins)."""
    env_path = os.environ.get("NLDYN_CONFIG")
    if env_path:
        return Path(env_path).expanduser().resolve()

    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
        return (base / "nldyn" / "config.toml").resolve()
    if sys.platform == "darwin":
        return (Path.home() / "Library" / "Application Support" / "nldyn" / "config.toml").resolve()

    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return (base / "nldyn" / "config.toml").resolve()


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        import tomllib
    except ModuleNotFoundError:  # pragma: no cover
        import tomli as tomllib  # Python < 3.11

    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Malformed config file {path}: {exc}") from exc


def _table(data: Mapping[str, Any], name: str, allowed: set[str], path: Path) -> dict[str, Any]:
    table = data.get(name, {})
    if not isinstance(table, dict):
        raise ConfigError(f"[{name}] in {path} must be a table")
    unknown = sorted(set(table) - allowed)
    if unknown:
        raise ConfigError(f"Unknown key(s) {unknown} in [{name}] of {path}")
    return table


def load_config(path: str | Path | None = None) -> SolverConfig:
    """
    Load a :class:`SolverConfig` from TOML.

    Resolution order: explicit ``path``, the ``NLDYN_CONFIG`` environment
    variable, then the platform config directory. A missing file yields the
    defaults.
    """
    cfg_path = Path(path).expanduser() if path is not None else _get_config_path()
    if not cfg_path.exists():
        return SolverConfig()

    data = _read_toml(cfg_path)
    unknown = sorted(set(data) - {"solver", "parallel"})
    if unknown:
        raise ConfigError(f"Unknown table(s) {unknown} in {cfg_path}")

    solver = _table(data, "solver", _SOLVER_KEYS, cfg_path)
    parallel = _table(data, "parallel", _PARALLEL_KEYS, cfg_path)

    kwargs: dict[str, Any] = {}
    if "method" in solver:
        kwargs["method"] = solver["method"]
    for key in ("rtol", "atol", "max_step"):
        if key in solver:
            val = solver[key]
            if key == "max_step" and isinstance(val, float) and math.isinf(val):
                val = None
            kwargs[key] = val
    if "mode" in parallel:
        kwargs["parallel_mode"] = parallel["mode"]
    if "max_workers" in parallel:
        kwargs["max_workers"] = parallel["max_workers"]

    try:
        return SolverConfig(**kwargs)
    except ConfigError as exc:
        raise ConfigError(f"Invalid config file {cfg_path}: {exc}") from exc
