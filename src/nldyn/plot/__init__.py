# src/nldyn/plot/__init__.py
from __future__ import annotations

from . import _export as export
from .basin import BASIN_COLORS, basin_plot

__all__ = [
    "export",
    "BASIN_COLORS",
    "basin_plot",
]
