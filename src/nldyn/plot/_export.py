# src/nldyn/plot/_export.py
from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

__all__ = ["savefig", "save_basin", "load_basin", "show"]


def _figure_of(target) -> plt.Figure:
    fig = getattr(target, "figure", None)
    return fig if fig is not None else target


def _formats(path: Path, fmts) -> tuple[Path, list[str]]:
    if path.suffix:
        return path.with_suffix(""), [path.suffix.lstrip(".").lower()]
    out: list[str] = []
    for fmt in fmts:
        name = str(fmt).lower().lstrip(".")
        if name and name not in out:
            out.append(name)
    if not out:
        raise ValueError("fmts must contain at least one non-empty format.")
    return path, out


def savefig(
    fig_or_ax,
    path: str | Path,
    *,
    fmts: tuple[str, ...] = ("png",),
    dpi: int = 300,
    transparent: bool = False,
    pad: float = 0.01,
    bbox_inches: str | None = "tight",
) -> list[Path]:
    """
    Write a figure (or the figure owning an Axes) once per format.

    ``path`` with a suffix writes exactly that file and ignores ``fmts``.
    Without one, ``<path>.<fmt>`` is written for each format in order.
    Parent directories are created as needed.
    """
    fig = _figure_of(fig_or_ax)
    stem, formats = _formats(Path(path), fmts)
    stem.parent.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    for fmt in formats:
        outfile = stem.with_suffix(f".{fmt}")
        fig.savefig(outfile, dpi=dpi, transparent=transparent, bbox_inches=bbox_inches, pad_inches=pad)
        written.append(outfile)
    return written


def save_basin(result, path: str | Path) -> Path:
    """Store a ``BasinResult`` raster and its axes as a compressed ``.npz``."""
    outfile = Path(path).with_suffix(".npz")
    outfile.parent.mkdir(parents=True, exist_ok=True)
    np.savez_compressed(
        outfile,
        labels=result.labels,
        x=result.x,
        y=result.y,
        attractors=result.attractors,
        maxdist=np.float64(result.maxdist),
        status=result.status,
    )
    return outfile


def load_basin(path: str | Path):
    """Inverse of :func:`save_basin`; ``meta`` is not stored and comes back empty."""
    from nldyn.analysis.basin import BasinResult

    with np.load(Path(path)) as data:
        return BasinResult(
            labels=data["labels"].astype(np.int8),
            x=data["x"],
            y=data["y"],
            attractors=data["attractors"],
            maxdist=float(data["maxdist"]),
            status=data["status"],
        )


def show() -> None:
    plt.show()
