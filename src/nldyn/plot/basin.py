# src/nldyn/plot/basin.py
from __future__ import annotations

from typing import Sequence

import numpy as np
from matplotlib.colors import ListedColormap

from ._primitives import _apply_labels, _apply_limits, _get_ax

__all__ = ["BASIN_COLORS", "basin_plot"]

# Label 0 (unclassified) first, then one colour per attractor label 1..7.
BASIN_COLORS: tuple[str, ...] = (
    "black",
    "red",
    "blue",
    "yellow",
    "green",
    "purple",
    "cyan",
    "orange",
)


def _unpack(result_or_labels, x, y):
    labels = getattr(result_or_labels, "labels", None)
    if labels is not None:
        x = result_or_labels.x if x is None else x
        y = result_or_labels.y if y is None else y
        n_attr = int(np.asarray(result_or_labels.attractors).shape[0])
    else:
        labels = result_or_labels
        n_attr = None

    raster = np.asarray(labels)
    if raster.ndim != 2:
        raise ValueError(f"labels must be a 2D raster, got shape {raster.shape}")
    nx, ny = raster.shape
    x = np.arange(nx, dtype=float) if x is None else np.asarray(x, dtype=float)
    y = np.arange(ny, dtype=float) if y is None else np.asarray(y, dtype=float)
    if x.shape != (nx,) or y.shape != (ny,):
        raise ValueError("x and y must match the raster shape (nx, ny)")
    if n_attr is None:
        n_attr = int(raster.max()) if raster.size else 0
    return raster, x, y, n_attr


def basin_plot(
    result_or_labels,
    *,
    x: Sequence[float] | None = None,
    y: Sequence[float] | None = None,
    ax=None,
    colors: Sequence[str] | None = None,
    xlabel: str | None = "x",
    ylabel: str | None = "y",
    title: str | None = None,
    xlim: tuple[float, float] | None = None,
    ylim: tuple[float, float] | None = None,
):
    """
    Draw a basin raster with one fixed colour per label.

    Accepts a ``BasinResult`` or a bare ``(nx, ny)`` label array (then ``x``
    and ``y`` default to grid indices). Label 0 is drawn in ``colors[0]``,
    label ``m`` in ``colors[m]``; the colour scale is pinned to the label
    range so colours never shift with the labels present.
    """
    raster, xs, ys, n_attr = _unpack(result_or_labels, x, y)
    palette = tuple(colors) if colors is not None else BASIN_COLORS
    if len(palette) < n_attr + 1:
        raise ValueError(f"need {n_attr + 1} colours for {n_attr} attractors, got {len(palette)}")

    ax = _get_ax(ax)
    cmap = ListedColormap(list(palette[: n_attr + 1]))
    ax.pcolormesh(
        xs,
        ys,
        raster.T,
        cmap=cmap,
        vmin=-0.5,
        vmax=n_attr + 0.5,
        shading="nearest",
    )
    _apply_labels(ax, xlabel=xlabel, ylabel=ylabel, title=title)
    _apply_limits(ax, xlim=xlim, ylim=ylim)
    return ax
