# src/nldyn/plot/_primitives.py
from __future__ import annotations

import matplotlib.pyplot as plt

# ----------------------------------------------------------------------------
# Figure/Axes helpers
# ----------------------------------------------------------------------------

def _get_ax(ax=None, *, figsize: tuple[float, float] | None = None) -> plt.Axes:
    if ax is not None:
        return ax
    _fig, created_ax = plt.subplots(figsize=figsize, layout="constrained")
    return created_ax


def _apply_limits(
    ax: plt.Axes,
    *,
    xlim: tuple[float | None, float | None] | None = None,
    ylim: tuple[float | None, float | None] | None = None,
) -> None:
    """Apply axis limits to the plot."""
    if xlim is not None:
        ax.set_xlim(xlim)
    if ylim is not None:
        ax.set_ylim(ylim)


def _apply_labels(
    ax: plt.Axes,
    *,
    xlabel: str | None,
    ylabel: str | None,
    title: str | None,
) -> None:
    if xlabel is not None:
        ax.set_xlabel(xlabel)
    if ylabel is not None:
        ax.set_ylabel(ylabel)
    if title is not None:
        ax.set_title(title)
