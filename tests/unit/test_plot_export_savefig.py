# tests/unit/test_plot_export_savefig.py
from __future__ import annotations

import matplotlib

matplotlib.use("Agg", force=True)
import matplotlib.pyplot as plt
import numpy as np
import pytest

from nldyn.plot import basin_plot, export


def _make_ax():
    return basin_plot(np.array([[0, 1], [1, 0]], dtype=np.int8))


def test_savefig_infers_format_from_extension(tmp_path):
    ax = _make_ax()
    try:
        out = export.savefig(ax, tmp_path / "basin.pdf")
    finally:
        plt.close(ax.figure)

    assert out == [tmp_path / "basin.pdf"]
    assert (tmp_path / "basin.pdf").exists()


def test_savefig_multiple_formats_without_extension(tmp_path):
    ax = _make_ax()
    try:
        out = export.savefig(ax.figure, tmp_path / "nested" / "basin", fmts=("PDF", "png", ".png"))
    finally:
        plt.close(ax.figure)

    assert out == [tmp_path / "nested" / "basin.pdf", tmp_path / "nested" / "basin.png"]
    assert all(p.exists() for p in out)


def test_extension_overrides_fmts(tmp_path):
    ax = _make_ax()
    try:
        out = export.savefig(ax, tmp_path / "basin.png", fmts=("pdf", "svg"))
    finally:
        plt.close(ax.figure)

    assert out == [tmp_path / "basin.png"]
    assert not (tmp_path / "basin.pdf").exists()


def test_savefig_requires_a_format(tmp_path):
    ax = _make_ax()
    try:
        with pytest.raises(ValueError, match="fmts"):
            export.savefig(ax, tmp_path / "basin", fmts=("",))
    finally:
        plt.close(ax.figure)


def test_save_and_load_basin(tmp_path):
    from nldyn.analysis.basin import BasinResult

    result = BasinResult(
        labels=np.array([[0, 1], [2, 1]], dtype=np.int8),
        x=np.array([0.0, 0.5]),
        y=np.array([-1.0, 1.0]),
        attractors=np.array([[0.0, 0.0], [1.0, 1.0]]),
        maxdist=0.25,
        status=np.zeros((2, 2), dtype=np.int32),
        meta={"tmax": 10.0},
    )
    out = export.save_basin(result, tmp_path / "run" / "basin")
    assert out == tmp_path / "run" / "basin.npz"

    loaded = export.load_basin(out)
    np.testing.assert_array_equal(loaded.labels, result.labels)
    assert loaded.labels.dtype == np.int8
    np.testing.assert_allclose(loaded.x, result.x)
    np.testing.assert_allclose(loaded.attractors, result.attractors)
    assert loaded.maxdist == 0.25
    assert loaded.meta == {}
