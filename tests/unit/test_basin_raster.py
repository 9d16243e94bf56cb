# tests/unit/test_basin_raster.py
from __future__ import annotations

import numpy as np
import pytest

from nldyn.analysis.basin import BasinResult, assemble_raster, clear_corner_label


def test_assemble_places_labels_x_outer():
    flat = np.array([1, 2, 3, 4, 5, 6], dtype=np.int8)
    raster = assemble_raster(flat, 2, 3, clear_corner=False)
    assert raster.shape == (2, 3)
    assert raster.dtype == np.int8
    np.testing.assert_array_equal(raster, [[1, 2, 3], [4, 5, 6]])


def test_corner_is_cleared_by_default():
    flat = np.full(6, 3, dtype=np.int8)
    raster = assemble_raster(flat, 2, 3)
    assert raster[0, 0] == 0
    assert np.all(raster.reshape(-1)[1:] == 3)


def test_corner_clear_can_be_disabled():
    flat = np.full(4, 2, dtype=np.int8)
    raster = assemble_raster(flat, 2, 2, clear_corner=False)
    assert raster[0, 0] == 2


def test_assemble_does_not_modify_input():
    flat = np.full(4, 5, dtype=np.int8)
    assemble_raster(flat, 2, 2)
    assert flat[0] == 5


def test_size_mismatch_raises():
    with pytest.raises(ValueError, match="expected 6 labels"):
        assemble_raster(np.zeros(5), 2, 3)


def test_clear_corner_label_is_in_place():
    raster = np.ones((3, 3), dtype=np.int8)
    out = clear_corner_label(raster)
    assert out is raster
    assert raster[0, 0] == 0
    assert raster.sum() == 8


def test_clear_corner_label_empty_raster():
    raster = np.zeros((0, 0), dtype=np.int8)
    assert clear_corner_label(raster).size == 0


def test_result_fraction_and_shape():
    labels = np.array([[0, 1], [1, 2]], dtype=np.int8)
    result = BasinResult(
        labels=labels,
        x=np.array([0.0, 1.0]),
        y=np.array([0.0, 1.0]),
        attractors=np.zeros((2, 2)),
        maxdist=0.1,
        status=np.zeros((2, 2), dtype=np.int32),
    )
    assert result.shape == (2, 2)
    assert result.fraction(1) == pytest.approx(0.5)
    assert result.fraction(2) == pytest.approx(0.25)
    assert result.fraction(7) == 0.0
