# tests/integration/test_attractor_basin.py
"""
Integration tests: end-to-end basin classification.

Tests verify:
- Label raster layout on a small grid
- Corner override on and off
- Identical rasters across runs and pool modes
- Per-point failure isolation with a warning
- Attractor limit is enforced before any integration, whatever the point shape
- Process pool works after the numba classifier has run in the same session
"""
from __future__ import annotations

import subprocess
import sys
import textwrap

import numpy as np
import pytest

import nldyn
from nldyn.analysis import attractor_basin
from nldyn.analysis.basin import classify_states
from nldyn.analysis.linear import linear_field
from nldyn.config import SolverConfig
from nldyn.errors import AttractorLimitError, VectorFieldSignatureError
from nldyn.runtime.status import OK, RHS_ERROR


def _still(u, p, t):
    return np.zeros_like(u)


def _bistable(u, p, t):
    # Stable equilibria at (+1, 0) and (-1, 0); x = 0 is invariant.
    return np.array([u[0] - u[0] ** 3, -u[1]])


def test_single_attractor_labels_only_the_centre():
    res = attractor_basin(_still, None, [[0.0, 0.0]], 0.5, delta=1.0, tmax=1.0, parallel_mode="none")
    np.testing.assert_allclose(res.x, [-1.0, 0.0, 1.0])
    np.testing.assert_allclose(res.y, [-1.0, 0.0, 1.0])
    expected = np.zeros((3, 3), dtype=np.int8)
    expected[1, 1] = 1
    np.testing.assert_array_equal(res.labels, expected)
    assert res.labels.dtype == np.int8
    assert np.all(res.status == OK)
    assert res.meta["n_failed"] == 0


def test_corner_forced_to_zero():
    attractors = [[-1.0, -1.0]]
    res = attractor_basin(_still, None, attractors, 0.1, delta=1.0, tmax=1.0, parallel_mode="none")
    assert res.labels[0, 0] == 0
    assert res.labels.sum() == 0

    raw = attractor_basin(
        _still, None, attractors, 0.1, delta=1.0, tmax=1.0, parallel_mode="none", clear_corner=False
    )
    assert raw.labels[0, 0] == 1
    assert raw.labels.sum() == 1


def test_bistable_basins_split_along_x():
    res = attractor_basin(
        _bistable,
        None,
        [[1.0, 0.0], [-1.0, 0.0]],
        0.1,
        delta=0.5,
        tmax=20.0,
        xlims=(-1.5, 1.5),
        ylims=(-1.0, 1.0),
        max_workers=4,
    )
    assert res.shape == (7, 5)
    assert set(np.unique(res.labels)).issubset({0, 1, 2})
    for i, x in enumerate(res.x):
        column = res.labels[i]
        if i == 0:
            column = column[1:]
        if x > 0:
            assert np.all(column == 1)
        elif x < 0:
            assert np.all(column == 2)
        else:
            assert np.all(column == 0)
    assert res.labels[0, 0] == 0


def test_runs_are_deterministic_across_modes():
    kwargs = dict(delta=0.5, tmax=10.0, xlims=(-1.5, 1.5), ylims=(-1.0, 1.0))
    attractors = [[1.0, 0.0], [-1.0, 0.0]]
    first = attractor_basin(_bistable, None, attractors, 0.1, parallel_mode="threads", max_workers=3, **kwargs)
    second = attractor_basin(_bistable, None, attractors, 0.1, parallel_mode="threads", max_workers=3, **kwargs)
    serial = attractor_basin(_bistable, None, attractors, 0.1, parallel_mode="none", **kwargs)
    np.testing.assert_array_equal(first.labels, second.labels)
    np.testing.assert_array_equal(first.labels, serial.labels)


def test_failed_point_is_unclassified_and_reported():
    def f(u, p, t):
        if abs(u[0] - 1.0) < 1e-12 and abs(u[1] - 1.0) < 1e-12:
            raise FloatingPointError("singular")
        return np.zeros_like(u)

    with pytest.warns(RuntimeWarning, match="1 of 9 trajectories failed"):
        res = attractor_basin(f, None, [[0.0, 0.0]], 10.0, delta=1.0, tmax=1.0, max_workers=2)

    assert res.status[2, 2] == RHS_ERROR
    assert res.labels[2, 2] == 0
    assert res.meta["n_failed"] == 1
    expected = np.ones((3, 3), dtype=np.int8)
    expected[0, 0] = 0
    expected[2, 2] = 0
    np.testing.assert_array_equal(res.labels, expected)


def test_too_many_attractors_fail_before_integration():
    calls = []

    def f(u, p, t):
        calls.append(t)
        return np.zeros_like(u)

    attractors = [[0.1 * k, 0.0] for k in range(8)]
    with pytest.raises(AttractorLimitError, match="maximum number of attractors is 7"):
        attractor_basin(f, None, attractors, 0.1, delta=1.0, tmax=1.0)
    assert calls == []


def test_bad_signature_fails_before_integration():
    with pytest.raises(VectorFieldSignatureError):
        attractor_basin(lambda du, u, p, t: None, None, [[0.0, 0.0]], 0.1, delta=1.0)


def test_extra_state_and_config_are_forwarded():
    seen = set()

    def forced(u, p, t):
        seen.add(u.shape)
        return np.array([-u[0], -u[1], 1.0])

    cfg = SolverConfig(method="DOP853", rtol=1e-9, atol=1e-12, parallel_mode="none")
    res = attractor_basin(
        forced, None, [[0.0, 0.0]], 0.008, delta=1.0, tmax=5.0, n_state=3, config=cfg
    )
    assert seen == {(3,)}
    assert res.meta["method"] == "DOP853"
    assert res.meta["n_state"] == 3
    assert res.meta["max_workers"] == cfg.resolved_workers()
    # exp(-5) ~ 0.0067 on the axes, exp(-5) * sqrt(2) ~ 0.0095 at the corners
    expected = np.array([[0, 1, 0], [1, 1, 1], [0, 1, 0]], dtype=np.int8)
    np.testing.assert_array_equal(res.labels, expected)


def test_top_level_lazy_export():
    assert nldyn.attractor_basin is attractor_basin
    assert nldyn.BasinResult.__name__ == "BasinResult"


def test_too_many_three_dimensional_attractors_hit_the_limit_first():
    calls = []

    def f(u, p, t):
        calls.append(t)
        return np.zeros_like(u)

    with pytest.raises(AttractorLimitError, match="maximum number of attractors is 7"):
        attractor_basin(f, None, [[0.0, 0.0, 0.0]] * 8, 0.5, delta=1.0, tmax=1.0)
    assert calls == []


def test_process_pool_after_numba_classification():
    classify_states(np.zeros((4, 2)), [[0.0, 0.0]], 0.1)

    field = linear_field([[-1.0, 0.0], [0.0, -1.0]])
    kwargs = dict(delta=0.5, tmax=10.0)
    procs = attractor_basin(field, None, [[0.0, 0.0]], 0.1, parallel_mode="process", max_workers=2, **kwargs)
    serial = attractor_basin(field, None, [[0.0, 0.0]], 0.1, parallel_mode="none", **kwargs)
    np.testing.assert_array_equal(procs.labels, serial.labels)
    assert procs.meta["n_failed"] == 0


def test_process_pool_session_exits_cleanly():
    script = textwrap.dedent(
        """
        import numpy as np
        from nldyn.analysis.basin import attractor_basin, classify_states
        from nldyn.analysis.linear import linear_field

        classify_states(np.zeros((4, 2)), [[0.0, 0.0]], 0.1)
        field = linear_field([[-1.0, 0.0], [0.0, -1.0]])
        res = attractor_basin(
            field, None, [[0.0, 0.0]], 0.1,
            delta=0.5, tmax=10.0, parallel_mode="process", max_workers=2,
        )
        print(int(res.labels.sum()))
        """
    )
    done = subprocess.run(
        [sys.executable, "-c", script], capture_output=True, text=True, timeout=300
    )
    assert done.returncode == 0, done.stderr
    assert int(done.stdout.strip().splitlines()[-1]) > 0
