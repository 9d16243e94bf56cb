# tests/unit/test_integrate_batch.py
"""
Unit tests for integrate_batch() and integrate().

Tests verify:
- Output rows stay aligned with input rows in every pool mode
- A failing trajectory yields a NaN row and a non-OK status without aborting the batch
- Threads, process and serial execution give identical results
- Argument validation (tmax, max_workers, parallel_mode)
"""
from __future__ import annotations

import math

import numpy as np
import pytest

from nldyn.analysis.linear import linear_field
from nldyn.config import SolverConfig
from nldyn.errors import ConfigError, IntegrationError, VectorFieldSignatureError
from nldyn.runtime import Status, integrate, integrate_batch
from nldyn.runtime.status import NAN_DETECTED, OK, RHS_ERROR


def _decay(u, p, t):
    return -p * u


def _ic(n: int) -> np.ndarray:
    return np.column_stack([np.linspace(-1.0, 1.0, n), np.linspace(2.0, 3.0, n)])


@pytest.mark.parametrize("mode", ["none", "threads", "auto"])
def test_terminal_states_match_analytic_decay(mode):
    ic = _ic(9)
    batch = integrate_batch(_decay, ic, 0.5, 2.0, parallel_mode=mode, max_workers=3)
    assert len(batch) == 9
    assert batch.n_failed == 0
    assert np.all(batch.ok)
    np.testing.assert_allclose(batch.states, ic * math.exp(-1.0), rtol=1e-4, atol=1e-8)


def test_failure_is_isolated_to_one_row():
    ic = _ic(7)
    bad = ic[3].copy()

    def f(u, p, t):
        if np.allclose(u[:2], bad):
            raise RuntimeError("boom")
        return np.zeros_like(u)

    with pytest.warns(RuntimeWarning, match="1 of 7 trajectories failed"):
        batch = integrate_batch(f, ic, None, 1.0, parallel_mode="threads", max_workers=2)

    assert batch.n_failed == 1
    assert batch.status[3] == RHS_ERROR
    assert np.all(np.isnan(batch.states[3]))
    keep = np.arange(7) != 3
    np.testing.assert_allclose(batch.states[keep], ic[keep])
    assert np.all(batch.status[keep] == OK)


def test_finite_time_blowup_is_flagged():
    # u' = u**2 from u0 = 1 escapes to infinity at t = 1.
    def f(u, p, t):
        return u * u

    ic = np.array([[1.0, 0.0], [0.0, 0.0]])
    with pytest.warns(RuntimeWarning):
        batch = integrate_batch(f, ic, None, 2.0, parallel_mode="none")
    assert batch.status[0] in (int(Status.STEPFAIL), NAN_DETECTED)
    assert np.all(np.isnan(batch.states[0]))
    assert batch.status[1] == OK
    np.testing.assert_allclose(batch.states[1], [0.0, 0.0])


def test_pool_modes_agree():
    field = linear_field([[-1.0, 2.0], [-2.0, -1.0]])
    ic = _ic(12)
    serial = integrate_batch(field, ic, None, 3.0, parallel_mode="none")
    threads = integrate_batch(field, ic, None, 3.0, parallel_mode="threads", max_workers=4)
    procs = integrate_batch(field, ic, None, 3.0, parallel_mode="process", max_workers=2)
    np.testing.assert_array_equal(serial.states, threads.states)
    np.testing.assert_array_equal(serial.states, procs.states)
    np.testing.assert_array_equal(serial.status, procs.status)


def test_config_supplies_pool_defaults():
    cfg = SolverConfig(parallel_mode="none", max_workers=1, method="DOP853", rtol=1e-10, atol=1e-12)
    batch = integrate_batch(_decay, _ic(3), 1.0, 1.0, config=cfg)
    np.testing.assert_allclose(batch.states, _ic(3) * math.exp(-1.0), rtol=1e-8)


def test_empty_batch():
    batch = integrate_batch(_decay, np.zeros((0, 2)), 1.0, 1.0)
    assert len(batch) == 0
    assert batch.states.shape == (0, 2)


def test_validation():
    with pytest.raises(ValueError, match="tmax"):
        integrate_batch(_decay, _ic(2), 1.0, 0.0)
    with pytest.raises(ValueError, match="max_workers"):
        integrate_batch(_decay, _ic(2), 1.0, 1.0, max_workers=0)
    with pytest.raises(ConfigError, match="parallel mode"):
        integrate_batch(_decay, _ic(2), 1.0, 1.0, parallel_mode="gpu")
    with pytest.raises(VectorFieldSignatureError):
        integrate_batch(lambda du, u, p, t: None, _ic(2), 1.0, 1.0)


def test_integrate_single_trajectory():
    ts = np.linspace(0.0, 1.0, 11)
    sol = integrate(_decay, [1.0, -1.0], 2.0, (0.0, 1.0), t_eval=ts)
    np.testing.assert_allclose(sol.t, ts)
    np.testing.assert_allclose(sol.y[0], np.exp(-2.0 * ts), rtol=1e-4)
    np.testing.assert_allclose(sol.y[1], -np.exp(-2.0 * ts), rtol=1e-4)


def test_integrate_wraps_field_errors():
    def f(u, p, t):
        raise ZeroDivisionError("bad field")

    with pytest.raises(IntegrationError, match="bad field") as excinfo:
        integrate(f, [1.0], None, (0.0, 1.0))
    assert excinfo.value.t_span == (0.0, 1.0)
    assert isinstance(excinfo.value.__cause__, ZeroDivisionError)


def test_integrate_rejects_t_eval_outside_span():
    with pytest.raises(ValueError, match="t_eval"):
        integrate(_decay, [1.0], 1.0, (0.0, 1.0), t_eval=[0.5, 2.0])
