"""Tests for the debounce state machine."""

import pytest

from autotest_engine.debounce import DebounceEngine, DebounceState


def test_initial_state_is_idle():
    engine = DebounceEngine(0.5)
    assert engine.state is DebounceState.IDLE
    assert engine.remaining(0.0) is None
    assert engine.poll(100.0) is False


def test_observe_arms_with_settle_deadline():
    engine = DebounceEngine(0.5)
    engine.observe(10.0)

    assert engine.state is DebounceState.ARMED
    assert engine.pending
    assert engine.remaining(10.2) == pytest.approx(0.3)


def test_fires_once_after_settle():
    engine = DebounceEngine(0.5)
    engine.observe(10.0)

    assert engine.poll(10.4) is False
    assert engine.poll(10.5) is True
    assert engine.state is DebounceState.IDLE
    assert engine.poll(11.0) is False


def test_burst_fires_settle_after_last_event():
    engine = DebounceEngine(1.0)
    for t in (0.0, 0.6, 1.2, 1.8):
        engine.observe(t)
        assert engine.poll(t + 0.5) is False

    assert engine.poll(2.7) is False
    assert engine.poll(2.85) is True


def test_remaining_never_negative():
    engine = DebounceEngine(0.5)
    engine.observe(0.0)
    assert engine.remaining(5.0) == 0.0


def test_cancel_drops_pending_trigger():
    engine = DebounceEngine(0.5)
    engine.observe(0.0)
    engine.cancel()

    assert engine.state is DebounceState.IDLE
    assert engine.poll(1.0) is False


def test_zero_settle_fires_immediately():
    engine = DebounceEngine(0.0)
    engine.observe(3.0)
    assert engine.poll(3.0) is True


def test_negative_settle_rejected():
    with pytest.raises(ValueError):
        DebounceEngine(-1)
