"""Tests for the run-result tracker."""

import pytest

from autotest_engine.models import RunStatus
from autotest_engine.tracker import RunResultTracker, round_seconds


class TestRoundSeconds:
    """Round half up to whole seconds."""

    @pytest.mark.parametrize(
        "duration,expected",
        [(4.6, 5), (4.4, 4), (4.5, 5), (125.0, 125), (0.0, 0), (0.49, 0), (0.5, 1)],
    )
    def test_rounding(self, duration, expected):
        assert round_seconds(duration) == expected

    def test_negative_rounds_away_from_zero(self):
        assert round_seconds(-4.5) == -5


class TestRecordOutcome:
    """State transitions and their messages."""

    def test_first_success_sets_working_without_message(self):
        tracker = RunResultTracker()
        assert tracker.status is RunStatus.STARTING

        message = tracker.record_outcome(True, now=10.0)

        assert message is None
        assert tracker.status is RunStatus.WORKING
        assert tracker.time_success == 10.0

    def test_first_failure_reports_reason_only(self):
        tracker = RunResultTracker()

        message = tracker.record_outcome(False, now=3.0, reason="exit status 1")

        assert message == "error: exit status 1"
        assert tracker.status is RunStatus.FAILING
        assert tracker.time_failure == 3.0

    def test_success_after_failures(self):
        tracker = RunResultTracker()
        tracker.record_outcome(False, now=0.0, reason="exit status 1")

        message = tracker.record_outcome(True, now=125.0)

        assert message == "success after 125s failures"
        assert tracker.status is RunStatus.WORKING
        assert tracker.time_success == 125.0

    def test_failure_after_success_includes_success_duration(self):
        tracker = RunResultTracker()
        tracker.record_outcome(True, now=0.0)

        message = tracker.record_outcome(False, now=4.6, reason="exit status 2")

        assert message == "error: exit status 2 (5s success)"

    def test_success_duration_rounds_down(self):
        tracker = RunResultTracker()
        tracker.record_outcome(True, now=0.0)

        assert tracker.record_outcome(False, now=4.4, reason="x") == "error: x (4s success)"

    def test_repeated_failures_keep_first_failure_time(self):
        tracker = RunResultTracker()
        tracker.record_outcome(True, now=0.0)
        tracker.record_outcome(False, now=10.0, reason="boom")

        message = tracker.record_outcome(False, now=20.0, reason="boom")

        assert message == "error: boom"
        assert tracker.time_failure == 10.0
        assert tracker.record_outcome(True, now=32.5) == "success after 23s failures"

    def test_repeated_successes_keep_first_success_time(self):
        tracker = RunResultTracker()
        tracker.record_outcome(True, now=1.0)

        assert tracker.record_outcome(True, now=5.0) is None
        assert tracker.time_success == 1.0
        assert tracker.record_outcome(False, now=11.5, reason="x") == "error: x (11s success)"

    def test_failure_from_starting_has_no_success_duration(self):
        tracker = RunResultTracker()
        message = tracker.record_outcome(False, now=100.0, reason="x")
        assert "success" not in message
