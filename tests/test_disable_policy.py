"""Tests for the disable/warn decision rules and day arithmetic."""

from datetime import timedelta

import pytest

from syncguard.config import Settings
from syncguard.models.job import JobStatus
from syncguard.services.disable_policy import (
    Decision,
    DisableDecisionEngine,
    Thresholds,
    days_between,
)
from syncguard.services.history_scanner import StreakSummary
from tests.factories import NOW, make_job


# ---------------------------------------------------------------------------
# days_between
# ---------------------------------------------------------------------------

class TestDaysBetween:

    def test_whole_days(self):
        assert days_between(NOW, NOW - timedelta(days=10)) == 10

    def test_truncates_partial_days(self):
        assert days_between(NOW, NOW - timedelta(days=4, hours=23, minutes=59)) == 4

    def test_under_one_day_is_zero(self):
        assert days_between(NOW, NOW - timedelta(hours=23)) == 0

    def test_negative_truncates_toward_zero(self):
        assert days_between(NOW - timedelta(days=1, hours=12), NOW) == -1

    def test_sub_second_parts_are_dropped_before_subtracting(self):
        earlier = NOW + timedelta(milliseconds=900)
        later = NOW + timedelta(days=1, milliseconds=100)
        assert days_between(later, earlier) == 1


# ---------------------------------------------------------------------------
# Thresholds
# ---------------------------------------------------------------------------

class TestThresholds:

    def test_warning_limits_are_floor_half(self):
        thresholds = Thresholds(max_consecutive_failures=3, max_failure_window_days=15)
        assert thresholds.warn_consecutive_failures == 1
        assert thresholds.warn_window_days == 7

    def test_from_settings(self):
        settings = Settings(
            max_failed_jobs_in_a_row_before_connection_disable=20,
            max_days_of_only_failed_jobs_before_connection_disable=8,
        )
        thresholds = Thresholds.from_settings(settings)
        assert thresholds.max_consecutive_failures == 20
        assert thresholds.max_failure_window_days == 8

    @pytest.mark.parametrize("failures,days", [(0, 10), (3, 0)])
    def test_rejects_limits_below_one(self, failures, days):
        with pytest.raises(ValueError):
            Thresholds(max_consecutive_failures=failures, max_failure_window_days=days)


# ---------------------------------------------------------------------------
# Consecutive-failure rules
# ---------------------------------------------------------------------------

class TestConsecutiveFailures:

    def setup_method(self):
        self.engine = DisableDecisionEngine(
            Thresholds(max_consecutive_failures=3, max_failure_window_days=10)
        )

    def test_no_failures_is_no_action(self):
        assert self.engine.check_consecutive_failures(StreakSummary(0, NOW)) == Decision.NO_ACTION

    def test_exact_limit_disables(self):
        assert self.engine.check_consecutive_failures(StreakSummary(3)) == Decision.DISABLE

    def test_half_limit_warns(self):
        assert self.engine.check_consecutive_failures(StreakSummary(1)) == Decision.WARN_CONSECUTIVE

    def test_between_limits_is_inconclusive(self):
        assert self.engine.check_consecutive_failures(StreakSummary(2)) is None

    def test_past_limit_is_inconclusive(self):
        """Exact equality: one failure past the limit does not disable again."""
        assert self.engine.check_consecutive_failures(StreakSummary(4)) is None


# ---------------------------------------------------------------------------
# Day-window rules
# ---------------------------------------------------------------------------

class TestFailureWindow:

    def setup_method(self):
        self.engine = DisableDecisionEngine(
            Thresholds(max_consecutive_failures=3, max_failure_window_days=10)
        )

    def _first_job(self, age: timedelta):
        return make_job(JobStatus.FAILED, NOW - age, created_at=NOW - age)

    def test_old_connection_without_success_disables(self):
        decision = self.engine.check_failure_window(
            StreakSummary(4), self._first_job(timedelta(days=10)), NOW
        )
        assert decision == Decision.DISABLE

    def test_old_connection_with_recent_success_does_nothing(self):
        decision = self.engine.check_failure_window(
            StreakSummary(4, NOW - timedelta(days=2)),
            self._first_job(timedelta(days=30)),
            NOW,
        )
        assert decision == Decision.NO_ACTION

    def test_old_success_warns(self):
        decision = self.engine.check_failure_window(
            StreakSummary(4, NOW - timedelta(days=5)),
            self._first_job(timedelta(days=30)),
            NOW,
        )
        assert decision == Decision.WARN_WINDOW

    def test_halfway_without_success_warns(self):
        decision = self.engine.check_failure_window(
            StreakSummary(2), self._first_job(timedelta(days=6)), NOW
        )
        assert decision == Decision.WARN_WINDOW

    def test_young_connection_does_nothing(self):
        """A brand new connection whose first runs fail is left alone."""
        decision = self.engine.check_failure_window(
            StreakSummary(2), self._first_job(timedelta(days=4, hours=23)), NOW
        )
        assert decision == Decision.NO_ACTION
