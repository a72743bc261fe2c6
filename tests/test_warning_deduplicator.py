"""Tests for the stateless day-window warning deduplication."""

from datetime import timedelta

from syncguard.models.job import JobStatus
from syncguard.services.history_scanner import StreakSummary
from syncguard.services.warning_deduplicator import (
    find_previous_failed_job,
    should_send_window_warning,
    warning_previously_sent,
)
from tests.factories import NOW, make_job

F = JobStatus.FAILED
C = JobStatus.CANCELLED
WARN_DAYS = 5


def _first_job(age_days: float):
    ts = NOW - timedelta(days=age_days)
    return make_job(F, ts, job_id=1, created_at=ts)


class TestFindPreviousFailedJob:

    def test_single_job_window(self):
        assert find_previous_failed_job([make_job(F, NOW)]) is None

    def test_skips_current_job(self):
        window = [make_job(F, NOW, job_id=3), make_job(F, NOW - timedelta(days=1), job_id=2)]
        assert find_previous_failed_job(window).id == 2

    def test_skips_non_failed_jobs(self):
        window = [
            make_job(F, NOW, job_id=4),
            make_job(C, NOW - timedelta(hours=1), job_id=3),
            make_job(F, NOW - timedelta(hours=2), job_id=2),
            make_job(C, NOW - timedelta(hours=3), job_id=1),
        ]
        assert find_previous_failed_job(window).id == 2

    def test_falls_back_to_last_job(self):
        window = [
            make_job(F, NOW, job_id=3),
            make_job(C, NOW - timedelta(hours=1), job_id=2),
            make_job(C, NOW - timedelta(hours=2), job_id=1),
        ]
        assert find_previous_failed_job(window).id == 1


class TestWarningPreviouslySent:

    def test_single_job_never_previously_sent(self):
        window = [make_job(F, NOW)]
        assert warning_previously_sent(StreakSummary(1), WARN_DAYS, _first_job(8), window) is False

    def test_no_success_previous_failure_far_from_first_job(self):
        """Previous failure 6 days after the first job -> warning already held."""
        window = [make_job(F, NOW, job_id=3), make_job(F, NOW - timedelta(days=1), job_id=2)]
        assert warning_previously_sent(StreakSummary(2), WARN_DAYS, _first_job(7), window) is True

    def test_no_success_previous_failure_close_to_first_job(self):
        """Previous failure 4 days after the first job -> this is the first warning."""
        window = [make_job(F, NOW, job_id=3), make_job(F, NOW - timedelta(days=2), job_id=2)]
        assert warning_previously_sent(StreakSummary(2), WARN_DAYS, _first_job(6), window) is False

    def test_success_measured_from_success(self):
        success_at = NOW - timedelta(days=8)
        window = [
            make_job(F, NOW, job_id=3),
            make_job(F, NOW - timedelta(days=1), job_id=2),
            make_job(JobStatus.SUCCEEDED, success_at, job_id=1),
        ]
        summary = StreakSummary(2, success_at)
        # previous failure is 7 days after the success
        assert warning_previously_sent(summary, WARN_DAYS, _first_job(40), window) is True

    def test_success_close_to_previous_failure(self):
        success_at = NOW - timedelta(days=5, hours=12)
        window = [
            make_job(F, NOW, job_id=3),
            make_job(F, NOW - timedelta(days=1), job_id=2),
            make_job(JobStatus.SUCCEEDED, success_at, job_id=1),
        ]
        summary = StreakSummary(2, success_at)
        # previous failure is 4.5 days after the success
        assert warning_previously_sent(summary, WARN_DAYS, _first_job(40), window) is False


class TestShouldSendWindowWarning:

    def test_suppressed_when_previously_sent_and_streak_longer_than_one(self):
        window = [make_job(F, NOW, job_id=3), make_job(F, NOW - timedelta(days=1), job_id=2)]
        assert should_send_window_warning(StreakSummary(2), WARN_DAYS, _first_job(7), window) is False

    def test_sent_for_single_failure_even_if_predicate_held(self):
        """A lone failure after a cancelled run always warns."""
        window = [make_job(F, NOW, job_id=3), make_job(C, NOW - timedelta(days=1), job_id=2)]
        assert should_send_window_warning(StreakSummary(1), WARN_DAYS, _first_job(7), window) is True

    def test_sent_when_not_previously_sent(self):
        window = [make_job(F, NOW, job_id=3), make_job(F, NOW - timedelta(days=2), job_id=2)]
        assert should_send_window_warning(StreakSummary(2), WARN_DAYS, _first_job(6), window) is True
