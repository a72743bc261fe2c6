"""Suppress day-window warnings that an earlier failure already triggered.

No "warning sent" flag is stored. Instead the day-window warning predicate is
replayed as of the previous failed job: if it already held then, the warning
went out at that point and sending it again would only be noise.
"""

from __future__ import annotations

from collections.abc import Sequence

from syncguard.models.job import JobStatus
from syncguard.services.disable_policy import days_between
from syncguard.services.history_scanner import StreakSummary
from syncguard.services.job_persistence import JobRecord


def find_previous_failed_job(window: Sequence[JobRecord]) -> JobRecord | None:
    """Return the first failed job after the current one (index 0).

    Falls back to the last job in the window when none of them failed.
    """
    if len(window) <= 1:
        return None
    for job in window[1:]:
        if job.status == JobStatus.FAILED:
            return job
    return window[-1]


def warning_previously_sent(
    summary: StreakSummary,
    warn_window_days: int,
    first_job: JobRecord,
    window: Sequence[JobRecord],
) -> bool:
    """Whether the day-window warning already held at the previous failure.

    With a success in the window, the previous failure must be at least
    ``warn_window_days`` after that success. Without one, it must be at least
    that long after the connection's first job.
    """
    prev_failed_job = find_previous_failed_job(window)
    if prev_failed_job is None:
        return False

    if summary.has_success:
        reference = summary.last_success_at
    else:
        reference = first_job.updated_at
    return days_between(prev_failed_job.updated_at, reference) >= warn_window_days


def should_send_window_warning(
    summary: StreakSummary,
    warn_window_days: int,
    first_job: JobRecord,
    window: Sequence[JobRecord],
) -> bool:
    if summary.consecutive_failures > 1 and warning_previously_sent(
        summary, warn_window_days, first_job, window
    ):
        return False
    return True
