"""Reduce a connection's recent job history to its current failure streak.

Exports:
    StreakSummary  -- consecutive failure count plus last success time
    scan_history   -- walk a newest-first window and build the summary
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from syncguard.models.job import JobStatus
from syncguard.services.job_persistence import JobRecord


@dataclass(frozen=True)
class StreakSummary:
    consecutive_failures: int
    last_success_at: datetime | None = None

    @property
    def has_success(self) -> bool:
        return self.last_success_at is not None


def scan_history(window: Sequence[JobRecord]) -> StreakSummary:
    """Count failures from the newest job back to the most recent success.

    ``window`` must be ordered most recent first. Only an explicit success
    ends the streak; cancelled, incomplete or still-running jobs are skipped
    without being counted.
    """
    failures = 0
    for job in window:
        if job.status == JobStatus.FAILED:
            failures += 1
        elif job.status == JobStatus.SUCCEEDED:
            return StreakSummary(failures, job.updated_at)
    return StreakSummary(failures)
