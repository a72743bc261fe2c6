"""Disable and warning criteria for failing connections.

A connection is disabled when either:
    - its consecutive failure count hits ``max_consecutive_failures``
    - every job in the past ``max_failure_window_days`` failed and its first
      replication job is at least that many days old

Warnings fire at half of each limit (floor division). The count-based rules
use exact equality so they fire once per streak: the policy runs after each
completed job, so the count moves by at most one between evaluations.

Exports:
    Thresholds             -- disable limits and derived warning limits
    Decision               -- verdict of one evaluation
    DisableDecisionEngine  -- two-phase rule evaluation
    days_between           -- whole elapsed days between two instants
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from syncguard.config import Settings
from syncguard.services.history_scanner import StreakSummary
from syncguard.services.job_persistence import JobRecord

SECONDS_PER_DAY = 86400


def days_between(later: datetime, earlier: datetime) -> int:
    """Elapsed whole days from ``earlier`` to ``later``, truncated toward zero.

    Not calendar aware: 23h59m is 0 days, 24h is 1 day. Both instants are
    cut to whole epoch seconds before subtracting, so sub-second parts never
    tip the result across a day boundary.
    """
    seconds = int(later.timestamp()) - int(earlier.timestamp())
    days = abs(seconds) // SECONDS_PER_DAY
    return days if seconds >= 0 else -days


@dataclass(frozen=True)
class Thresholds:
    max_consecutive_failures: int
    max_failure_window_days: int

    def __post_init__(self) -> None:
        if self.max_consecutive_failures < 1:
            raise ValueError("max_consecutive_failures must be >= 1")
        if self.max_failure_window_days < 1:
            raise ValueError("max_failure_window_days must be >= 1")

    @property
    def warn_consecutive_failures(self) -> int:
        return self.max_consecutive_failures // 2

    @property
    def warn_window_days(self) -> int:
        return self.max_failure_window_days // 2

    @classmethod
    def from_settings(cls, settings: Settings) -> Thresholds:
        return cls(
            max_consecutive_failures=settings.max_failed_jobs_in_a_row_before_connection_disable,
            max_failure_window_days=settings.max_days_of_only_failed_jobs_before_connection_disable,
        )


class Decision(str, Enum):
    NO_ACTION = "no_action"
    DISABLE = "disable"
    WARN_CONSECUTIVE = "warn_consecutive"
    WARN_WINDOW = "warn_window"


class DisableDecisionEngine:
    """Apply the disable/warn rules to a streak summary.

    Evaluation is split in two so callers can skip fetching the first-ever
    job when the count-based rules already decide the outcome:

        decision = engine.check_consecutive_failures(summary)
        if decision is None:
            first_job = ...  # fetch lazily
            decision = engine.check_failure_window(summary, first_job, now)

    A ``WARN_WINDOW`` result is a candidate only; see
    ``warning_deduplicator.should_send_window_warning``.
    """

    def __init__(self, thresholds: Thresholds) -> None:
        self.thresholds = thresholds

    def check_consecutive_failures(self, summary: StreakSummary) -> Decision | None:
        """Count-based rules. Returns None when they are inconclusive."""
        count = summary.consecutive_failures
        if count == 0:
            return Decision.NO_ACTION
        if count == self.thresholds.max_consecutive_failures:
            return Decision.DISABLE
        if count == self.thresholds.warn_consecutive_failures:
            return Decision.WARN_CONSECUTIVE
        return None

    def check_failure_window(
        self, summary: StreakSummary, first_job: JobRecord, now: datetime
    ) -> Decision:
        """Day-window rules, evaluated against the connection's first job.

        The first-job age guard keeps a brand new connection whose very first
        run failed from being disabled or warned about.
        """
        days_since_first_job = days_between(now, first_job.created_at)

        if (
            days_since_first_job >= self.thresholds.max_failure_window_days
            and not summary.has_success
        ):
            return Decision.DISABLE

        warn_days = self.thresholds.warn_window_days
        success_older_than_warning = (
            not summary.has_success
            or days_between(now, summary.last_success_at) >= warn_days
        )
        if days_since_first_job >= warn_days and success_older_than_warning:
            return Decision.WARN_WINDOW

        return Decision.NO_ACTION
