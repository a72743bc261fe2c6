"""Auto-disable activity for connections whose replication jobs keep failing.

Given a connection id and the current time, sets the connection to inactive
when either:
    - it failed ``max_failed_jobs_in_a_row_before_connection_disable`` jobs
      in a row, or
    - every job in the past
      ``max_days_of_only_failed_jobs_before_connection_disable`` days failed
      and its first replication job is at least that many days old.

A warning notification is sent when a connection gets halfway to either
limit, unless the previous failure already implied the same warning.

Exports:
    AutoDisableConnectionActivity  -- orchestrates one evaluation
    build_auto_disable_activity    -- wire the activity to a DB session
"""

from __future__ import annotations

from datetime import timedelta, timezone
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from syncguard.config import Settings, get_settings
from syncguard.exceptions import AutoDisablePreconditionError, RetryableError
from syncguard.models.connection import ConnectionStatus
from syncguard.models.job import REPLICATION_TYPES
from syncguard.schemas.auto_disable import (
    AutoDisableConnectionInput,
    AutoDisableConnectionOutput,
)
from syncguard.services.connection_store import ConnectionStore
from syncguard.services.disable_policy import Decision, DisableDecisionEngine, Thresholds
from syncguard.services.history_scanner import scan_history
from syncguard.services.job_persistence import JobPersistence, JobRecord
from syncguard.services.telegram_notifier import (
    NotificationKind,
    TelegramNotifier,
    get_notifier,
)
from syncguard.services.warning_deduplicator import should_send_window_warning


class AutoDisableConnectionActivity:
    """Evaluate one connection and apply the resulting disable or warning.

    Collaborators are injected so the scheduler, the API and tests can each
    supply their own. Any failure during an evaluation surfaces as
    ``RetryableError``; retrying is up to the caller.
    """

    def __init__(
        self,
        job_persistence: JobPersistence,
        connection_store: ConnectionStore,
        notifier: TelegramNotifier,
        settings: Settings,
    ) -> None:
        self.job_persistence = job_persistence
        self.connection_store = connection_store
        self.notifier = notifier
        self.settings = settings

    async def auto_disable_failing_connection(
        self, activity_input: AutoDisableConnectionInput
    ) -> AutoDisableConnectionOutput:
        if not self.settings.auto_disables_failing_connections:
            return AutoDisableConnectionOutput(disabled=False)

        try:
            return await self._evaluate(activity_input)
        except Exception as exc:
            raise RetryableError(
                f"Auto-disable evaluation failed for connection "
                f"{activity_input.connection_id}: {exc}"
            ) from exc

    async def _evaluate(
        self, activity_input: AutoDisableConnectionInput
    ) -> AutoDisableConnectionOutput:
        connection_id = activity_input.connection_id
        now = activity_input.curr_timestamp
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        thresholds = Thresholds.from_settings(self.settings)
        engine = DisableDecisionEngine(thresholds)

        last_job = await self.job_persistence.get_last_replication_job(connection_id)
        if last_job is None:
            raise AutoDisablePreconditionError(
                "Auto-disable should not have been attempted if the latest "
                "replication job cannot be found."
            )

        window = await self.job_persistence.list_job_status_and_timestamp(
            connection_id,
            REPLICATION_TYPES,
            now - timedelta(days=thresholds.max_failure_window_days),
        )
        summary = scan_history(window)

        decision = engine.check_consecutive_failures(summary)
        if decision is None:
            first_job = await self.job_persistence.get_first_replication_job(connection_id)
            if first_job is None:
                raise AutoDisablePreconditionError(
                    "Auto-disable should not have been attempted if no "
                    "replication job has been run."
                )
            decision = engine.check_failure_window(summary, first_job, now)
            if decision == Decision.WARN_WINDOW and not should_send_window_warning(
                summary, thresholds.warn_window_days, first_job, window
            ):
                logger.debug(
                    "Connection {} window warning already implied by previous failure",
                    connection_id,
                )
                decision = Decision.NO_ACTION

        logger.info(
            "Auto-disable evaluated | connection={connection} failures={failures} "
            "last_success={last_success} decision={decision}",
            connection=connection_id,
            failures=summary.consecutive_failures,
            last_success=summary.last_success_at,
            decision=decision.value,
        )

        if decision == Decision.DISABLE:
            await self._disable_connection(connection_id, last_job)
            return AutoDisableConnectionOutput(disabled=True)
        if decision in (Decision.WARN_CONSECUTIVE, Decision.WARN_WINDOW):
            await self.notifier.notify_auto_disable(
                NotificationKind.CONNECTION_DISABLED_WARNING, last_job
            )
        return AutoDisableConnectionOutput(disabled=False)

    async def _disable_connection(self, connection_id: UUID, last_job: JobRecord) -> None:
        await self.connection_store.set_status(connection_id, ConnectionStatus.INACTIVE)
        await self.notifier.notify_auto_disable(
            NotificationKind.CONNECTION_DISABLED, last_job
        )


def build_auto_disable_activity(
    session: AsyncSession,
    settings: Settings | None = None,
    notifier: TelegramNotifier | None = None,
) -> AutoDisableConnectionActivity:
    """Create an activity whose storage collaborators share ``session``.

    The notifier defaults to the process-wide instance from ``get_notifier``.
    """
    return AutoDisableConnectionActivity(
        job_persistence=JobPersistence(session),
        connection_store=ConnectionStore(session),
        notifier=notifier or get_notifier(),
        settings=settings or get_settings(),
    )
