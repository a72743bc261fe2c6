"""Telegram notifications for auto-disabled and soon-to-be-disabled connections.

Sends HTML messages via the Telegram Bot API with retry logic and rate
limiting. Designed as fire-and-forget: notification failures are logged but
never raised to the caller, so a broken channel cannot block a disable.

Exports:
    NotificationKind  -- which auto-disable notification to send
    TelegramNotifier  -- main service class
    get_notifier      -- process-wide notifier instance
"""

from __future__ import annotations

import asyncio
from enum import Enum
from functools import lru_cache
from html import escape

import httpx
from loguru import logger
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from syncguard.config import get_settings
from syncguard.services.job_persistence import JobRecord


class NotificationKind(str, Enum):
    CONNECTION_DISABLED = "auto_disable_connection"
    CONNECTION_DISABLED_WARNING = "auto_disable_connection_warning"


class TelegramNotifier:
    """Sends auto-disable notifications via Telegram Bot API.

    Features:
        - HTML-formatted messages
        - Retry with exponential backoff (3 attempts) on HTTP errors
        - Rate limiting: max 1 message per second per chat
        - Disabled mode when bot_token or chat_id is empty
    """

    TELEGRAM_API = "https://api.telegram.org/bot{token}/sendMessage"

    def __init__(self, bot_token: str, chat_id: str) -> None:
        self.bot_token = bot_token
        self.chat_id = chat_id
        self._rate_lock = asyncio.Lock()
        self._last_send: float = 0.0

    @property
    def enabled(self) -> bool:
        """Return True if both bot_token and chat_id are configured."""
        return bool(self.bot_token and self.chat_id)

    async def _rate_limit(self) -> None:
        """Sleep so that at most one message per second reaches the chat."""
        loop = asyncio.get_running_loop()
        async with self._rate_lock:
            elapsed = loop.time() - self._last_send
            if elapsed < 1.0:
                await asyncio.sleep(1.0 - elapsed)
            self._last_send = loop.time()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((httpx.HTTPStatusError, httpx.ConnectError)),
    )
    async def _send_message(self, text: str) -> dict:
        """POST to Telegram sendMessage, retrying transient HTTP failures."""
        await self._rate_limit()
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.post(
                self.TELEGRAM_API.format(token=self.bot_token),
                json={
                    "chat_id": self.chat_id,
                    "text": text,
                    "parse_mode": "HTML",
                },
            )
            response.raise_for_status()
            return response.json()

    def format_auto_disable(self, kind: NotificationKind, job: JobRecord) -> str:
        """Format an auto-disable notification for the connection of ``job``.

        Args:
            kind: Disabled notice or advance warning.
            job: Most recent replication job of the connection.

        Returns:
            HTML-formatted string safe for Telegram parse_mode="HTML".
        """
        details = (
            f"<b>Connection:</b> <code>{job.connection_id}</code>\n"
            f"<b>Last job:</b> #{job.id} ({escape(job.status.value)})\n"
            f"<b>Updated:</b> {job.updated_at:%Y-%m-%d %H:%M} UTC"
        )
        if kind == NotificationKind.CONNECTION_DISABLED:
            return (
                f"\U0001f6d1 <b>Connection Disabled</b>\n\n"
                f"{details}\n\n"
                f"<i>The connection kept failing and has been set to inactive. "
                f"Fix the underlying error and re-enable it to resume syncs.</i>"
            )
        return (
            f"\u26a0\ufe0f <b>Connection Failing</b>\n\n"
            f"{details}\n\n"
            f"<i>The connection is halfway to being disabled automatically.</i>"
        )

    async def notify_auto_disable(self, kind: NotificationKind, job: JobRecord) -> None:
        """Send an auto-disable notification via Telegram. Never raises."""
        if not self.enabled:
            logger.debug(
                "Telegram disabled, skipping {} notification for connection {}",
                kind.value,
                job.connection_id,
            )
            return

        try:
            text = self.format_auto_disable(kind, job)
            await self._send_message(text)
            logger.info(
                "Telegram {} notification sent for connection {}",
                kind.value,
                job.connection_id,
            )
        except Exception:
            logger.exception(
                "Telegram {} notification failed for connection {}",
                kind.value,
                job.connection_id,
            )


@lru_cache
def get_notifier() -> TelegramNotifier:
    """Return the shared notifier, so one rate limit covers every sender."""
    settings = get_settings()
    return TelegramNotifier(
        bot_token=settings.telegram_bot_token,
        chat_id=settings.telegram_chat_id,
    )
