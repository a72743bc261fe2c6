"""Exception types raised by the auto-disable policy and its collaborators."""

from __future__ import annotations

from uuid import UUID


class AutoDisablePreconditionError(Exception):
    """The policy ran for a connection that has no replication job history."""


class ConnectionNotFoundError(Exception):
    """No connection row exists for the given id."""

    def __init__(self, connection_id: UUID) -> None:
        super().__init__(f"Connection {connection_id} not found")
        self.connection_id = connection_id


class RetryableError(Exception):
    """Wraps any failure raised while evaluating a connection.

    The invoking scheduler decides whether and when to re-attempt the whole
    evaluation; the original exception is available as ``__cause__``.
    """
