"""
Notification dispatch for credit economy events.

The dispatcher is told about unlocks and top-ups after they commit. It owns
no business logic, and a failing dispatcher never changes the outcome of the
operation that triggered it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol

from supabase import Client  # type: ignore[import-not-found]

logger = logging.getLogger(__name__)

LEAD_UNLOCKED = "lead_unlocked"
CREDITS_TOPPED_UP = "credits_topped_up"


@dataclass(frozen=True, slots=True)
class CreditEvent:
    event_type: str
    account_id: str
    payload: Dict[str, Any] = field(default_factory=dict)


class NotificationDispatcher(Protocol):
    def dispatch(self, event: CreditEvent) -> None: ...


class LoggingNotificationDispatcher:
    """Default dispatcher: records events in the application log."""

    def dispatch(self, event: CreditEvent) -> None:
        logger.info(
            "Credit event",
            extra={"event_type": event.event_type, "account_id": event.account_id, **event.payload},
        )


class RecordingNotificationDispatcher:
    """Keeps dispatched events in memory (local development and tests)."""

    def __init__(self) -> None:
        self.events: List[CreditEvent] = []

    def dispatch(self, event: CreditEvent) -> None:
        self.events.append(event)


_MESSAGES = {
    LEAD_UNLOCKED: ("Lead unlocked", "Contact details are now available for your lead."),
    CREDITS_TOPPED_UP: ("Credits added", "Your wallet has been topped up."),
}


class SupabaseNotificationDispatcher:
    """Inserts an in-app notification row for the account."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def dispatch(self, event: CreditEvent) -> None:
        title, message = _MESSAGES.get(event.event_type, ("Account update", "Your account was updated."))
        response = (
            self._client.table("notifications")
            .insert(
                {
                    "user_id": event.account_id,
                    "title": title,
                    "message": message,
                    "type": "success",
                }
            )
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to insert notification: {error}")


def safe_dispatch(dispatcher: NotificationDispatcher, event: CreditEvent) -> None:
    """Dispatch an event, logging (not raising) any failure."""

    try:
        dispatcher.dispatch(event)
    except Exception:
        logger.exception(
            "Notification dispatch failed",
            extra={"event_type": event.event_type, "account_id": event.account_id},
        )


__all__ = [
    "LEAD_UNLOCKED",
    "CREDITS_TOPPED_UP",
    "CreditEvent",
    "NotificationDispatcher",
    "LoggingNotificationDispatcher",
    "RecordingNotificationDispatcher",
    "SupabaseNotificationDispatcher",
    "safe_dispatch",
]
