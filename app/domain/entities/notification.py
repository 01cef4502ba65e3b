"""Domain entities describing user notifications."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Final

NOTIFICATION_KIND_MESSAGE: Final[str] = "message"
NOTIFICATION_KIND_CALL: Final[str] = "call"
NOTIFICATION_KIND_APPOINTMENT: Final[str] = "appointment"
NOTIFICATION_KIND_SYSTEM: Final[str] = "system"
NOTIFICATION_KIND_MOOD: Final[str] = "mood"
NOTIFICATION_KIND_OTHER: Final[str] = "other"

NOTIFICATION_KINDS: Final[frozenset[str]] = frozenset(
    {
        NOTIFICATION_KIND_MESSAGE,
        NOTIFICATION_KIND_CALL,
        NOTIFICATION_KIND_APPOINTMENT,
        NOTIFICATION_KIND_SYSTEM,
        NOTIFICATION_KIND_MOOD,
        NOTIFICATION_KIND_OTHER,
    }
)

PUSH_PRIORITY_NORMAL: Final[str] = "normal"
PUSH_PRIORITY_HIGH: Final[str] = "high"


@dataclass
class Notification:
    """Information message delivered to a specific user."""

    id: int | None
    recipient_id: int
    sender_id: int | None
    kind: str
    title: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    read: bool = False
    created_at: datetime | None = None
    read_at: datetime | None = None


@dataclass
class NotificationIntent:
    """Request to create and deliver a notification.

    ``realtime_event`` names the kind-specific event emitted next to the
    generic ``notification`` one; ``push_priority`` is ``None`` when no mobile
    push should be attempted.
    """

    kind: str
    recipient_id: int | None
    title: str
    message: str
    sender_id: int | None = None
    data: dict[str, Any] = field(default_factory=dict)
    realtime_event: str | None = None
    realtime_extra: dict[str, Any] = field(default_factory=dict)
    push_priority: str | None = PUSH_PRIORITY_NORMAL


@dataclass(frozen=True)
class NotificationCounts:
    """Read-state summary for one recipient."""

    unread_count: int
    total_count: int

    def as_payload(self) -> dict[str, int]:
        return {"unreadCount": self.unread_count, "totalCount": self.total_count}


__all__ = [
    "Notification",
    "NotificationCounts",
    "NotificationIntent",
    "NOTIFICATION_KINDS",
    "NOTIFICATION_KIND_APPOINTMENT",
    "NOTIFICATION_KIND_CALL",
    "NOTIFICATION_KIND_MESSAGE",
    "NOTIFICATION_KIND_MOOD",
    "NOTIFICATION_KIND_OTHER",
    "NOTIFICATION_KIND_SYSTEM",
    "PUSH_PRIORITY_HIGH",
    "PUSH_PRIORITY_NORMAL",
]
