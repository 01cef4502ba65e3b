"""Use cases for creating, delivering and reading notifications."""

from .dispatcher import (
    NotificationDispatcher,
    RecipientNotFoundError,
    UserEventPublisher,
)
from .intents import (
    NotificationIntentError,
    build_assignment_intent,
    build_call_intent,
    build_generic_intent,
    build_message_intent,
    build_system_intent,
    truncate_preview,
)
from .listing import NotificationPage, list_notifications
from .presence import mark_user_offline, mark_user_online, presence_payload
from .sync import SyncSnapshot, build_sync_snapshot, missed_since

__all__ = [
    "NotificationDispatcher",
    "NotificationIntentError",
    "NotificationPage",
    "RecipientNotFoundError",
    "SyncSnapshot",
    "UserEventPublisher",
    "build_assignment_intent",
    "build_call_intent",
    "build_generic_intent",
    "build_message_intent",
    "build_sync_snapshot",
    "build_system_intent",
    "list_notifications",
    "mark_user_offline",
    "mark_user_online",
    "missed_since",
    "presence_payload",
    "truncate_preview",
]
