"""Builders turning domain events into :class:`NotificationIntent` objects.

Both the REST endpoints and the webhook ingestor build their intents here so
titles, previews and payload shapes stay identical whichever path created
the notification.
"""

from __future__ import annotations

from typing import Any

from app.domain.entities import (
    NOTIFICATION_KINDS,
    NOTIFICATION_KIND_CALL,
    NOTIFICATION_KIND_MESSAGE,
    NOTIFICATION_KIND_OTHER,
    NOTIFICATION_KIND_SYSTEM,
    PUSH_PRIORITY_HIGH,
    PUSH_PRIORITY_NORMAL,
    NotificationIntent,
)
from app.infrastructure.notifications import (
    EVENT_INCOMING_CALL,
    EVENT_NEW_ASSIGNMENT,
    EVENT_NEW_MESSAGE,
    EVENT_SYSTEM_NOTIFICATION,
)
from app.utils import now_in_app_timezone

DEFAULT_PREVIEW_LENGTH = 100
DEFAULT_SENDER_NAME = "Someone"


class NotificationIntentError(ValueError):
    """Raised when an intent is missing data required to create it."""


def truncate_preview(text: str, limit: int = DEFAULT_PREVIEW_LENGTH) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def build_message_intent(
    *,
    recipient_id: int | None,
    sender_id: int | None,
    sender_name: str | None,
    text: str | None,
    conversation_id: str | None,
    message_id: str | None = None,
    preview_length: int = DEFAULT_PREVIEW_LENGTH,
) -> NotificationIntent:
    name = (sender_name or "").strip() or DEFAULT_SENDER_NAME
    content = (text or "").strip() or "New message"
    preview = truncate_preview(content, preview_length)
    return NotificationIntent(
        kind=NOTIFICATION_KIND_MESSAGE,
        recipient_id=recipient_id,
        sender_id=sender_id,
        title=f"New message from {name}",
        message=f"{name}: {preview}",
        data={
            "conversationId": conversation_id,
            "messageId": message_id,
            "messageContent": content,
            "senderName": name,
            "timestamp": now_in_app_timezone().isoformat(),
        },
        realtime_event=EVENT_NEW_MESSAGE,
        realtime_extra={"conversationId": conversation_id},
        push_priority=PUSH_PRIORITY_NORMAL,
    )


def build_call_intent(
    *,
    recipient_id: int | None,
    caller: dict[str, Any],
    call_id: str,
    call_type: str = "video",
) -> NotificationIntent:
    """Incoming call notifications always request a high priority push."""

    if not call_id:
        raise NotificationIntentError("El identificador de la llamada es obligatorio")
    caller_name = (caller.get("name") or "").strip() or DEFAULT_SENDER_NAME
    call_data = {
        "callId": call_id,
        "callType": call_type or "video",
        "caller": {
            "id": caller.get("id"),
            "name": caller_name,
            "avatarUrl": caller.get("avatarUrl"),
        },
    }
    return NotificationIntent(
        kind=NOTIFICATION_KIND_CALL,
        recipient_id=recipient_id,
        sender_id=caller.get("id"),
        title="Incoming Call",
        message=f"{caller_name} is calling you",
        data=call_data,
        realtime_event=EVENT_INCOMING_CALL,
        realtime_extra={"callData": call_data},
        push_priority=PUSH_PRIORITY_HIGH,
    )


def build_system_intent(
    *,
    recipient_id: int | None,
    title: str,
    message: str,
    sender_id: int | None = None,
    data: dict[str, Any] | None = None,
    push_priority: str | None = PUSH_PRIORITY_NORMAL,
) -> NotificationIntent:
    return NotificationIntent(
        kind=NOTIFICATION_KIND_SYSTEM,
        recipient_id=recipient_id,
        sender_id=sender_id,
        title=title,
        message=message,
        data=dict(data or {}),
        realtime_event=EVENT_SYSTEM_NOTIFICATION,
        push_priority=push_priority,
    )


def build_assignment_intent(
    *,
    recipient_id: int | None,
    sender_id: int | None,
    sender_name: str | None,
    assignment_type: str,
    assignment_id: str,
    title: str | None = None,
    message: str | None = None,
) -> NotificationIntent:
    name = (sender_name or "").strip() or DEFAULT_SENDER_NAME
    return NotificationIntent(
        kind=NOTIFICATION_KIND_OTHER,
        recipient_id=recipient_id,
        sender_id=sender_id,
        title=title or "New assignment",
        message=message or f"{name} assigned you a new {assignment_type}",
        data={"assignmentType": assignment_type, "assignmentId": assignment_id},
        realtime_event=EVENT_NEW_ASSIGNMENT,
        realtime_extra={
            "assignmentType": assignment_type,
            "assignmentId": assignment_id,
        },
        push_priority=PUSH_PRIORITY_NORMAL,
    )


def build_generic_intent(
    *,
    kind: str,
    recipient_id: int | None,
    title: str,
    message: str,
    sender_id: int | None = None,
    data: dict[str, Any] | None = None,
) -> NotificationIntent:
    if kind not in NOTIFICATION_KINDS:
        raise NotificationIntentError(f"Tipo de notificación desconocido '{kind}'")
    return NotificationIntent(
        kind=kind,
        recipient_id=recipient_id,
        sender_id=sender_id,
        title=title,
        message=message,
        data=dict(data or {}),
    )


__all__ = [
    "DEFAULT_PREVIEW_LENGTH",
    "NotificationIntentError",
    "build_assignment_intent",
    "build_call_intent",
    "build_generic_intent",
    "build_message_intent",
    "build_system_intent",
    "truncate_preview",
]
