"""Wire representations of notifications pushed to realtime clients."""

from __future__ import annotations

import copy
from typing import Any

from app.domain.entities import Notification
from app.utils import isoformat_or_none

EVENT_NOTIFICATION = "notification"
EVENT_COUNT_UPDATE = "notificationCountUpdate"
EVENT_MISSED_NOTIFICATIONS = "missedNotifications"
EVENT_USER_ONLINE_STATUS = "userOnlineStatus"
EVENT_NEW_MESSAGE = "newMessage"
EVENT_INCOMING_CALL = "incomingCall"
EVENT_SYSTEM_NOTIFICATION = "systemNotification"
EVENT_NEW_ASSIGNMENT = "newAssignment"
EVENT_APPOINTMENT_NOTIFICATION = "appointmentNotification"
EVENT_MOOD_NOTIFICATION = "moodNotification"


def serialize_notification(
    notification: Notification, *, sender: dict[str, Any] | None = None
) -> dict[str, Any]:
    """Return the JSON payload for ``notification``.

    ``sender`` carries the resolved display fields; the stored record only
    knows the sender id.
    """

    if sender is None and notification.sender_id is not None:
        sender = {"id": notification.sender_id}
    return {
        "id": notification.id,
        "recipientId": notification.recipient_id,
        "sender": copy.deepcopy(sender) if sender else None,
        "type": notification.kind,
        "title": notification.title,
        "message": notification.message,
        "data": copy.deepcopy(notification.data or {}),
        "read": notification.read,
        "createdAt": isoformat_or_none(notification.created_at),
    }


__all__ = [
    "EVENT_APPOINTMENT_NOTIFICATION",
    "EVENT_COUNT_UPDATE",
    "EVENT_INCOMING_CALL",
    "EVENT_MISSED_NOTIFICATIONS",
    "EVENT_MOOD_NOTIFICATION",
    "EVENT_NEW_ASSIGNMENT",
    "EVENT_NEW_MESSAGE",
    "EVENT_NOTIFICATION",
    "EVENT_SYSTEM_NOTIFICATION",
    "EVENT_USER_ONLINE_STATUS",
    "serialize_notification",
]
