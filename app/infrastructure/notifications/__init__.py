"""Realtime notification helpers for the infrastructure layer."""

from .gateway import (
    ConnectionState,
    ConnectionStateError,
    RealtimeConnection,
    RealtimeGateway,
    RealtimeSocket,
    role_room,
    user_room,
)
from .publisher import (
    EVENT_APPOINTMENT_NOTIFICATION,
    EVENT_COUNT_UPDATE,
    EVENT_INCOMING_CALL,
    EVENT_MISSED_NOTIFICATIONS,
    EVENT_MOOD_NOTIFICATION,
    EVENT_NEW_ASSIGNMENT,
    EVENT_NEW_MESSAGE,
    EVENT_NOTIFICATION,
    EVENT_SYSTEM_NOTIFICATION,
    EVENT_USER_ONLINE_STATUS,
    serialize_notification,
)

__all__ = [
    "ConnectionState",
    "ConnectionStateError",
    "RealtimeConnection",
    "RealtimeGateway",
    "RealtimeSocket",
    "role_room",
    "user_room",
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
