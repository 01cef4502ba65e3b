"""Domain entities exposed by the application."""

from .notification import (
    NOTIFICATION_KINDS,
    NOTIFICATION_KIND_APPOINTMENT,
    NOTIFICATION_KIND_CALL,
    NOTIFICATION_KIND_MESSAGE,
    NOTIFICATION_KIND_MOOD,
    NOTIFICATION_KIND_OTHER,
    NOTIFICATION_KIND_SYSTEM,
    PUSH_PRIORITY_HIGH,
    PUSH_PRIORITY_NORMAL,
    Notification,
    NotificationCounts,
    NotificationIntent,
)
from .role import ROLE_ADMIN, ROLE_DOCTOR, ROLE_PATIENT, Role
from .user import User

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
    "Role",
    "ROLE_ADMIN",
    "ROLE_DOCTOR",
    "ROLE_PATIENT",
    "User",
]
