from .auth import Token
from .device import DeviceTokenRegister, DeviceTokenResponse
from .notification import (
    AssignmentNotificationCreate,
    CallNotificationCreate,
    MessageNotificationCreate,
    NotificationCountsRead,
    NotificationCreate,
    NotificationPageRead,
    NotificationRead,
    SystemNotificationCreate,
)
from .webhook import WebhookAck

__all__ = [
    "AssignmentNotificationCreate",
    "CallNotificationCreate",
    "DeviceTokenRegister",
    "DeviceTokenResponse",
    "MessageNotificationCreate",
    "NotificationCountsRead",
    "NotificationCreate",
    "NotificationPageRead",
    "NotificationRead",
    "SystemNotificationCreate",
    "Token",
    "WebhookAck",
]
