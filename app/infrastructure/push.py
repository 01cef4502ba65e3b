"""Mobile push delivery through Firebase Cloud Messaging."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Protocol

import firebase_admin
from firebase_admin import credentials, exceptions as firebase_exceptions, messaging
from sqlalchemy.exc import SQLAlchemyError

from app.config import Settings, get_settings
from app.domain.entities import (
    NOTIFICATION_KIND_CALL,
    NOTIFICATION_KIND_MESSAGE,
    PUSH_PRIORITY_HIGH,
    PUSH_PRIORITY_NORMAL,
)
from app.infrastructure.repositories import UserRepository
from app.utils import now_in_app_timezone

logger = logging.getLogger(__name__)

_ANDROID_CHANNELS = {
    NOTIFICATION_KIND_CALL: "calls",
    NOTIFICATION_KIND_MESSAGE: "messages",
}
_DEFAULT_ANDROID_CHANNEL = "notifications"
_CLICK_ACTION = "FLUTTER_NOTIFICATION_CLICK"
_DEFAULT_SOUND = "default"

# Provider responses meaning the device token will never work again.
_STALE_TOKEN_ERRORS = (messaging.UnregisteredError, messaging.SenderIdMismatchError)


class PushSender(Protocol):
    """Transport able to deliver a prepared FCM message."""

    @property
    def enabled(self) -> bool: ...

    def send(self, message: messaging.Message) -> str: ...


def get_firebase_app(settings: Settings | None = None) -> firebase_admin.App | None:
    """Return the default Firebase app, initializing it from settings if needed."""

    settings = settings or get_settings()
    if not settings.push_enabled:
        logger.info("Firebase credentials not configured; push notifications disabled")
        return None

    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    try:
        if settings.firebase_credentials_json:
            certificate = credentials.Certificate(
                json.loads(settings.firebase_credentials_json)
            )
        else:
            certificate = credentials.Certificate(settings.firebase_credentials_file)
        options = (
            {"projectId": settings.firebase_project_id}
            if settings.firebase_project_id
            else None
        )
        return firebase_admin.initialize_app(certificate, options)
    except (ValueError, OSError) as exc:
        logger.error("Firebase Admin initialization failed: %s", exc)
        return None


class FirebasePushSender:
    """Send messages with the Firebase Admin SDK."""

    def __init__(self, app: firebase_admin.App | None) -> None:
        self._app = app

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "FirebasePushSender":
        return cls(get_firebase_app(settings))

    @property
    def enabled(self) -> bool:
        return self._app is not None

    def send(self, message: messaging.Message) -> str:
        return messaging.send(message, app=self._app)


def _stringify_data(data: Mapping[str, Any] | None) -> dict[str, str]:
    """FCM only accepts string values in the data section."""

    result: dict[str, str] = {}
    for key, value in (data or {}).items():
        if value is None:
            continue
        if isinstance(value, str):
            result[str(key)] = value
        else:
            result[str(key)] = json.dumps(value, default=str)
    return result


def build_push_message(
    *,
    token: str,
    title: str,
    body: str,
    data: Mapping[str, Any] | None = None,
    priority: str = PUSH_PRIORITY_NORMAL,
) -> messaging.Message:
    """Build the platform envelope for one device.

    High priority is reserved for incoming calls so the device wakes up
    immediately instead of batching the message.
    """

    high = priority == PUSH_PRIORITY_HIGH
    payload = _stringify_data(data)
    payload["timestamp"] = now_in_app_timezone().isoformat()
    channel_id = _ANDROID_CHANNELS.get(payload.get("type", ""), _DEFAULT_ANDROID_CHANNEL)

    return messaging.Message(
        token=token,
        notification=messaging.Notification(title=title, body=body),
        data=payload,
        android=messaging.AndroidConfig(
            priority="high" if high else "normal",
            notification=messaging.AndroidNotification(
                channel_id=channel_id,
                priority="max" if high else "default",
                sound=_DEFAULT_SOUND,
                click_action=_CLICK_ACTION,
            ),
        ),
        apns=messaging.APNSConfig(
            headers={"apns-priority": "10" if high else "5"},
            payload=messaging.APNSPayload(
                aps=messaging.Aps(
                    alert=messaging.ApsAlert(title=title, body=body),
                    sound=_DEFAULT_SOUND,
                    badge=1,
                    content_available=True,
                )
            ),
        ),
    )


def _log_firebase_exception(recipient_id: int, exc: Exception) -> None:
    code = getattr(exc, "code", None)
    if isinstance(exc, firebase_exceptions.FirebaseError) and code:
        logger.error(
            "FCM request for user %s failed with code %s: %s", recipient_id, code, exc
        )
    else:
        logger.exception("Error sending push notification to user %s: %s", recipient_id, exc)


class PushAdapter:
    """Deliver a push to a user's registered device; never raises."""

    def __init__(self, users: UserRepository, sender: PushSender | None) -> None:
        self._users = users
        self._sender = sender

    def push(
        self,
        recipient_id: int,
        title: str,
        body: str,
        data: Mapping[str, Any] | None = None,
        priority: str = PUSH_PRIORITY_NORMAL,
    ) -> bool:
        """Send a push to ``recipient_id`` and report whether the provider accepted it."""

        if self._sender is None or not self._sender.enabled:
            logger.debug("Push sender unavailable; skipping push for user %s", recipient_id)
            return False

        try:
            user = self._users.get(recipient_id)
        except SQLAlchemyError:
            logger.exception("Could not load device token for user %s", recipient_id)
            return False

        token = user.fcm_token if user else None
        if not token:
            logger.debug("User %s has no registered device; skipping push", recipient_id)
            return False

        message = build_push_message(
            token=token, title=title, body=body, data=data, priority=priority
        )
        try:
            message_id = self._sender.send(message)
        except _STALE_TOKEN_ERRORS:
            logger.info("Clearing stale FCM token for user %s", recipient_id)
            self._clear_token(recipient_id, token)
            return False
        except Exception as exc:
            _log_firebase_exception(recipient_id, exc)
            return False

        logger.info(
            "Push notification %s sent to user %s (priority=%s)",
            message_id,
            recipient_id,
            priority,
        )
        return True

    def _clear_token(self, recipient_id: int, token: str) -> None:
        try:
            self._users.clear_fcm_token(recipient_id, only_if=token)
        except SQLAlchemyError:
            self._users.session.rollback()
            logger.exception("Could not clear stale FCM token for user %s", recipient_id)


__all__ = [
    "FirebasePushSender",
    "PushAdapter",
    "PushSender",
    "build_push_message",
    "get_firebase_app",
]
