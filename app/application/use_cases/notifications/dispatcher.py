"""Persist notifications and deliver them through realtime and push channels."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.entities import (
    NOTIFICATION_KINDS,
    NOTIFICATION_KIND_APPOINTMENT,
    NOTIFICATION_KIND_CALL,
    NOTIFICATION_KIND_MESSAGE,
    NOTIFICATION_KIND_MOOD,
    NOTIFICATION_KIND_SYSTEM,
    Notification,
    NotificationCounts,
    NotificationIntent,
)
from app.infrastructure.notifications import (
    EVENT_APPOINTMENT_NOTIFICATION,
    EVENT_COUNT_UPDATE,
    EVENT_INCOMING_CALL,
    EVENT_MOOD_NOTIFICATION,
    EVENT_NEW_MESSAGE,
    EVENT_NOTIFICATION,
    EVENT_SYSTEM_NOTIFICATION,
    serialize_notification,
)
from app.infrastructure.push import PushAdapter, PushSender
from app.infrastructure.repositories import NotificationRepository, UserRepository

from .intents import NotificationIntentError

logger = logging.getLogger(__name__)

_KIND_EVENTS = {
    NOTIFICATION_KIND_MESSAGE: EVENT_NEW_MESSAGE,
    NOTIFICATION_KIND_CALL: EVENT_INCOMING_CALL,
    NOTIFICATION_KIND_SYSTEM: EVENT_SYSTEM_NOTIFICATION,
    NOTIFICATION_KIND_APPOINTMENT: EVENT_APPOINTMENT_NOTIFICATION,
    NOTIFICATION_KIND_MOOD: EVENT_MOOD_NOTIFICATION,
}


class RecipientNotFoundError(NotificationIntentError):
    """Raised when the intent targets a user that does not exist."""


class UserEventPublisher(Protocol):
    """What the dispatcher needs from the realtime gateway."""

    def publish_to_user(self, user_id: int, event: str, payload: Any) -> None: ...


class NotificationDispatcher:
    """Create notifications and fan them out to the recipient's channels.

    The store write is the only step that can fail a dispatch. Realtime
    emits and pushes afterwards are best effort: a recipient without a live
    connection or device simply picks the record up on the next query.
    """

    def __init__(
        self,
        session: Session,
        gateway: UserEventPublisher,
        push_sender: PushSender | None = None,
    ) -> None:
        self._session = session
        self._gateway = gateway
        self._notifications = NotificationRepository(session)
        self._users = UserRepository(session)
        self._push = PushAdapter(self._users, push_sender)

    def dispatch(self, intent: NotificationIntent) -> Notification:
        recipient_id = self._validate(intent)

        try:
            saved = self._notifications.create(
                Notification(
                    id=None,
                    recipient_id=recipient_id,
                    sender_id=intent.sender_id,
                    kind=intent.kind,
                    title=intent.title,
                    message=intent.message,
                    data=dict(intent.data or {}),
                )
            )
        except SQLAlchemyError:
            self._session.rollback()
            raise

        try:
            self._deliver(saved, intent)
        except Exception:
            logger.exception(
                "Delivery of notification %s to user %s failed", saved.id, recipient_id
            )
        return saved

    def mark_as_read(self, recipient_id: int, notification_id: int) -> NotificationCounts:
        """Mark one notification read; unknown, foreign or read ids are a no-op."""

        changed = self._notifications.mark_as_read(
            notification_id, recipient_id=recipient_id
        )
        if not changed:
            logger.debug(
                "Notification %s not marked for user %s (missing, foreign or already read)",
                notification_id,
                recipient_id,
            )
        return self.publish_counts(recipient_id)

    def mark_all_as_read(self, recipient_id: int) -> NotificationCounts:
        updated = self._notifications.mark_all_as_read(recipient_id)
        logger.debug("Marked %s notifications read for user %s", updated, recipient_id)
        return self.publish_counts(recipient_id)

    def publish_counts(self, recipient_id: int) -> NotificationCounts:
        counts = self._notifications.counts_for_recipient(recipient_id)
        self._gateway.publish_to_user(recipient_id, EVENT_COUNT_UPDATE, counts.as_payload())
        return counts

    def _validate(self, intent: NotificationIntent) -> int:
        if intent.recipient_id is None:
            raise NotificationIntentError("El id del destinatario es obligatorio")
        if intent.kind not in NOTIFICATION_KINDS:
            raise NotificationIntentError(f"Tipo de notificación desconocido '{intent.kind}'")
        if not (intent.title or "").strip() or not (intent.message or "").strip():
            raise NotificationIntentError("El título y el mensaje son obligatorios")
        if self._users.get(intent.recipient_id) is None:
            raise RecipientNotFoundError(f"Destinatario {intent.recipient_id} no encontrado")
        return intent.recipient_id

    def _deliver(self, notification: Notification, intent: NotificationIntent) -> None:
        recipient_id = notification.recipient_id
        payload = serialize_notification(
            notification, sender=self._resolve_sender(notification.sender_id)
        )
        self._gateway.publish_to_user(
            recipient_id, EVENT_NOTIFICATION, {"notification": payload}
        )

        kind_event = intent.realtime_event or _KIND_EVENTS.get(notification.kind)
        if kind_event:
            self._gateway.publish_to_user(
                recipient_id,
                kind_event,
                {
                    "type": notification.kind,
                    "notification": payload,
                    **intent.realtime_extra,
                },
            )

        # Counts are read after the insert committed.
        self.publish_counts(recipient_id)

        if intent.push_priority:
            self._push.push(
                recipient_id,
                notification.title,
                notification.message,
                data={
                    **(notification.data or {}),
                    "type": notification.kind,
                    "notificationId": notification.id,
                },
                priority=intent.push_priority,
            )

    def _resolve_sender(self, sender_id: int | None) -> dict[str, Any] | None:
        if sender_id is None:
            return None
        sender = self._users.get(sender_id)
        if sender is None:
            return {"id": sender_id}
        return sender.public_profile()


__all__ = [
    "NotificationDispatcher",
    "RecipientNotFoundError",
    "UserEventPublisher",
]
