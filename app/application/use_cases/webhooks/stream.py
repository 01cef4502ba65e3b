"""Turn Stream Chat webhook deliveries into per-member notifications."""

from __future__ import annotations

import hashlib
import hmac
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from app.application.use_cases.notifications import (
    NotificationDispatcher,
    build_call_intent,
    build_message_intent,
    build_system_intent,
)
from app.application.use_cases.notifications.intents import DEFAULT_PREVIEW_LENGTH
from app.domain.entities import NotificationIntent
from app.infrastructure.repositories import (
    PatientDoctorAssociationRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)

EVENT_MESSAGE_NEW = "message.new"
EVENT_PRESENCE_CHANGED = "user.presence.changed"
EVENT_CHANNEL_CREATED = "channel.created"
EVENT_CALL_CREATED = "call.created"


def compute_signature(secret: str, timestamp: str, body: bytes) -> str:
    """Hex HMAC-SHA256 of ``timestamp`` followed by the raw request body."""

    digest = hmac.new(secret.encode("utf-8"), digestmod=hashlib.sha256)
    digest.update(timestamp.encode("utf-8"))
    digest.update(body)
    return digest.hexdigest()


def verify_signature(
    body: bytes,
    *,
    signature: str | None,
    timestamp: str | None,
    secret: str | None,
    allow_unsigned: bool = False,
) -> bool:
    """Return ``True`` when the delivery may be processed.

    Without a configured secret deliveries are only accepted when
    ``allow_unsigned`` is explicitly enabled.
    """

    if not secret:
        if allow_unsigned:
            logger.warning("Stream webhook secret not configured; accepting unsigned delivery")
            return True
        logger.error("Stream webhook secret not configured; rejecting delivery")
        return False

    if not signature or not timestamp:
        logger.warning("Stream webhook rejected: missing signature headers")
        return False

    expected = compute_signature(secret, timestamp, body)
    return hmac.compare_digest(expected, signature.strip().lower())


def _member_id(member: Any) -> str | None:
    if not isinstance(member, dict):
        return None
    value = member.get("user_id")
    if value is None and isinstance(member.get("user"), dict):
        value = member["user"].get("id")
    return str(value) if value not in (None, "") else None


def _parse_user_id(value: Any) -> int | None:
    try:
        return int(str(value))
    except (TypeError, ValueError):
        return None


def _display_name(user: dict[str, Any]) -> str:
    name = (user.get("name") or "").strip()
    if name:
        return name
    return f"{user.get('first_name') or ''} {user.get('last_name') or ''}".strip()


@dataclass
class StreamEvent:
    """The parts of a Stream Chat webhook envelope the ingestor reads."""

    type: str
    user: dict[str, Any] = field(default_factory=dict)
    message: dict[str, Any] = field(default_factory=dict)
    channel: dict[str, Any] = field(default_factory=dict)
    call: dict[str, Any] = field(default_factory=dict)
    members: list[Any] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "StreamEvent":
        def _dict(key: str) -> dict[str, Any]:
            value = payload.get(key)
            return value if isinstance(value, dict) else {}

        members = payload.get("members")
        return cls(
            type=str(payload.get("type") or ""),
            user=_dict("user"),
            message=_dict("message"),
            channel=_dict("channel"),
            call=_dict("call"),
            members=members if isinstance(members, list) else [],
        )

    def member_ids(self) -> list[str]:
        """Member ids in list order without duplicates."""

        raw = self.channel.get("members")
        members = raw if isinstance(raw, list) and raw else self.members
        if not members and isinstance(self.call.get("members"), list):
            members = self.call["members"]

        seen: set[str] = set()
        ordered: list[str] = []
        for member in members:
            member_id = _member_id(member)
            if member_id and member_id not in seen:
                seen.add(member_id)
                ordered.append(member_id)
        return ordered


class StreamWebhookIngestor:
    """Fan a verified webhook event out to one dispatch per affected member.

    Each recipient is dispatched independently: a failure is logged, the
    session rolled back and the loop moves on to the next member.
    """

    def __init__(
        self,
        session: Session,
        dispatcher: NotificationDispatcher,
        *,
        preview_length: int = DEFAULT_PREVIEW_LENGTH,
    ) -> None:
        self._session = session
        self._dispatcher = dispatcher
        self._users = UserRepository(session)
        self._associations = PatientDoctorAssociationRepository(session)
        self._preview_length = preview_length
        self._handlers: dict[str, Callable[[StreamEvent], int]] = {
            EVENT_MESSAGE_NEW: self._handle_new_message,
            EVENT_PRESENCE_CHANGED: self._handle_presence_changed,
            EVENT_CHANNEL_CREATED: self._handle_channel_created,
            EVENT_CALL_CREATED: self._handle_call_created,
        }

    def handle(self, event: StreamEvent) -> int:
        """Process ``event`` and return how many notifications were created."""

        handler = self._handlers.get(event.type)
        if handler is None:
            logger.info("Stream webhook event '%s' requires no action", event.type)
            return 0
        created = handler(event)
        logger.info(
            "Stream webhook event '%s' produced %s notifications", event.type, created
        )
        return created

    def _handle_new_message(self, event: StreamEvent) -> int:
        sender_id = _member_id({"user": event.user})
        if not sender_id:
            logger.warning("message.new without sender id; skipping")
            return 0

        message = event.message
        text = message.get("text") or ""
        sender_name = self._sender_name(event.user, sender_id)

        conversation_id = event.channel.get("id") or message.get("cid")
        sender_pk = _parse_user_id(sender_id)
        return self._fan_out(
            self._recipients(event.member_ids(), exclude=sender_id),
            lambda recipient_id: build_message_intent(
                recipient_id=recipient_id,
                sender_id=sender_pk,
                sender_name=sender_name,
                text=text,
                conversation_id=conversation_id,
                message_id=message.get("id"),
                preview_length=self._preview_length,
            ),
        )

    def _handle_presence_changed(self, event: StreamEvent) -> int:
        if not event.user.get("online"):
            return 0
        doctor_id = _parse_user_id(event.user.get("id"))
        if doctor_id is None:
            return 0
        doctor = self._users.get(doctor_id)
        if doctor is None or not doctor.is_doctor():
            return 0

        patient_ids = self._associations.list_patient_ids_for_doctor(doctor_id)
        return self._fan_out(
            patient_ids,
            lambda recipient_id: build_system_intent(
                recipient_id=recipient_id,
                sender_id=doctor_id,
                title="Your doctor is online",
                message=f"Dr. {doctor.name} is now online",
                data={"event": "doctor.online", "doctorId": doctor_id},
                push_priority=None,
            ),
        )

    def _handle_channel_created(self, event: StreamEvent) -> int:
        creator_id = _member_id({"user": event.user}) or _member_id(
            {"user": event.channel.get("created_by") or {}}
        )
        creator_name = self._sender_name(event.user, creator_id)
        channel_id = event.channel.get("id")
        return self._fan_out(
            self._recipients(event.member_ids(), exclude=creator_id),
            lambda recipient_id: build_system_intent(
                recipient_id=recipient_id,
                sender_id=_parse_user_id(creator_id),
                title="New conversation started",
                message=f"{creator_name} started a conversation with you",
                data={"event": "channel.created", "conversationId": channel_id},
            ),
        )

    def _handle_call_created(self, event: StreamEvent) -> int:
        caller = event.user or (event.call.get("created_by") or {})
        caller_id = _member_id({"user": caller})
        if not caller_id:
            logger.warning("call.created without caller id; skipping")
            return 0

        call_id = (
            event.call.get("id")
            or event.call.get("cid")
            or event.channel.get("id")
            or ""
        )
        custom = event.call.get("custom") if isinstance(event.call.get("custom"), dict) else {}
        caller_info = {
            "id": _parse_user_id(caller_id),
            "name": self._sender_name(caller, caller_id),
            "avatarUrl": caller.get("image"),
        }
        return self._fan_out(
            self._recipients(event.member_ids(), exclude=caller_id),
            lambda recipient_id: build_call_intent(
                recipient_id=recipient_id,
                caller=caller_info,
                call_id=str(call_id),
                call_type=custom.get("callType") or "video",
            ),
        )

    def _recipients(self, member_ids: Iterable[str], *, exclude: str | None) -> list[int]:
        recipients: list[int] = []
        for member_id in member_ids:
            if member_id == exclude:
                continue
            parsed = _parse_user_id(member_id)
            if parsed is None:
                logger.warning("Ignoring channel member with unknown id format: %s", member_id)
                continue
            recipients.append(parsed)
        return recipients

    def _sender_name(self, user: dict[str, Any], user_id: str | None) -> str:
        name = _display_name(user)
        if name:
            return name
        parsed = _parse_user_id(user_id)
        stored = self._users.get(parsed) if parsed is not None else None
        return stored.name if stored else ""

    def _fan_out(
        self,
        recipients: Iterable[int],
        build: Callable[[int], NotificationIntent],
    ) -> int:
        created = 0
        for recipient_id in recipients:
            try:
                self._dispatcher.dispatch(build(recipient_id))
            except Exception:
                self._session.rollback()
                logger.exception("Failed to notify user %s from webhook", recipient_id)
                continue
            created += 1
        return created


__all__ = [
    "EVENT_CALL_CREATED",
    "EVENT_CHANNEL_CREATED",
    "EVENT_MESSAGE_NEW",
    "EVENT_PRESENCE_CHANGED",
    "StreamEvent",
    "StreamWebhookIngestor",
    "compute_signature",
    "verify_signature",
]
