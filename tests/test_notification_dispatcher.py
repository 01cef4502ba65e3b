"""Tests for persisting and delivering notifications."""

from __future__ import annotations

import pytest

from app.application.use_cases.notifications import (
    NotificationDispatcher,
    NotificationIntentError,
    RecipientNotFoundError,
    build_assignment_intent,
    build_call_intent,
    build_generic_intent,
    build_message_intent,
    build_system_intent,
    truncate_preview,
)
from app.domain.entities import NotificationIntent
from app.infrastructure.repositories import NotificationRepository


def _dispatch_system(dispatcher, recipient_id, title="Reminder"):
    return dispatcher.dispatch(
        build_system_intent(recipient_id=recipient_id, title=title, message="Body")
    )


def test_dispatch_persists_and_emits_in_order(db, gateway, push_sender, make_user):
    sender = make_user("Dr. House", role="doctor")
    recipient = make_user("Pat", fcm_token="device-1")
    dispatcher = NotificationDispatcher(db, gateway, push_sender)

    notification = dispatcher.dispatch(
        build_message_intent(
            recipient_id=recipient.id,
            sender_id=sender.id,
            sender_name=sender.name,
            text="Hello",
            conversation_id="chan-1",
        )
    )

    assert notification.id is not None
    assert notification.read is False
    assert notification.message == "Dr. House: Hello"
    assert gateway.names_for(recipient.id) == [
        "notification",
        "newMessage",
        "notificationCountUpdate",
    ]

    emitted = gateway.events_for(recipient.id, "notification")[0]["notification"]
    assert emitted["id"] == notification.id
    assert emitted["sender"] == {"id": sender.id, "name": "Dr. House", "avatarUrl": None}
    assert gateway.events_for(recipient.id, "notificationCountUpdate") == [
        {"unreadCount": 1, "totalCount": 1}
    ]

    assert len(push_sender.messages) == 1
    message = push_sender.messages[0]
    assert message.token == "device-1"
    assert message.data["type"] == "message"
    assert message.data["notificationId"] == str(notification.id)
    assert message.android.priority == "normal"


def test_dispatch_requires_existing_recipient(db, gateway, make_user):
    dispatcher = NotificationDispatcher(db, gateway)

    with pytest.raises(RecipientNotFoundError):
        _dispatch_system(dispatcher, 999)
    with pytest.raises(NotificationIntentError):
        _dispatch_system(dispatcher, None)

    assert NotificationRepository(db).count_total(999) == 0
    assert gateway.events == []


def test_dispatch_rejects_unknown_kind(db, gateway, make_user):
    recipient = make_user()
    dispatcher = NotificationDispatcher(db, gateway)

    with pytest.raises(ValueError):
        dispatcher.dispatch(
            NotificationIntent(
                kind="billing", recipient_id=recipient.id, title="x", message="y"
            )
        )
    assert NotificationRepository(db).count_total(recipient.id) == 0


def test_unread_count_tracks_reads(db, gateway, make_user):
    recipient = make_user()
    dispatcher = NotificationDispatcher(db, gateway)
    created = [_dispatch_system(dispatcher, recipient.id, f"n{i}") for i in range(5)]

    for notification in created[:2]:
        dispatcher.mark_as_read(recipient.id, notification.id)

    counts = NotificationRepository(db).counts_for_recipient(recipient.id)
    assert (counts.unread_count, counts.total_count) == (3, 5)


def test_mark_as_read_is_idempotent(db, gateway, make_user):
    recipient = make_user()
    dispatcher = NotificationDispatcher(db, gateway)
    notification = _dispatch_system(dispatcher, recipient.id)

    first = dispatcher.mark_as_read(recipient.id, notification.id)
    read_at = NotificationRepository(db).get_for_recipient(
        notification.id, recipient_id=recipient.id
    ).read_at
    second = dispatcher.mark_as_read(recipient.id, notification.id)

    assert first == second
    assert first.unread_count == 0
    stored = NotificationRepository(db).get_for_recipient(
        notification.id, recipient_id=recipient.id
    )
    assert stored.read is True
    assert stored.read_at == read_at


def test_mark_as_read_ignores_foreign_notifications(db, gateway, make_user):
    owner = make_user("Owner")
    intruder = make_user("Intruder")
    dispatcher = NotificationDispatcher(db, gateway)
    notification = _dispatch_system(dispatcher, owner.id)

    dispatcher.mark_as_read(intruder.id, notification.id)

    assert NotificationRepository(db).count_unread(owner.id) == 1


def test_mark_all_as_read(db, gateway, make_user):
    recipient = make_user()
    dispatcher = NotificationDispatcher(db, gateway)
    created = [_dispatch_system(dispatcher, recipient.id, f"n{i}") for i in range(7)]
    for notification in created[:2]:
        dispatcher.mark_as_read(recipient.id, notification.id)

    counts = dispatcher.mark_all_as_read(recipient.id)

    assert (counts.unread_count, counts.total_count) == (0, 7)
    assert gateway.events_for(recipient.id, "notificationCountUpdate")[-1] == {
        "unreadCount": 0,
        "totalCount": 7,
    }


def test_call_intent_requests_high_priority_push(db, gateway, push_sender, make_user):
    caller = make_user("Dr. Grey", role="doctor")
    callee = make_user("Pat", fcm_token="device-2")
    dispatcher = NotificationDispatcher(db, gateway, push_sender)

    dispatcher.dispatch(
        build_call_intent(
            recipient_id=callee.id,
            caller=caller.public_profile(),
            call_id="room-42",
        )
    )

    incoming = gateway.events_for(callee.id, "incomingCall")[0]
    assert incoming["callData"]["callId"] == "room-42"
    assert incoming["callData"]["caller"]["name"] == "Dr. Grey"
    message = push_sender.messages[0]
    assert message.android.priority == "high"
    assert message.android.notification.channel_id == "calls"
    assert message.apns.headers["apns-priority"] == "10"


def test_delivery_failures_do_not_fail_dispatch(db, push_sender, make_user):
    class BrokenGateway:
        def publish_to_user(self, user_id, event, payload):
            raise RuntimeError("socket layer down")

    recipient = make_user()
    dispatcher = NotificationDispatcher(db, BrokenGateway(), push_sender)

    notification = _dispatch_system(dispatcher, recipient.id)

    assert NotificationRepository(db).count_total(recipient.id) == 1
    assert notification.id is not None


def test_system_intent_without_push(db, gateway, push_sender, make_user):
    recipient = make_user(fcm_token="device-3")
    dispatcher = NotificationDispatcher(db, gateway, push_sender)

    dispatcher.dispatch(
        build_system_intent(
            recipient_id=recipient.id,
            title="Your doctor is online",
            message="Dr. Who is now online",
            push_priority=None,
        )
    )

    assert push_sender.messages == []
    assert "systemNotification" in gateway.names_for(recipient.id)


def test_assignment_intent_emits_new_assignment(db, gateway, make_user):
    doctor = make_user("Dr. Strange", role="doctor")
    patient = make_user("Pat")
    dispatcher = NotificationDispatcher(db, gateway)

    notification = dispatcher.dispatch(
        build_assignment_intent(
            recipient_id=patient.id,
            sender_id=doctor.id,
            sender_name=doctor.name,
            assignment_type="form",
            assignment_id="form-7",
        )
    )

    assert notification.kind == "other"
    assert notification.message == "Dr. Strange assigned you a new form"
    event = gateway.events_for(patient.id, "newAssignment")[0]
    assert event["assignmentId"] == "form-7"


def test_generic_intent_validates_kind():
    with pytest.raises(NotificationIntentError):
        build_generic_intent(kind="nope", recipient_id=1, title="t", message="m")


def test_truncate_preview():
    assert truncate_preview("short", 10) == "short"
    assert truncate_preview("x" * 12, 10) == "x" * 10 + "..."
