"""Tests for the Firebase push adapter."""

from __future__ import annotations

from firebase_admin import exceptions as firebase_exceptions, messaging

from app.domain.entities import PUSH_PRIORITY_HIGH
from app.infrastructure.push import PushAdapter, build_push_message
from app.infrastructure.repositories import UserRepository

from conftest import FakePushSender


def test_push_without_device_token_is_noop(db, push_sender, make_user):
    user = make_user()

    delivered = PushAdapter(UserRepository(db), push_sender).push(user.id, "Hi", "There")

    assert delivered is False
    assert push_sender.messages == []


def test_push_with_disabled_sender_is_noop(db, make_user):
    user = make_user(fcm_token="device-1")
    sender = FakePushSender(enabled=False)

    assert PushAdapter(UserRepository(db), sender).push(user.id, "Hi", "There") is False
    assert sender.messages == []


def test_unregistered_token_is_cleared(db, push_sender, make_user):
    user = make_user(fcm_token="stale-token")
    push_sender.failures.append(messaging.UnregisteredError("Requested entity was not found."))
    adapter = PushAdapter(UserRepository(db), push_sender)

    assert adapter.push(user.id, "Hi", "There") is False
    assert UserRepository(db).get(user.id).fcm_token is None

    assert adapter.push(user.id, "Hi again", "There") is False
    assert push_sender.messages == []


def test_other_provider_errors_are_swallowed(db, push_sender, make_user):
    user = make_user(fcm_token="device-1")
    push_sender.failures.append(
        firebase_exceptions.UnavailableError("FCM is down", cause=None, http_response=None)
    )
    adapter = PushAdapter(UserRepository(db), push_sender)

    assert adapter.push(user.id, "Hi", "There") is False
    assert UserRepository(db).get(user.id).fcm_token == "device-1"
    assert adapter.push(user.id, "Hi", "There") is True


def test_reregistered_token_survives_stale_cleanup(db, make_user):
    user = make_user(fcm_token="new-token")

    cleared = UserRepository(db).clear_fcm_token(user.id, only_if="old-token")

    assert cleared is False
    assert UserRepository(db).get(user.id).fcm_token == "new-token"


def test_build_push_message_stringifies_data():
    message = build_push_message(
        token="device-1",
        title="Incoming Call",
        body="Dr. Grey is calling you",
        data={"type": "call", "caller": {"id": 1}, "missing": None, "count": 2},
        priority=PUSH_PRIORITY_HIGH,
    )

    assert message.data["type"] == "call"
    assert message.data["caller"] == '{"id": 1}'
    assert message.data["count"] == "2"
    assert "missing" not in message.data
    assert "timestamp" in message.data
    assert message.android.notification.priority == "max"
    assert message.android.notification.click_action == "FLUTTER_NOTIFICATION_CLICK"
    assert message.apns.payload.aps.badge == 1


def test_build_push_message_defaults_to_normal_priority():
    message = build_push_message(token="t", title="New message", body="Hi", data={"type": "message"})

    assert message.android.priority == "normal"
    assert message.android.notification.channel_id == "messages"
    assert message.apns.headers["apns-priority"] == "5"
