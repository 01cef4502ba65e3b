"""Tests for Stream Chat webhook verification and fan-out."""

from __future__ import annotations

import json
import time

import pytest
from sqlalchemy.exc import OperationalError

from app.application.use_cases.notifications import NotificationDispatcher
from app.application.use_cases.webhooks import (
    StreamEvent,
    StreamWebhookIngestor,
    compute_signature,
    verify_signature,
)
from app.infrastructure.repositories import (
    NotificationRepository,
    PatientDoctorAssociationRepository,
)

SECRET = "webhook-secret"


def _ingestor(db, gateway, push_sender=None) -> StreamWebhookIngestor:
    return StreamWebhookIngestor(db, NotificationDispatcher(db, gateway, push_sender))


def _message_event(sender, members, text="Hello", **message) -> dict:
    return {
        "type": "message.new",
        "user": {"id": str(sender.id), "name": sender.name},
        "message": {"id": "msg-1", "text": text, **message},
        "channel": {
            "id": "chan-1",
            "members": [{"user_id": str(member.id)} for member in members],
        },
    }


def _signed_headers(body: bytes, secret: str = SECRET) -> dict[str, str]:
    timestamp = str(int(time.time()))
    return {
        "x-signature": compute_signature(secret, timestamp, body),
        "x-signature-timestamp": timestamp,
        "content-type": "application/json",
    }


def test_verify_signature():
    body = b'{"type": "message.new"}'
    signature = compute_signature(SECRET, "1700000000", body)

    assert verify_signature(body, signature=signature, timestamp="1700000000", secret=SECRET)
    assert not verify_signature(
        body + b" ", signature=signature, timestamp="1700000000", secret=SECRET
    )
    assert not verify_signature(body, signature=None, timestamp=None, secret=SECRET)
    assert not verify_signature(body, signature=signature, timestamp="1700000000", secret=None)
    assert verify_signature(
        body, signature=None, timestamp=None, secret=None, allow_unsigned=True
    )


def test_message_fans_out_to_every_member_but_the_sender(db, gateway, make_user):
    sender = make_user("Alice")
    members = [sender, make_user("Bob"), make_user("Carol"), make_user("Dan")]

    created = _ingestor(db, gateway).handle(
        StreamEvent.from_payload(_message_event(sender, members))
    )

    assert created == 3
    repository = NotificationRepository(db)
    assert repository.count_total(sender.id) == 0
    for member in members[1:]:
        [notification] = repository.list_for_recipient(member.id)
        assert notification.kind == "message"
        assert notification.sender_id == sender.id
        assert notification.title == "New message from Alice"
        assert notification.message == "Alice: Hello"
        assert notification.data["conversationId"] == "chan-1"
        assert "newMessage" in gateway.names_for(member.id)


def test_message_preview_is_truncated(db, gateway, make_user):
    sender = make_user("Alice")
    recipient = make_user("Bob")

    StreamWebhookIngestor(
        db, NotificationDispatcher(db, gateway), preview_length=5
    ).handle(StreamEvent.from_payload(_message_event(sender, [sender, recipient], text="Hello world")))

    [notification] = NotificationRepository(db).list_for_recipient(recipient.id)
    assert notification.message == "Alice: Hello..."
    assert notification.data["messageContent"] == "Hello world"


def test_unknown_members_do_not_block_the_rest(db, gateway, make_user):
    sender = make_user("Alice")
    bob = make_user("Bob")
    carol = make_user("Carol")
    payload = _message_event(sender, [sender, bob, carol])
    payload["channel"]["members"].insert(1, {"user_id": "9999"})
    payload["channel"]["members"].append({"user": {"id": "not-a-number"}})

    created = _ingestor(db, gateway).handle(StreamEvent.from_payload(payload))

    assert created == 2
    repository = NotificationRepository(db)
    assert repository.count_total(bob.id) == 1
    assert repository.count_total(carol.id) == 1


@pytest.mark.parametrize(
    ("sender_name", "stream_role", "text", "extra"),
    [
        ("Talbot", "user", "Hello", {}),
        ("Abbott", "user", "Hello", {}),
        ("Dr Admin", "admin", "Hello", {}),
        ("Alice", "user", "/giphy cats", {}),
        ("Alice", "user", "joined", {"type": "system"}),
    ],
)
def test_every_message_reaches_the_other_members(
    db, gateway, make_user, sender_name, stream_role, text, extra
):
    sender = make_user(sender_name)
    recipient = make_user("Bob")
    payload = _message_event(sender, [sender, recipient], text=text, **extra)
    payload["user"]["role"] = stream_role

    created = _ingestor(db, gateway).handle(StreamEvent.from_payload(payload))

    assert created == 1
    [notification] = NotificationRepository(db).list_for_recipient(recipient.id)
    assert notification.message == f"{sender_name}: {text}"
    assert NotificationRepository(db).count_total(sender.id) == 0


def test_failed_store_write_for_one_member_does_not_block_the_rest(
    db, gateway, make_user, monkeypatch
):
    sender = make_user("Alice")
    bob = make_user("Bob")
    carol = make_user("Carol")
    dan = make_user("Dan")
    original_create = NotificationRepository.create

    def create_failing_for_carol(self, notification):
        if notification.recipient_id == carol.id:
            raise OperationalError("INSERT INTO notification", {}, Exception("disk I/O error"))
        return original_create(self, notification)

    monkeypatch.setattr(NotificationRepository, "create", create_failing_for_carol)

    created = _ingestor(db, gateway).handle(
        StreamEvent.from_payload(_message_event(sender, [sender, bob, carol, dan]))
    )

    assert created == 2
    repository = NotificationRepository(db)
    assert repository.count_total(bob.id) == 1
    assert repository.count_total(carol.id) == 0
    assert repository.count_total(dan.id) == 1
    assert gateway.events_for(carol.id) == []
    assert "notification" in gateway.names_for(dan.id)


def test_call_created_rings_members_with_high_priority(db, gateway, push_sender, make_user):
    caller = make_user("Dr. Grey", role="doctor")
    callee = make_user("Pat", fcm_token="device-1")
    payload = {
        "type": "call.created",
        "call": {
            "id": "call-1",
            "created_by": {"id": str(caller.id), "name": caller.name},
            "custom": {"callType": "audio"},
        },
        "members": [{"user_id": str(caller.id)}, {"user_id": str(callee.id)}],
    }

    created = _ingestor(db, gateway, push_sender).handle(StreamEvent.from_payload(payload))

    assert created == 1
    [notification] = NotificationRepository(db).list_for_recipient(callee.id)
    assert notification.kind == "call"
    assert notification.message == "Dr. Grey is calling you"
    assert gateway.events_for(callee.id, "incomingCall")[0]["callData"]["callType"] == "audio"
    assert push_sender.messages[0].android.priority == "high"


def test_channel_created_notifies_members_except_creator(db, gateway, make_user):
    creator = make_user("Dr. Grey", role="doctor")
    patient = make_user("Pat")
    payload = {
        "type": "channel.created",
        "user": {"id": str(creator.id), "name": creator.name},
        "channel": {
            "id": "chan-9",
            "members": [{"user_id": str(creator.id)}, {"user_id": str(patient.id)}],
        },
    }

    assert _ingestor(db, gateway).handle(StreamEvent.from_payload(payload)) == 1
    [notification] = NotificationRepository(db).list_for_recipient(patient.id)
    assert notification.kind == "system"
    assert notification.title == "New conversation started"


def test_doctor_presence_notifies_active_patients(db, gateway, push_sender, make_user):
    doctor = make_user("Grey", role="doctor")
    active = make_user("Pat", fcm_token="device-1")
    former = make_user("Sam")
    associations = PatientDoctorAssociationRepository(db)
    associations.create(patient_id=active.id, doctor_id=doctor.id)
    associations.create(patient_id=former.id, doctor_id=doctor.id, status="terminated")

    created = _ingestor(db, gateway, push_sender).handle(
        StreamEvent.from_payload(
            {"type": "user.presence.changed", "user": {"id": str(doctor.id), "online": True}}
        )
    )

    assert created == 1
    [notification] = NotificationRepository(db).list_for_recipient(active.id)
    assert notification.message == "Dr. Grey is now online"
    assert NotificationRepository(db).count_total(former.id) == 0
    assert push_sender.messages == []


def test_patient_presence_is_ignored(db, gateway, make_user):
    patient = make_user("Pat")

    created = _ingestor(db, gateway).handle(
        StreamEvent.from_payload(
            {"type": "user.presence.changed", "user": {"id": str(patient.id), "online": True}}
        )
    )

    assert created == 0


def test_webhook_endpoint_dispatches_signed_delivery(client, db, make_user):
    sender = make_user("Alice")
    recipient = make_user("Bob")
    body = json.dumps(_message_event(sender, [sender, recipient])).encode()

    response = client.post("/webhooks/stream", content=body, headers=_signed_headers(body))

    assert response.status_code == 200
    assert response.json() == {"success": True, "notificationsCreated": 1}
    assert NotificationRepository(db).count_total(recipient.id) == 1


def test_webhook_endpoint_rejects_tampered_body(client, db, gateway, make_user):
    sender = make_user("Alice")
    recipient = make_user("Bob")
    body = json.dumps(_message_event(sender, [sender, recipient])).encode()
    headers = _signed_headers(body)
    tampered = body.replace(b"Hello", b"Hallo")

    response = client.post("/webhooks/stream", content=tampered, headers=headers)

    assert response.status_code == 401
    assert NotificationRepository(db).count_total(recipient.id) == 0
    assert gateway.events == []


def test_webhook_endpoint_requires_signature_headers(client):
    response = client.post("/webhooks/stream", json={"type": "message.new"})

    assert response.status_code == 401


def test_webhook_endpoint_rejects_non_object_body(client):
    body = b"[1, 2, 3]"

    response = client.post("/webhooks/stream", content=body, headers=_signed_headers(body))

    assert response.status_code == 400


def test_webhook_endpoint_acknowledges_unknown_events(client):
    body = b'{"type": "reaction.new"}'

    response = client.post("/webhooks/stream", content=body, headers=_signed_headers(body))

    assert response.status_code == 200
    assert response.json()["notificationsCreated"] == 0


def test_webhook_health_and_test_endpoints(client):
    assert client.get("/webhooks/health").json()["success"] is True
    response = client.post("/webhooks/stream/test", json={"ping": True})
    assert response.status_code == 200
    assert response.json()["success"] is True
