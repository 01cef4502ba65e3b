"""Tests for push device registration endpoints."""

from __future__ import annotations

from app.infrastructure.repositories import UserRepository


def test_register_and_remove_fcm_token(client, db, make_user, auth_headers) -> None:
    user = make_user()
    headers = auth_headers(user)

    response = client.post(
        "/devices/fcm-token",
        json={"fcmToken": "device-1", "deviceInfo": {"platform": "android"}},
        headers=headers,
    )

    assert response.status_code == 200
    assert response.json()["success"] is True
    stored = UserRepository(db).get(user.id)
    assert stored.fcm_token == "device-1"
    assert stored.device_info == {"platform": "android"}

    response = client.post(
        "/devices/fcm-token", json={"fcmToken": "device-2"}, headers=headers
    )
    assert response.status_code == 200
    db.expire_all()
    assert UserRepository(db).get(user.id).fcm_token == "device-2"

    response = client.delete("/devices/fcm-token", headers=headers)
    assert response.status_code == 200
    db.expire_all()
    assert UserRepository(db).get(user.id).fcm_token is None


def test_register_requires_token(client, make_user, auth_headers) -> None:
    user = make_user()

    response = client.post(
        "/devices/fcm-token", json={"fcmToken": ""}, headers=auth_headers(user)
    )

    assert response.status_code == 422


def test_register_requires_authentication(client) -> None:
    response = client.post("/devices/fcm-token", json={"fcmToken": "device-1"})

    assert response.status_code == 401
