"""Websocket que entrega notificaciones y presencia a los clientes conectados."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool

from app.application.use_cases.notifications import (
    NotificationDispatcher,
    SyncSnapshot,
    build_sync_snapshot,
    mark_user_offline,
    mark_user_online,
    presence_payload,
)
from app.config import get_settings
from app.domain.entities import User
from app.infrastructure.database import SessionLocal
from app.infrastructure.notifications import (
    EVENT_COUNT_UPDATE,
    EVENT_MISSED_NOTIFICATIONS,
    EVENT_USER_ONLINE_STATUS,
    RealtimeGateway,
)
from app.interfaces.api.dependencies import resolve_current_user

router = APIRouter(tags=["realtime"])
logger = logging.getLogger(__name__)

POLICY_VIOLATION = 1008

CLIENT_MARK_READ = "markNotificationRead"
CLIENT_MARK_ALL_READ = "markAllNotificationsRead"
CLIENT_REQUEST_SYNC = "requestSync"
CLIENT_PING = "ping"


def _extract_token(websocket: WebSocket) -> str | None:
    token = websocket.query_params.get("token")
    if token:
        return token
    header = websocket.headers.get("authorization") or ""
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def _authenticate(token: str) -> User | None:
    session = SessionLocal()
    try:
        user = resolve_current_user(token, session)
    except HTTPException:
        return None
    finally:
        session.close()
    return user if user.is_active else None


def _sync(user: User, *, going_online: bool = False) -> SyncSnapshot:
    """Contadores y notificaciones perdidas desde la última desconexión del usuario."""

    settings = get_settings()
    session = SessionLocal()
    try:
        if going_online:
            mark_user_online(session, user.id)
        return build_sync_snapshot(
            session,
            user.id,
            last_seen=user.last_seen,
            window_hours=settings.missed_notifications_window_hours,
            limit=settings.missed_notifications_limit,
        )
    finally:
        session.close()


def _go_offline(user_id: int) -> datetime:
    session = SessionLocal()
    try:
        return mark_user_offline(session, user_id)
    finally:
        session.close()


def _mark_read(gateway: RealtimeGateway, user_id: int, notification_id: int | None) -> None:
    session = SessionLocal()
    try:
        dispatcher = NotificationDispatcher(session, gateway)
        if notification_id is None:
            dispatcher.mark_all_as_read(user_id)
        else:
            dispatcher.mark_as_read(user_id, notification_id)
    finally:
        session.close()


async def _send_snapshot(
    gateway: RealtimeGateway, websocket: WebSocket, snapshot: SyncSnapshot
) -> None:
    await gateway.send(websocket, EVENT_COUNT_UPDATE, snapshot.counts.as_payload())
    await gateway.send(websocket, EVENT_MISSED_NOTIFICATIONS, snapshot.missed_payload())


def _notification_id(message: dict[str, Any]) -> int:
    data = message.get("data")
    source = data if isinstance(data, dict) else message
    return int(source["id"])


@router.websocket("/ws")
async def realtime_websocket(websocket: WebSocket) -> None:
    """Autentica, une al usuario a sus salas y atiende sus mensajes hasta el cierre."""

    gateway: RealtimeGateway = websocket.app.state.realtime_gateway
    gateway.register(websocket)

    token = _extract_token(websocket)
    user = await run_in_threadpool(_authenticate, token) if token else None
    if user is None:
        gateway.disconnect(websocket)
        await websocket.close(code=POLICY_VIOLATION)
        return

    gateway.authenticate(websocket, user_id=user.id, role=user.role.alias)
    await websocket.accept()
    rooms = gateway.join(websocket)
    logger.info("Usuario %s unido a las salas %s", user.id, ", ".join(rooms))

    try:
        snapshot = await run_in_threadpool(_sync, user, going_online=True)
        await gateway.broadcast(
            EVENT_USER_ONLINE_STATUS,
            presence_payload(user.id, is_online=True),
            exclude=websocket,
        )
        await _send_snapshot(gateway, websocket, snapshot)

        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                await gateway.send(websocket, "error", {"message": "Messages must be JSON"})
                continue
            if not isinstance(message, dict):
                continue

            message_type = message.get("type")
            try:
                if message_type == CLIENT_PING:
                    await gateway.send(websocket, "pong", {})
                elif message_type == CLIENT_MARK_READ:
                    await run_in_threadpool(
                        _mark_read, gateway, user.id, _notification_id(message)
                    )
                elif message_type == CLIENT_MARK_ALL_READ:
                    await run_in_threadpool(_mark_read, gateway, user.id, None)
                elif message_type == CLIENT_REQUEST_SYNC:
                    snapshot = await run_in_threadpool(_sync, user)
                    await _send_snapshot(gateway, websocket, snapshot)
                else:
                    logger.debug("Se ignora el mensaje '%s' del usuario %s", message_type, user.id)
            except (KeyError, TypeError, ValueError):
                await gateway.send(
                    websocket, "error", {"message": f"Malformed '{message_type}' message"}
                )
    except WebSocketDisconnect:
        pass
    finally:
        gateway.disconnect(websocket)
        if gateway.connection_count(user.id) == 0:
            last_seen = await run_in_threadpool(_go_offline, user.id)
            await gateway.broadcast(
                EVENT_USER_ONLINE_STATUS,
                presence_payload(user.id, is_online=False, last_seen=last_seen),
            )
        logger.info("Usuario %s salió de sus salas", user.id)
