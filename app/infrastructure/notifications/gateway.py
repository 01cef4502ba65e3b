"""Room-based registry of realtime websocket connections."""

from __future__ import annotations

import asyncio
import copy
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, DefaultDict, Protocol, Set

from anyio import from_thread

logger = logging.getLogger(__name__)


class RealtimeSocket(Protocol):
    """Subset of :class:`fastapi.WebSocket` used by the gateway."""

    async def send_json(self, data: Any, mode: str = "text") -> None: ...


class ConnectionState(str, Enum):
    """Lifecycle of a single realtime connection."""

    CONNECTING = "connecting"
    AUTHENTICATED = "authenticated"
    JOINED = "joined"
    DISCONNECTED = "disconnected"


class ConnectionStateError(RuntimeError):
    """Raised when a connection attempts an invalid lifecycle transition."""


@dataclass
class RealtimeConnection:
    socket: RealtimeSocket
    state: ConnectionState = ConnectionState.CONNECTING
    user_id: int | None = None
    role: str | None = None
    rooms: Set[str] = field(default_factory=set)


def user_room(user_id: int) -> str:
    return f"user-{user_id}"


def role_room(role: str) -> str:
    return f"role-{role.lower()}"


class RealtimeGateway:
    """Track live connections and deliver events to the rooms they joined.

    One instance is built at application start and handed to whatever needs
    to push events. Membership is process-local and lost on restart; emitting
    to an empty room is a silent no-op.
    """

    def __init__(self) -> None:
        self._connections: dict[int, RealtimeConnection] = {}
        self._rooms: DefaultDict[str, Set[int]] = defaultdict(set)

    # -- lifecycle -----------------------------------------------------------------

    def register(self, socket: RealtimeSocket) -> RealtimeConnection:
        connection = RealtimeConnection(socket=socket)
        self._connections[id(socket)] = connection
        return connection

    def authenticate(self, socket: RealtimeSocket, *, user_id: int, role: str) -> None:
        connection = self._require(socket, ConnectionState.CONNECTING)
        connection.user_id = user_id
        connection.role = role
        connection.state = ConnectionState.AUTHENTICATED

    def join(self, socket: RealtimeSocket) -> list[str]:
        """Add an authenticated connection to its user and role rooms."""

        connection = self._require(socket, ConnectionState.AUTHENTICATED)
        rooms = [user_room(connection.user_id)]
        if connection.role:
            rooms.append(role_room(connection.role))
        for room in rooms:
            self._rooms[room].add(id(socket))
            connection.rooms.add(room)
        connection.state = ConnectionState.JOINED
        return rooms

    def disconnect(self, socket: RealtimeSocket) -> RealtimeConnection | None:
        """Drop ``socket`` and every room membership it held."""

        connection = self._connections.pop(id(socket), None)
        if connection is None:
            return None
        for room in connection.rooms:
            members = self._rooms.get(room)
            if members is None:
                continue
            members.discard(id(socket))
            if not members:
                self._rooms.pop(room, None)
        connection.rooms.clear()
        connection.state = ConnectionState.DISCONNECTED
        return connection

    def state_of(self, socket: RealtimeSocket) -> ConnectionState:
        connection = self._connections.get(id(socket))
        return connection.state if connection else ConnectionState.DISCONNECTED

    def connection_count(self, user_id: int) -> int:
        return len(self._rooms.get(user_room(user_id), ()))

    def room_size(self, room: str) -> int:
        return len(self._rooms.get(room, ()))

    # -- delivery ------------------------------------------------------------------

    async def emit(self, room: str, event: str, payload: Any) -> int:
        """Send ``event`` to every connection in ``room`` and return how many got it."""

        members = list(self._rooms.get(room, ()))
        delivered = 0
        for key in members:
            connection = self._connections.get(key)
            if connection is None:
                continue
            if await self._send(connection, event, payload):
                delivered += 1
        return delivered

    async def send(self, socket: RealtimeSocket, event: str, payload: Any) -> bool:
        connection = self._connections.get(id(socket))
        if connection is None:
            return False
        return await self._send(connection, event, payload)

    async def broadcast(
        self, event: str, payload: Any, *, exclude: RealtimeSocket | None = None
    ) -> int:
        """Send ``event`` to all joined connections except ``exclude``."""

        excluded = id(exclude) if exclude is not None else None
        delivered = 0
        for key, connection in list(self._connections.items()):
            if key == excluded or connection.state is not ConnectionState.JOINED:
                continue
            if await self._send(connection, event, payload):
                delivered += 1
        return delivered

    def publish(self, room: str, event: str, payload: Any) -> None:
        """Schedule :meth:`emit` from synchronous code.

        Inside the event loop the emit becomes a task; from an anyio worker
        thread (synchronous endpoints) it hops back onto the loop and waits
        for delivery. Without any loop the event is dropped.
        """

        payload = copy.deepcopy(payload)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            try:
                from_thread.run(self.emit, room, event, payload)
            except RuntimeError:
                logger.debug("No event loop available; dropping %s for %s", event, room)
        else:
            loop.create_task(self.emit(room, event, payload))

    def publish_to_user(self, user_id: int, event: str, payload: Any) -> None:
        self.publish(user_room(user_id), event, payload)

    async def _send(self, connection: RealtimeConnection, event: str, payload: Any) -> bool:
        try:
            await connection.socket.send_json({"type": event, "data": payload})
        except Exception:  # pragma: no cover - socket already gone
            logger.info(
                "Dropping realtime connection for user %s after failed send",
                connection.user_id,
            )
            self.disconnect(connection.socket)
            return False
        return True

    def _require(
        self, socket: RealtimeSocket, expected: ConnectionState
    ) -> RealtimeConnection:
        connection = self._connections.get(id(socket))
        if connection is None:
            raise ConnectionStateError("Connection is not registered")
        if connection.state is not expected:
            msg = (
                f"Invalid transition from {connection.state.value}; "
                f"expected {expected.value}"
            )
            raise ConnectionStateError(msg)
        return connection


__all__ = [
    "ConnectionState",
    "ConnectionStateError",
    "RealtimeConnection",
    "RealtimeGateway",
    "RealtimeSocket",
    "role_room",
    "user_room",
]
