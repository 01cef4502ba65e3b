"""Online/offline bookkeeping for realtime connections."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from app.infrastructure.repositories import UserRepository
from app.utils import isoformat_or_none, now_in_app_timezone


def mark_user_online(session: Session, user_id: int) -> None:
    UserRepository(session).set_presence(user_id, is_online=True)


def mark_user_offline(session: Session, user_id: int) -> datetime:
    """Flip the user offline and return the recorded last-seen time."""

    last_seen = now_in_app_timezone()
    UserRepository(session).set_presence(user_id, is_online=False, last_seen=last_seen)
    return last_seen


def presence_payload(
    user_id: int, *, is_online: bool, last_seen: datetime | None = None
) -> dict[str, Any]:
    return {
        "userId": user_id,
        "isOnline": is_online,
        "lastSeen": isoformat_or_none(last_seen),
    }


__all__ = ["mark_user_offline", "mark_user_online", "presence_payload"]
