"""Snapshot sent to a realtime client when it joins or asks for a resync."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from app.domain.entities import NotificationCounts
from app.infrastructure.notifications import serialize_notification
from app.infrastructure.repositories import NotificationRepository, UserRepository
from app.utils import ensure_app_timezone, hours_ago


@dataclass
class SyncSnapshot:
    counts: NotificationCounts
    missed: list[dict[str, Any]] = field(default_factory=list)

    def missed_payload(self) -> dict[str, Any]:
        return {"notifications": self.missed, "count": len(self.missed)}


def missed_since(last_seen: datetime | None, *, window_hours: int) -> datetime:
    """Start of the replay window: the last disconnect, bounded by ``window_hours``."""

    cutoff = hours_ago(window_hours)
    last_seen = ensure_app_timezone(last_seen)
    if last_seen is not None and last_seen > cutoff:
        return last_seen
    return cutoff


def build_sync_snapshot(
    session: Session,
    user_id: int,
    *,
    last_seen: datetime | None,
    window_hours: int,
    limit: int,
) -> SyncSnapshot:
    """Return unread counts plus the newest unread notifications missed while away."""

    repository = NotificationRepository(session)
    counts = repository.counts_for_recipient(user_id)
    missed = repository.list_missed(
        user_id, since=missed_since(last_seen, window_hours=window_hours), limit=limit
    )

    sender_ids = [n.sender_id for n in missed if n.sender_id is not None]
    senders = UserRepository(session).get_map_by_ids(sender_ids)
    payload = [
        serialize_notification(
            notification,
            sender=senders[notification.sender_id].public_profile()
            if notification.sender_id in senders
            else None,
        )
        for notification in missed
    ]
    return SyncSnapshot(counts=counts, missed=payload)


__all__ = ["SyncSnapshot", "build_sync_snapshot", "missed_since"]
