"""Read-side queries over a recipient's notifications."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.domain.entities import Notification, NotificationCounts
from app.infrastructure.repositories import NotificationRepository


@dataclass
class NotificationPage:
    items: Sequence[Notification]
    page: int
    limit: int
    counts: NotificationCounts


def list_notifications(
    session: Session, recipient_id: int, *, page: int = 1, limit: int = 20
) -> NotificationPage:
    """Return one page of notifications, newest first, with read-state counts."""

    if page < 1:
        raise ValueError("La página debe ser mayor que cero")
    if limit < 1:
        raise ValueError("El límite debe ser mayor que cero")

    repository = NotificationRepository(session)
    items = repository.list_for_recipient(
        recipient_id, skip=(page - 1) * limit, limit=limit
    )
    return NotificationPage(
        items=items,
        page=page,
        limit=limit,
        counts=repository.counts_for_recipient(recipient_id),
    )


__all__ = ["NotificationPage", "list_notifications"]
