"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

NotificationKind = Literal["message", "call", "appointment", "system", "mood", "other"]


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON with web and mobile clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NotificationRead(CamelModel):
    """Representation of a notification delivered to the client."""

    id: int
    recipient_id: int
    sender_id: int | None = None
    type: str
    title: str
    message: str
    data: dict[str, Any] = Field(default_factory=dict)
    read: bool
    created_at: datetime
    read_at: datetime | None = None


class NotificationCountsRead(CamelModel):
    unread_count: int
    total_count: int


class NotificationPageRead(CamelModel):
    """One page of notifications, newest first, with read-state counts."""

    data: list[NotificationRead]
    page: int
    limit: int
    unread_count: int
    total_count: int


class NotificationCreate(CamelModel):
    """Generic notification creation payload."""

    recipient_id: int
    type: NotificationKind
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)


class MessageNotificationCreate(CamelModel):
    recipient_id: int
    conversation_id: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    message_id: str | None = None


class SystemNotificationCreate(CamelModel):
    recipient_id: int
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)


class CallNotificationCreate(CamelModel):
    recipient_id: int
    channel_name: str = Field(..., min_length=1, description="Video room the callee should join")
    call_type: Literal["video", "audio"] = "video"


class AssignmentNotificationCreate(CamelModel):
    recipient_id: int
    assignment_type: str = Field(..., min_length=1, description="What was assigned, e.g. form")
    assignment_id: str = Field(..., min_length=1)
    title: str | None = Field(default=None, max_length=200)
    message: str | None = None


__all__ = [
    "AssignmentNotificationCreate",
    "CallNotificationCreate",
    "CamelModel",
    "MessageNotificationCreate",
    "NotificationCountsRead",
    "NotificationCreate",
    "NotificationPageRead",
    "NotificationRead",
    "SystemNotificationCreate",
]
