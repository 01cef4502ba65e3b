"""Responses returned to webhook callers."""

from .notification import CamelModel


class WebhookAck(CamelModel):
    success: bool = True
    notifications_created: int = 0
