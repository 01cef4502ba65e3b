"""Use cases for third-party webhook deliveries."""

from .stream import (
    StreamEvent,
    StreamWebhookIngestor,
    compute_signature,
    verify_signature,
)

__all__ = [
    "StreamEvent",
    "StreamWebhookIngestor",
    "compute_signature",
    "verify_signature",
]
