"""Schemas for push device registration."""

from typing import Any

from pydantic import Field

from .notification import CamelModel


class DeviceTokenRegister(CamelModel):
    fcm_token: str = Field(..., min_length=1, description="Firebase Cloud Messaging token")
    device_info: dict[str, Any] | None = None


class DeviceTokenResponse(CamelModel):
    success: bool
    message: str
