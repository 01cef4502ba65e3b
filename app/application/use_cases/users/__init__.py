"""Use cases for managing users."""

from .authenticate_user import AuthenticationStatus, authenticate_user
from .create_user import create_user
from .device_tokens import register_device_token, remove_device_token

__all__ = [
    "AuthenticationStatus",
    "authenticate_user",
    "create_user",
    "register_device_token",
    "remove_device_token",
]
