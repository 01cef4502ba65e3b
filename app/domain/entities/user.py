"""Domain entity representing a portal user."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .role import ROLE_ADMIN, ROLE_DOCTOR, Role


@dataclass
class User:
    """Attributes of a user that the notification pipeline reads or writes."""

    id: int | None
    role: Role
    name: str
    email: str
    password: str
    avatar_url: str | None = None
    is_active: bool = True
    fcm_token: str | None = None
    device_info: dict[str, Any] = field(default_factory=dict)
    is_online: bool = False
    last_seen: datetime | None = None
    created_at: datetime | None = None

    def has_role(self, alias: str) -> bool:
        """Return ``True`` when the user's role alias matches ``alias``."""

        return self.role.alias.lower() == alias.lower()

    def is_admin(self) -> bool:
        return self.has_role(ROLE_ADMIN)

    def is_doctor(self) -> bool:
        return self.has_role(ROLE_DOCTOR)

    def public_profile(self) -> dict[str, Any]:
        """Return the display fields shared with other users."""

        return {"id": self.id, "name": self.name, "avatarUrl": self.avatar_url}


__all__ = ["User"]
