"""Domain entity representing a user role."""

from dataclasses import dataclass

ROLE_PATIENT = "patient"
ROLE_DOCTOR = "doctor"
ROLE_ADMIN = "admin"


@dataclass
class Role:
    """Role assigned to a portal user (patient, doctor or admin)."""

    id: int
    name: str
    alias: str


__all__ = ["Role", "ROLE_ADMIN", "ROLE_DOCTOR", "ROLE_PATIENT"]
