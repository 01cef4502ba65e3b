"""Repository implementations for infrastructure layer."""

from .notification_repository import NotificationRepository
from .patient_doctor_association_repository import PatientDoctorAssociationRepository
from .role_repository import RoleRepository
from .user_repository import UserRepository

__all__ = [
    "NotificationRepository",
    "PatientDoctorAssociationRepository",
    "RoleRepository",
    "UserRepository",
]
