"""ORM models used by the application infrastructure."""

from .notification import NotificationModel
from .patient_doctor_association import (
    ASSOCIATION_STATUS_ACTIVE,
    ASSOCIATION_STATUS_DECLINED,
    ASSOCIATION_STATUS_PENDING,
    ASSOCIATION_STATUS_TERMINATED,
    PatientDoctorAssociationModel,
)
from .role import RoleModel
from .user import UserModel

__all__ = [
    "ASSOCIATION_STATUS_ACTIVE",
    "ASSOCIATION_STATUS_DECLINED",
    "ASSOCIATION_STATUS_PENDING",
    "ASSOCIATION_STATUS_TERMINATED",
    "NotificationModel",
    "PatientDoctorAssociationModel",
    "RoleModel",
    "UserModel",
]
