"""SQLAlchemy model linking patients with their doctors."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, func

from app.infrastructure.database import Base

ASSOCIATION_STATUS_PENDING = "pending"
ASSOCIATION_STATUS_ACTIVE = "active"
ASSOCIATION_STATUS_DECLINED = "declined"
ASSOCIATION_STATUS_TERMINATED = "terminated"


class PatientDoctorAssociationModel(Base):
    """Care relationship between a patient and a doctor."""

    __tablename__ = "patient_doctor_association"
    __table_args__ = (UniqueConstraint("patient_id", "doctor_id"),)

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=ASSOCIATION_STATUS_PENDING)
    created_at = Column(DateTime, nullable=False, server_default=func.now())


__all__ = [
    "PatientDoctorAssociationModel",
    "ASSOCIATION_STATUS_ACTIVE",
    "ASSOCIATION_STATUS_DECLINED",
    "ASSOCIATION_STATUS_PENDING",
    "ASSOCIATION_STATUS_TERMINATED",
]
