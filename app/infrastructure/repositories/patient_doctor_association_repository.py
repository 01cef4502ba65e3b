"""Persistence helpers for patient/doctor care relationships."""

from __future__ import annotations

from sqlalchemy.orm import Session

from app.infrastructure.models import (
    ASSOCIATION_STATUS_ACTIVE,
    PatientDoctorAssociationModel,
)


class PatientDoctorAssociationRepository:
    """Look up which patients are cared for by which doctors."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(
        self, *, patient_id: int, doctor_id: int, status: str = ASSOCIATION_STATUS_ACTIVE
    ) -> int:
        model = PatientDoctorAssociationModel(
            patient_id=patient_id, doctor_id=doctor_id, status=status
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return model.id

    def list_patient_ids_for_doctor(self, doctor_id: int) -> list[int]:
        query = (
            self.session.query(PatientDoctorAssociationModel.patient_id)
            .filter(PatientDoctorAssociationModel.doctor_id == doctor_id)
            .filter(PatientDoctorAssociationModel.status == ASSOCIATION_STATUS_ACTIVE)
            .order_by(PatientDoctorAssociationModel.id)
        )
        return [patient_id for (patient_id,) in query.all()]


__all__ = ["PatientDoctorAssociationRepository"]
