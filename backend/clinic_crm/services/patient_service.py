"""
PatientService: the clinic's patient flow board.
"""

import logging
from typing import Optional, List

from sqlalchemy import case
from sqlalchemy.orm import Session as DbSession

from clinic_crm.errors import NotFoundError
from clinic_crm.models import Patient
from clinic_crm.services.event_log import EventLogService
from clinic_crm.services.status_machine import apply_transition
from clinic_crm.services.validators import require_name, normalize_phone
from clinic_crm.statuses import PATIENT_PIPELINE


class PatientService:
    """Patient reads, creation and status transitions."""

    def __init__(self, db: DbSession, event_log: Optional[EventLogService] = None):
        self.db = db
        self.event_log = event_log or EventLogService(db)
        self.logger = logging.getLogger("service.PatientService")

    def _scoped(self, query, clinic_id: Optional[int]):
        if clinic_id is not None:
            query = query.filter(Patient.clinic_id == clinic_id)
        return query

    def get_patient(self, patient_id: int, clinic_id: Optional[int]) -> Patient:
        patient = self._scoped(self.db.query(Patient), clinic_id).filter(
            Patient.id == patient_id
        ).first()
        if patient is None:
            raise NotFoundError("Patient not found")
        return patient

    def list_board(self, clinic_id: Optional[int]) -> List[Patient]:
        """All patients in pipeline order, newest first within a column."""
        order = case(
            {status: index for index, status in enumerate(PATIENT_PIPELINE.statuses)},
            value=Patient.status,
            else_=len(PATIENT_PIPELINE.statuses),
        )
        return (
            self._scoped(self.db.query(Patient), clinic_id)
            .order_by(order, Patient.created_at.desc(), Patient.id.desc())
            .all()
        )

    def create_patient(self, clinic_id: int, data: dict) -> Patient:
        patient = Patient(
            clinic_id=clinic_id,
            name=require_name(data.get("name"), max_length=255),
            phone=normalize_phone(data.get("phone"), required=False),
            status=PATIENT_PIPELINE.initial,
        )
        self.db.add(patient)
        self.db.commit()
        self.logger.info(f"Created patient {patient.id} for clinic {clinic_id}")
        return patient

    def update_status(
        self,
        patient_id: int,
        status,
        attendance_status,
        clinic_id: Optional[int],
        actor_user_id: Optional[int] = None,
    ) -> Patient:
        patient = self.get_patient(patient_id, clinic_id)
        change = apply_transition(patient, PATIENT_PIPELINE, status, attendance_status)

        if change.changed:
            self.event_log.log_status_change(
                patient.clinic_id, PATIENT_PIPELINE.resource, change, actor_user_id, commit=False
            )
        self.db.commit()

        self.logger.info(f"Patient {patient.id}: {change.from_status} -> {change.to_status}")
        return patient

    def history(self, patient_id: int, clinic_id: Optional[int]) -> list:
        patient = self.get_patient(patient_id, clinic_id)
        events = self.event_log.list_events(PATIENT_PIPELINE.resource, patient.id)
        return [event.to_dict() for event in events]
