"""
Patient model for the front-desk flow board (waiting → triage → consultation → finished).
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey

from clinic_crm.db.sqlite import Base
from clinic_crm.statuses import PATIENT_PIPELINE


class Patient(Base):
    """
    Patient currently on the clinic's flow board.

    Scoped to a clinic; status is one of PATIENT_STATUSES.
    """

    __tablename__ = "patient"

    id = Column(Integer, primary_key=True, autoincrement=True)
    clinic_id = Column(Integer, ForeignKey("clinic.id"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)

    status = Column(String(20), default=PATIENT_PIPELINE.initial, nullable=False)
    attendance_status = Column(String(20), nullable=True)
    status_updated_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "clinic_id": self.clinic_id,
            "name": self.name,
            "phone": self.phone,
            "status": self.status,
            "attendance_status": self.attendance_status,
            "status_updated_at": self.status_updated_at.isoformat() if self.status_updated_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
