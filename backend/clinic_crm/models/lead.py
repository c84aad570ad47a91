"""
Lead model: appointment requests moved through the lead Kanban pipeline.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text

from clinic_crm.db.sqlite import Base
from clinic_crm.statuses import LEAD_PIPELINE, DEFAULT_LEAD_TYPE


def _iso(value):
    return value.isoformat() if value else None


class Lead(Base):
    """
    Appointment request submitted through the public form.

    `status` is one of LEAD_STORED_STATUSES; `attendance_status` is only set
    while the lead sits in the terminal state.
    """

    __tablename__ = "lead"

    id = Column(Integer, primary_key=True, autoincrement=True)
    clinic_id = Column(Integer, ForeignKey("clinic.id"), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=False)
    type = Column(String(30), default=DEFAULT_LEAD_TYPE, nullable=False)

    status = Column(String(20), default=LEAD_PIPELINE.initial, nullable=False)
    attendance_status = Column(String(20), nullable=True)
    status_updated_at = Column(DateTime, nullable=True)

    # Scheduling
    appointment_date = Column(DateTime, nullable=True)
    doctor = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    archive_reason = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, nullable=True)

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "clinic_id": self.clinic_id,
            "name": self.name,
            "phone": self.phone,
            "type": self.type,
            "status": self.status,
            "attendance_status": self.attendance_status,
            "status_updated_at": _iso(self.status_updated_at),
            "appointment_date": _iso(self.appointment_date),
            "doctor": self.doctor,
            "notes": self.notes,
            "archive_reason": self.archive_reason,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
