"""
Event log model for audit.

Append-only ledger of mutating requests and status transitions.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON

from clinic_crm.db.sqlite import Base


class EventLog(Base):
    """
    Append-only audit ledger.

    No phone numbers or free-text notes in payloads.
    """

    __tablename__ = "event_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    clinic_id = Column(Integer, ForeignKey("clinic.id"), nullable=True, index=True)
    event_type = Column(String(100), nullable=False)  # Request.Audit, Status.Changed

    # Optional references
    actor_user_id = Column(Integer, ForeignKey("app_user.id"), nullable=True)
    resource = Column(String(30), nullable=True)  # leads | patients
    record_id = Column(Integer, nullable=True)

    payload_json = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "event_type": self.event_type,
            "resource": self.resource,
            "record_id": self.record_id,
            "actor_user_id": self.actor_user_id,
            "payload": self.payload_json or {},
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
