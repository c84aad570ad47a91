"""
EventLogService: append-only audit event logging.

No phone numbers or notes in payloads.
"""

from typing import Optional, Dict, Any, List
from sqlalchemy.orm import Session as DbSession

from clinic_crm.db.sqlite import get_db_session
from clinic_crm.models import EventLog


class EventLogService:
    """
    Append-only audit event logging.

    Event types:
    - Request.Audit: a staff member issued a mutating request
    - Status.Changed: a lead or patient moved between pipeline states
    """

    # Standard event types
    REQUEST_AUDIT = "Request.Audit"
    STATUS_CHANGED = "Status.Changed"

    # Keys that must never reach the audit log
    SENSITIVE_KEYS = {"phone", "password", "notes", "token", "access_token"}

    def __init__(self, db_session: Optional[DbSession] = None):
        self._explicit_db = db_session  # Only set if explicitly passed

    @property
    def db(self) -> DbSession:
        if self._explicit_db is not None:
            return self._explicit_db
        return get_db_session()

    def append_event(
        self,
        event_type: str,
        clinic_id: Optional[int] = None,
        actor_user_id: Optional[int] = None,
        resource: Optional[str] = None,
        record_id: Optional[int] = None,
        payload: Optional[Dict[str, Any]] = None,
        commit: bool = True,
    ) -> EventLog:
        """
        Append an event to the audit log.

        This is INSERT-only; events are never updated or deleted.
        """
        event = EventLog(
            clinic_id=clinic_id,
            event_type=event_type,
            actor_user_id=actor_user_id,
            resource=resource,
            record_id=record_id,
            payload_json=self._sanitize_payload(payload) if payload else None,
        )
        self.db.add(event)
        if commit:
            self.db.commit()
        return event

    def log_status_change(
        self,
        clinic_id: int,
        resource: str,
        change,
        actor_user_id: Optional[int] = None,
        commit: bool = True,
    ) -> EventLog:
        """Log a Status.Changed event from a StatusChange."""
        return self.append_event(
            event_type=self.STATUS_CHANGED,
            clinic_id=clinic_id,
            actor_user_id=actor_user_id,
            resource=resource,
            record_id=change.record_id,
            payload=change.to_payload(),
            commit=commit,
        )

    def log_request(
        self,
        method: str,
        path: str,
        status_code: int,
        actor_user_id: Optional[int],
        clinic_id: Optional[int],
        role: Optional[str] = None,
        duration_ms: Optional[int] = None,
    ) -> EventLog:
        """Log a Request.Audit event for a mutating staff request."""
        return self.append_event(
            event_type=self.REQUEST_AUDIT,
            clinic_id=clinic_id,
            actor_user_id=actor_user_id,
            payload={
                "action": f"{method} {path}",
                "status_code": status_code,
                "role": role,
                "duration_ms": duration_ms,
            },
        )

    def list_events(
        self,
        resource: str,
        record_id: int,
        event_type: str = STATUS_CHANGED,
        clinic_id: Optional[int] = None,
    ) -> List[EventLog]:
        """Events for one record, oldest first."""
        query = self.db.query(EventLog).filter(
            EventLog.event_type == event_type,
            EventLog.resource == resource,
            EventLog.record_id == record_id,
        )
        if clinic_id is not None:
            query = query.filter(EventLog.clinic_id == clinic_id)
        return query.order_by(EventLog.created_at, EventLog.id).all()

    def _sanitize_payload(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        sanitized = {}
        for key, value in payload.items():
            if key.lower() in self.SENSITIVE_KEYS:
                sanitized[key] = "[REDACTED]"
            elif isinstance(value, dict):
                sanitized[key] = self._sanitize_payload(value)
            else:
                sanitized[key] = value
        return sanitized
