"""
LeadService: queries and mutations for the lead pipeline.

Every query goes through `_scoped` so clinic staff only ever see their own
clinic's rows. A clinic_id of None (super admin) disables the filter.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, List

from sqlalchemy import and_, or_, case, func
from sqlalchemy.orm import Session as DbSession

from clinic_crm.config import config
from clinic_crm.errors import BadRequestError, NotFoundError
from clinic_crm.models import Clinic, ClinicStatus, Lead
from clinic_crm.services.event_log import EventLogService
from clinic_crm.services.status_machine import apply_transition
from clinic_crm.services.validators import (
    require_name,
    normalize_phone,
    optional_text,
    parse_datetime,
)
from clinic_crm.statuses import (
    LEAD_PIPELINE,
    LEAD_ARCHIVED,
    LEAD_STORED_STATUSES,
    LEAD_TYPES,
    DEFAULT_LEAD_TYPE,
    is_attendance_outcome,
)

KANBAN_PERIODS = ("today", "7days", "30days", "thisMonth", "all")
ARCHIVE_REASON_DELETED = "Removed by user"

UPDATABLE_FIELDS = ("status", "attendance_status", "appointment_date", "doctor", "notes", "type")


def period_cutoff(period: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """Lower bound for the kanban period filter (None means no filter)."""
    if period and period not in KANBAN_PERIODS:
        raise BadRequestError(
            f"Invalid period. Expected one of: {', '.join(KANBAN_PERIODS)}",
            code="INVALID_PERIOD",
        )
    if not period or period == "all":
        return None
    now = now or datetime.utcnow()
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "today":
        return start_of_day
    if period == "30days":
        return now - timedelta(days=30)
    if period == "thisMonth":
        return start_of_day.replace(day=1)
    return now - timedelta(days=7)


def _pipeline_order():
    return case(
        {status: index for index, status in enumerate(LEAD_PIPELINE.statuses)},
        value=Lead.status,
        else_=len(LEAD_PIPELINE.statuses),
    )


class LeadService:
    """Lead CRUD and pipeline transitions for one request."""

    def __init__(self, db: DbSession, event_log: Optional[EventLogService] = None):
        self.db = db
        self.event_log = event_log or EventLogService(db)
        self.logger = logging.getLogger("service.LeadService")

    def _scoped(self, query, clinic_id: Optional[int]):
        if clinic_id is not None:
            query = query.filter(Lead.clinic_id == clinic_id)
        return query

    # =========================================================================
    # Reads
    # =========================================================================

    def get_lead(self, lead_id: int, clinic_id: Optional[int]) -> Lead:
        lead = self._scoped(self.db.query(Lead), clinic_id).filter(Lead.id == lead_id).first()
        if lead is None:
            raise NotFoundError("Lead not found")
        return lead

    def list_for_kanban(self, clinic_id: Optional[int], period: Optional[str] = None) -> List[Lead]:
        """Non-archived leads for the board, in pipeline order then newest first."""
        query = self._scoped(self.db.query(Lead), clinic_id).filter(Lead.status != LEAD_ARCHIVED)

        cutoff = period_cutoff(period)
        if cutoff is not None:
            query = query.filter(
                or_(
                    Lead.status.in_(["novo", "em_atendimento"]),
                    and_(
                        Lead.status == "agendado",
                        Lead.appointment_date.isnot(None),
                        Lead.appointment_date >= cutoff,
                    ),
                    and_(
                        Lead.status == LEAD_PIPELINE.terminal,
                        or_(
                            and_(Lead.updated_at.isnot(None), Lead.updated_at >= cutoff),
                            and_(Lead.updated_at.is_(None), Lead.created_at >= cutoff),
                        ),
                    ),
                )
            )

        return query.order_by(_pipeline_order(), Lead.created_at.desc(), Lead.id.desc()).all()

    def list_leads(
        self,
        clinic_id: Optional[int],
        show_archived: bool = False,
        search: Optional[str] = None,
    ) -> List[Lead]:
        query = self._scoped(self.db.query(Lead), clinic_id)
        if show_archived:
            query = query.filter(Lead.status == LEAD_ARCHIVED)
        else:
            query = query.filter(Lead.status != LEAD_ARCHIVED)

        if search:
            term = f"%{search.strip()}%"
            query = query.filter(or_(Lead.name.like(term), Lead.phone.like(term)))

        return query.order_by(Lead.created_at.desc(), Lead.id.desc()).all()

    def history(self, lead_id: int, clinic_id: Optional[int]) -> list:
        """Status-change events for one lead, oldest first."""
        lead = self.get_lead(lead_id, clinic_id)
        events = self.event_log.list_events(LEAD_PIPELINE.resource, lead.id)
        return [event.to_dict() for event in events]

    # =========================================================================
    # Writes
    # =========================================================================

    def create_public(self, data: dict) -> Lead:
        """Create a lead from the public appointment-request form."""
        name = require_name(data.get("name"))
        phone = normalize_phone(data.get("phone"))
        lead_type = data.get("type") or DEFAULT_LEAD_TYPE
        if lead_type not in LEAD_TYPES:
            raise BadRequestError(f"Invalid type. Expected one of: {', '.join(LEAD_TYPES)}")

        slug = data.get("clinic")
        clinic = self._resolve_public_clinic(slug)

        lead = Lead(
            clinic_id=clinic.id,
            name=name,
            phone=phone,
            type=lead_type,
            status=LEAD_PIPELINE.initial,
        )
        self.db.add(lead)
        self.db.commit()
        self.logger.info(f"Created lead {lead.id} for clinic {clinic.id}")
        return lead

    def _resolve_public_clinic(self, slug: Optional[str]) -> Clinic:
        slug = (slug or config.DEFAULT_CLINIC_SLUG).strip()
        clinic = self.db.query(Clinic).filter(Clinic.slug == slug).first()
        if clinic is None or clinic.status == ClinicStatus.SUSPENDED:
            raise NotFoundError("Clinic not found")
        return clinic

    def update_lead(
        self,
        lead_id: int,
        data: dict,
        clinic_id: Optional[int],
        actor_user_id: Optional[int] = None,
    ) -> dict:
        """Partial update. A status change goes through the status machine."""
        fields = {key: data[key] for key in UPDATABLE_FIELDS if key in data}
        if not fields:
            raise BadRequestError(f"Nothing to update. Accepted fields: {', '.join(UPDATABLE_FIELDS)}")

        lead = self.get_lead(lead_id, clinic_id)

        if "appointment_date" in fields:
            lead.appointment_date = parse_datetime(fields["appointment_date"], "appointment_date")
        if "doctor" in fields:
            lead.doctor = optional_text(fields["doctor"], "doctor", 100)
        if "notes" in fields:
            lead.notes = optional_text(fields["notes"], "notes", 1000)
        if "type" in fields:
            if fields["type"] not in LEAD_TYPES:
                raise BadRequestError(f"Invalid type. Expected one of: {', '.join(LEAD_TYPES)}")
            lead.type = fields["type"]

        change = None
        if "status" in fields:
            change = apply_transition(
                lead,
                LEAD_PIPELINE,
                fields["status"],
                fields.get("attendance_status"),
            )
        elif "attendance_status" in fields:
            # Correcting the outcome of a lead that is already finished
            outcome = fields["attendance_status"]
            if lead.status != LEAD_PIPELINE.terminal:
                raise BadRequestError(
                    f"attendance_status is only accepted for leads in '{LEAD_PIPELINE.terminal}'"
                )
            if not is_attendance_outcome(outcome):
                raise BadRequestError("Invalid attendance_status")
            lead.attendance_status = outcome

        lead.updated_at = datetime.utcnow()

        self._log_change(lead, change, actor_user_id)
        self.db.commit()

        return {"id": lead.id, "status": lead.status, "attendance_status": lead.attendance_status}

    def archive(
        self,
        lead_id: int,
        clinic_id: Optional[int],
        reason: Optional[str] = None,
        actor_user_id: Optional[int] = None,
    ) -> Lead:
        """Soft delete: move the lead to `archived`, off the board."""
        lead = self.get_lead(lead_id, clinic_id)
        change = apply_transition(lead, LEAD_PIPELINE, LEAD_ARCHIVED, allowed=LEAD_STORED_STATUSES)
        if reason:
            lead.archive_reason = reason
        self._log_change(lead, change, actor_user_id)
        self.db.commit()
        return lead

    def unarchive(
        self,
        lead_id: int,
        clinic_id: Optional[int],
        actor_user_id: Optional[int] = None,
    ) -> Lead:
        """Restore an archived lead to the first pipeline state."""
        lead = self.get_lead(lead_id, clinic_id)
        if lead.status != LEAD_ARCHIVED:
            raise BadRequestError("Only archived leads can be restored", code="NOT_ARCHIVED")

        change = apply_transition(lead, LEAD_PIPELINE, LEAD_PIPELINE.initial)
        lead.archive_reason = None
        self._log_change(lead, change, actor_user_id)
        self.db.commit()
        return lead

    def _log_change(self, lead: Lead, change, actor_user_id: Optional[int]) -> None:
        if change is not None and change.changed:
            self.event_log.log_status_change(
                lead.clinic_id, LEAD_PIPELINE.resource, change, actor_user_id, commit=False
            )
            self.logger.info(f"Lead {lead.id}: {change.from_status} -> {change.to_status}")

    # =========================================================================
    # Calendar
    # =========================================================================

    def list_appointments(
        self,
        clinic_id: Optional[int],
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Lead]:
        """Scheduled, non-archived leads with an appointment in [start, end), earliest first."""
        query = self._scoped(self.db.query(Lead), clinic_id).filter(
            Lead.status != LEAD_ARCHIVED,
            Lead.appointment_date.isnot(None),
        )
        if start is not None:
            query = query.filter(Lead.appointment_date >= start)
        if end is not None:
            query = query.filter(Lead.appointment_date < end)
        return query.order_by(Lead.appointment_date, Lead.id).all()

    # =========================================================================
    # Metrics
    # =========================================================================

    def metrics(self, clinic_id: Optional[int]) -> dict:
        """Totals by status, type and attendance outcome plus the last 7 creation days."""
        def grouped(column, *criteria):
            query = self._scoped(self.db.query(column, func.count(Lead.id)), clinic_id)
            for criterion in criteria:
                query = query.filter(criterion)
            return query.group_by(column).all()

        total = self._scoped(self.db.query(func.count(Lead.id)), clinic_id).scalar() or 0

        day = func.date(Lead.created_at)
        history = (
            self._scoped(self.db.query(day, func.count(Lead.id)), clinic_id)
            .group_by(day)
            .order_by(day.desc())
            .limit(7)
            .all()
        )

        return {
            "total": total,
            "by_status": [{"status": s, "count": c} for s, c in grouped(Lead.status)],
            "by_type": [{"type": t, "count": c} for t, c in grouped(Lead.type)],
            "by_attendance_status": [
                {"attendance_status": a, "count": c}
                for a, c in grouped(Lead.attendance_status, Lead.attendance_status.isnot(None))
            ],
            "history": [{"date": str(d), "count": c} for d, c in reversed(history)],
        }
