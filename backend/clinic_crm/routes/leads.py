"""
Lead API endpoints.

- POST /api/leads - Public appointment request (no auth)
- GET /api/leads - List leads (view=kanban&period=..., show_archived, search)
- GET /api/leads/dashboard - Lead metrics
- GET /api/leads/calendar - Appointments in a date range (start, end)
- GET /api/leads/<id> - One lead
- GET /api/leads/<id>/history - Status change history
- PATCH /api/leads/<id> - Partial update, including status transitions
- DELETE /api/leads/<id> - Soft delete (archive)
- PUT /api/leads/<id>/archive - Archive with reason
- PUT /api/leads/<id>/unarchive - Restore to the first pipeline state
"""

from datetime import timedelta

from flask import Blueprint, request, jsonify, g

from clinic_crm.db.sqlite import get_db_session
from clinic_crm.routes.tenant import require_clinic, current_clinic_scope
from clinic_crm.services.lead_service import LeadService, ARCHIVE_REASON_DELETED
from clinic_crm.services.validators import parse_datetime


bp = Blueprint("leads", __name__, url_prefix="/api/leads")


@bp.route("", methods=["POST"])
def create_lead():
    """Public appointment-request submission."""
    data = request.get_json(silent=True) or {}

    with get_db_session() as db:
        lead = LeadService(db).create_public(data)
        return jsonify({
            "success": True,
            "id": lead.id,
            "message": "Request received",
        }), 201


@bp.route("", methods=["GET"])
@require_clinic
def list_leads():
    """
    List leads.

    Query params:
        view: "kanban" for the board (non-archived, pipeline order)
        period: today | 7days | 30days | thisMonth | all (kanban view only)
        show_archived: "true" to list archived leads
        search: name or phone fragment
    """
    view = request.args.get("view")
    show_archived = request.args.get("show_archived") == "true"

    with get_db_session() as db:
        service = LeadService(db)
        if view == "kanban" and not show_archived:
            leads = service.list_for_kanban(current_clinic_scope(), request.args.get("period"))
        else:
            leads = service.list_leads(
                current_clinic_scope(),
                show_archived=show_archived,
                search=request.args.get("search"),
            )
        # Bare array, the board client consumes it directly
        return jsonify([lead.to_dict() for lead in leads])


# Registered before /<id> routes so "dashboard" is never parsed as an id
@bp.route("/dashboard", methods=["GET"])
@require_clinic
def dashboard():
    with get_db_session() as db:
        return jsonify(LeadService(db).metrics(current_clinic_scope()))


@bp.route("/calendar", methods=["GET"])
@require_clinic
def calendar():
    """
    Appointments for the calendar view.

    Query params:
        start: ISO date or datetime, inclusive
        end: ISO date or datetime, exclusive (a bare date includes that whole day)
    """
    start = parse_datetime(request.args.get("start"), "start")
    end_arg = request.args.get("end")
    end = parse_datetime(end_arg, "end")
    if end is not None and len(end_arg) == 10:
        end += timedelta(days=1)

    with get_db_session() as db:
        leads = LeadService(db).list_appointments(current_clinic_scope(), start, end)
        return jsonify([lead.to_dict() for lead in leads])


@bp.route("/<int:lead_id>", methods=["GET"])
@require_clinic
def get_lead(lead_id: int):
    with get_db_session() as db:
        lead = LeadService(db).get_lead(lead_id, current_clinic_scope())
        return jsonify({"success": True, "data": lead.to_dict()})


@bp.route("/<int:lead_id>", methods=["PATCH"])
@require_clinic
def update_lead(lead_id: int):
    """
    Partial update.

    Expected payload (at least one field):
    {
        "status": "finalizado",
        "attendance_status": "compareceu",
        "appointment_date": "2026-10-20T14:00:00",
        "doctor": "Dr. Silva",
        "notes": "...",
        "type": "retorno"
    }
    """
    data = request.get_json(silent=True) or {}

    with get_db_session() as db:
        result = LeadService(db).update_lead(
            lead_id, data, current_clinic_scope(), actor_user_id=g.user_id
        )
        return jsonify({"success": True, "message": "Lead updated", **result})


@bp.route("/<int:lead_id>", methods=["DELETE"])
@require_clinic
def delete_lead(lead_id: int):
    with get_db_session() as db:
        LeadService(db).archive(
            lead_id, current_clinic_scope(), ARCHIVE_REASON_DELETED, actor_user_id=g.user_id
        )
        return jsonify({"success": True, "message": "Lead removed"})


@bp.route("/<int:lead_id>/archive", methods=["PUT"])
@require_clinic
def archive_lead(lead_id: int):
    data = request.get_json(silent=True) or {}

    with get_db_session() as db:
        LeadService(db).archive(
            lead_id, current_clinic_scope(), data.get("archive_reason"), actor_user_id=g.user_id
        )
        return jsonify({"success": True, "message": "Lead archived"})


@bp.route("/<int:lead_id>/unarchive", methods=["PUT"])
@require_clinic
def unarchive_lead(lead_id: int):
    with get_db_session() as db:
        lead = LeadService(db).unarchive(lead_id, current_clinic_scope(), actor_user_id=g.user_id)
        return jsonify({"success": True, "message": "Lead restored", "status": lead.status})


@bp.route("/<int:lead_id>/history", methods=["GET"])
@require_clinic
def history(lead_id: int):
    with get_db_session() as db:
        events = LeadService(db).history(lead_id, current_clinic_scope())
        return jsonify({"success": True, "data": events})
