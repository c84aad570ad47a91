"""
Platform clinic administration (super admins only).

- GET /api/clinics - All clinics with user counts and last staff login
- PATCH /api/clinics/<id>/status - Suspend or reactivate a clinic
"""

from flask import Blueprint, request, jsonify

from clinic_crm.db.sqlite import get_db_session
from clinic_crm.routes.tenant import require_super_admin
from clinic_crm.services.clinic_service import ClinicService


bp = Blueprint("clinics", __name__, url_prefix="/api/clinics")


@bp.route("", methods=["GET"])
@require_super_admin
def list_clinics():
    with get_db_session() as db:
        return jsonify(ClinicService(db).list_clinics())


@bp.route("/<int:clinic_id>/status", methods=["PATCH"])
@require_super_admin
def update_status(clinic_id: int):
    """
    Expected payload:
    {
        "status": "suspended"   // or "active"
    }
    """
    data = request.get_json(silent=True) or {}

    with get_db_session() as db:
        clinic = ClinicService(db).set_status(clinic_id, data.get("status"))
        return jsonify({"success": True, "data": clinic.to_dict()})
