"""
Patient flow board endpoints.

- GET /api/patients - Board listing (pipeline order)
- POST /api/patients - Register a patient (enters "waiting")
- PATCH /api/patients/<id>/status - Move a patient between columns
- GET /api/patients/<id>/history - Status change history
"""

from flask import Blueprint, request, jsonify, g

from clinic_crm.db.sqlite import get_db_session
from clinic_crm.errors import BadRequestError
from clinic_crm.routes.tenant import require_clinic, current_clinic_scope
from clinic_crm.services.patient_service import PatientService


bp = Blueprint("patients", __name__, url_prefix="/api/patients")


@bp.route("", methods=["GET"])
@require_clinic
def list_patients():
    with get_db_session() as db:
        patients = PatientService(db).list_board(current_clinic_scope())
        return jsonify([patient.to_dict() for patient in patients])


@bp.route("", methods=["POST"])
@require_clinic
def create_patient():
    data = request.get_json(silent=True) or {}

    clinic_id = current_clinic_scope()
    if clinic_id is None:
        # Super admins pick the clinic explicitly
        clinic_id = data.get("clinic_id")
        if not isinstance(clinic_id, int):
            raise BadRequestError("clinic_id is required", code="CLINIC_REQUIRED")

    with get_db_session() as db:
        patient = PatientService(db).create_patient(clinic_id, data)
        return jsonify({"success": True, "data": patient.to_dict()}), 201


@bp.route("/<int:patient_id>/status", methods=["PATCH"])
@require_clinic
def update_status(patient_id: int):
    """
    Move a patient to another column.

    Expected payload:
    {
        "status": "finished",
        "attendance_status": "compareceu"   // only with "finished"
    }
    """
    data = request.get_json(silent=True) or {}

    with get_db_session() as db:
        patient = PatientService(db).update_status(
            patient_id,
            data.get("status"),
            data.get("attendance_status"),
            current_clinic_scope(),
            actor_user_id=g.user_id,
        )
        return jsonify({
            "success": True,
            "id": patient.id,
            "status": patient.status,
            "attendance_status": patient.attendance_status,
        })


@bp.route("/<int:patient_id>/history", methods=["GET"])
@require_clinic
def history(patient_id: int):
    with get_db_session() as db:
        events = PatientService(db).history(patient_id, current_clinic_scope())
        return jsonify({"success": True, "data": events})
