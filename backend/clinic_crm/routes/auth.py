"""
Authentication Routes.

Endpoints:
- POST /api/auth/login - Login with username/password
- GET /api/auth/me - Get current user profile
"""

from flask import Blueprint, request, jsonify, g

from clinic_crm.services.auth_service import get_auth_service
from clinic_crm.routes.tenant import require_clinic


bp = Blueprint("auth", __name__, url_prefix="/api/auth")


# =============================================================================
# Login
# =============================================================================

@bp.route("/login", methods=["POST"])
def login():
    """Login with username/password."""
    data = request.get_json(silent=True) or {}
    username = (data.get("username") or "").strip().lower()
    password = data.get("password") or ""

    if not username:
        return jsonify({"success": False, "error": "Username is required"}), 400
    if not password:
        return jsonify({"success": False, "error": "Password is required"}), 400

    auth_service = get_auth_service()
    auth_response, error = auth_service.authenticate(username=username, password=password)

    if error:
        return jsonify({"success": False, "error": error}), 401

    return jsonify({
        "success": True,
        **auth_response,
    })


# =============================================================================
# Current User
# =============================================================================

@bp.route("/me", methods=["GET"])
@require_clinic
def me():
    """Get current user profile."""
    user = g.user
    clinic = None
    if user.clinic_id is not None:
        clinic = get_auth_service().get_clinic(user.clinic_id)

    return jsonify({
        "success": True,
        "user": {
            **user.to_dict(),
            "clinic": clinic.to_dict() if clinic else None,
        },
    })
