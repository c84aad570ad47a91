"""
Tenant guard for staff routes.

Resolves the bearer token to a user and pins the request to that user's
clinic. Super admins carry no clinic and are not scoped.
"""

import logging
import time
from functools import wraps

from flask import request, jsonify, g

from clinic_crm.services.auth_service import get_auth_service, get_user_from_token

logger = logging.getLogger("api.tenant")


def _bearer_token():
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return request.headers.get("X-Access-Token") or None


def require_clinic(f):
    """Decorator to require an authenticated user bound to an active clinic."""
    @wraps(f)
    def decorated(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"success": False, "error": "Missing or invalid Authorization header"}), 401

        user = get_user_from_token(token)
        if not user:
            return jsonify({"success": False, "error": "Invalid or expired token"}), 401

        if user.clinic_id is not None:
            clinic = get_auth_service().get_clinic(user.clinic_id)
            if clinic is None:
                return jsonify({"success": False, "error": "Clinic not found"}), 401
            if clinic.is_suspended:
                logger.warning(f"Blocked request from suspended clinic {clinic.id} (user={user.id})")
                return jsonify({"success": False, "error": "Clinic is suspended"}), 403

        g.user = user
        g.user_id = user.id
        g.clinic_id = user.clinic_id
        g.role = user.role
        g.request_started = time.monotonic()

        return f(*args, **kwargs)
    return decorated


def current_clinic_scope():
    """Clinic id to filter queries by (None for super admins)."""
    return getattr(g, "clinic_id", None)


def require_super_admin(f):
    """Decorator for platform routes: authenticated and role super_admin."""
    @require_clinic
    @wraps(f)
    def decorated(*args, **kwargs):
        if not g.user.is_super_admin:
            logger.warning(f"User {g.user_id} ({g.role}) denied platform route {request.path}")
            return jsonify({"success": False, "error": "Super admin access required"}), 403
        return f(*args, **kwargs)
    return decorated
