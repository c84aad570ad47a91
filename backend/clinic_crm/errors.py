"""
Error types raised by services and rendered by the Flask error handlers.
"""

from flask import jsonify
from werkzeug.exceptions import HTTPException


class CRMError(Exception):
    """Expected (operational) failure with an HTTP status."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, status_code: int = None, code: str = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code

    def to_response(self):
        return jsonify({"success": False, "error": self.message, "code": self.code}), self.status_code


class BadRequestError(CRMError):
    status_code = 400
    code = "BAD_REQUEST"


class UnauthorizedError(CRMError):
    status_code = 401
    code = "UNAUTHORIZED"


class ForbiddenError(CRMError):
    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(CRMError):
    status_code = 404
    code = "NOT_FOUND"


def register_error_handlers(app, logger):
    """Render CRMError and unexpected exceptions as JSON."""

    @app.errorhandler(CRMError)
    def handle_crm_error(error):
        logger.info(f"{error.code}: {error.message}")
        return error.to_response()

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({"success": False, "error": "Route not found", "code": "ROUTE_NOT_FOUND"}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return jsonify({"success": False, "error": "Method not allowed", "code": "METHOD_NOT_ALLOWED"}), 405

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        if isinstance(error, HTTPException):
            return jsonify({"success": False, "error": error.description, "code": error.name.upper().replace(" ", "_")}), error.code
        logger.exception(f"Unhandled error: {error}")
        return jsonify({"success": False, "error": "Internal server error", "code": "INTERNAL_ERROR"}), 500
