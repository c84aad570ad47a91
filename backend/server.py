"""
Flask application entry point for the clinic CRM backend.

Registers the auth, clinic, lead and patient blueprints (shared SQLite store).
"""

import logging
import time

from flask import Flask, request, g

from clinic_crm.config import config
from clinic_crm.db.sqlite import close_db_session, rollback_session, reset_engine
from clinic_crm.errors import register_error_handlers
from clinic_crm.routes import auth_bp, clinics_bp, leads_bp, patients_bp

logger = logging.getLogger("api.server")

MUTATING_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


def create_app(config_overrides: dict = None, init_database: bool = False):
    """Create and configure Flask app."""
    if config_overrides:
        config.apply_overrides(config_overrides)
        reset_engine()

    logging.basicConfig(
        level=getattr(logging, str(config.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = Flask(__name__)

    # Load config
    app.config["SECRET_KEY"] = config.SECRET_KEY
    app.config["DEBUG"] = config.DEBUG

    # Enable CORS for the browser board
    @app.after_request
    def after_request(response):
        response.headers.add("Access-Control-Allow-Origin", "*")
        response.headers.add("Access-Control-Allow-Headers", "Content-Type,Authorization")
        response.headers.add("Access-Control-Allow-Methods", "GET,PUT,POST,PATCH,DELETE,OPTIONS")
        return response

    # Audit mutating staff requests (public lead form has no g.user)
    @app.after_request
    def audit_request(response):
        user = getattr(g, "user", None)
        if request.method not in MUTATING_METHODS or user is None:
            return response

        started = getattr(g, "request_started", None)
        duration_ms = int((time.monotonic() - started) * 1000) if started else None
        try:
            from clinic_crm.services.event_log import EventLogService
            EventLogService().log_request(
                method=request.method,
                path=request.path,
                status_code=response.status_code,
                actor_user_id=user.id,
                clinic_id=user.clinic_id,
                role=user.role,
                duration_ms=duration_ms,
            )
        except Exception:
            # Audit failures never change the response
            logger.exception(f"Failed to audit {request.method} {request.path}")
            rollback_session()
        return response

    # Ensure clean session state at the start of each request
    @app.before_request
    def ensure_clean_session():
        rollback_session()

    # Clean up database session at the end of each request
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        close_db_session(exception)

    register_error_handlers(app, logger)

    # Register blueprints
    app.register_blueprint(auth_bp)      # /api/auth/*
    app.register_blueprint(clinics_bp)   # /api/clinics/*
    app.register_blueprint(leads_bp)     # /api/leads/*
    app.register_blueprint(patients_bp)  # /api/patients/*

    # Health check endpoint
    @app.route("/health")
    def health():
        return {"status": "ok"}

    # Initialize database tables if requested (development only)
    if init_database:
        with app.app_context():
            from clinic_crm.db.sqlite import init_db
            from clinic_crm.services.auth_service import get_auth_service
            init_db()
            get_auth_service().get_or_create_default_clinic()
            logger.info("Database tables initialized")

    return app


if __name__ == "__main__":
    app = create_app(init_database=True)
    logger.info("Starting server on port 5001")
    logger.info(f"Debug mode: {config.DEBUG}")
    logger.info("Routes: /api/auth/*, /api/clinics/*, /api/leads/*, /api/patients/*, /health")
    app.run(debug=config.DEBUG, port=5001)
