"""
SQLAlchemy models for the clinic CRM.

These are the authoritative SQLite tables.
"""

from .tenant import Clinic, ClinicStatus, AppUser, UserRole
from .lead import Lead
from .patient import Patient
from .event_log import EventLog

__all__ = [
    # Tenant/user
    "Clinic",
    "ClinicStatus",
    "AppUser",
    "UserRole",
    # Pipelines
    "Lead",
    "Patient",
    # Audit
    "EventLog",
]
