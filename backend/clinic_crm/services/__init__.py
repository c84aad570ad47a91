"""
Backend services for the clinic CRM.

- AuthService: authentication and token validation
- ClinicService: platform clinic administration
- EventLogService: append-only audit events
- LeadService: lead pipeline queries and transitions
- PatientService: patient flow board queries and transitions
"""

from .auth_service import AuthService, get_auth_service
from .clinic_service import ClinicService
from .event_log import EventLogService
from .lead_service import LeadService
from .patient_service import PatientService

__all__ = [
    "AuthService",
    "get_auth_service",
    "ClinicService",
    "EventLogService",
    "LeadService",
    "PatientService",
]
