"""
API blueprints.
"""

from .auth import bp as auth_bp
from .clinics import bp as clinics_bp
from .leads import bp as leads_bp
from .patients import bp as patients_bp

__all__ = ["auth_bp", "clinics_bp", "leads_bp", "patients_bp"]
