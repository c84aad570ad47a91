"""
Clinic CRM: multi-tenant patient and lead pipelines.
"""

__version__ = "0.1.0"
