"""
Application configuration loaded from environment variables.

The same settings drive the Flask backend and the headless board client
(clinic_crm.kanban), so a single .env can point both at one deployment.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file from backend directory
backend_dir = Path(__file__).parent.parent
load_dotenv(backend_dir / ".env")


class Config:
    """Application configuration."""

    # Flask settings
    DEBUG = os.getenv("FLASK_DEBUG", "0") == "1"
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # SQLite store (any SQLAlchemy URL works)
    DATABASE_URL = os.getenv(
        "DATABASE_URL", f"sqlite:///{backend_dir / 'clinic.db'}"
    )
    DEFAULT_CLINIC_SLUG = os.getenv("DEFAULT_CLINIC_SLUG", "default")

    # JWT
    JWT_SECRET = os.getenv("JWT_SECRET", "clinic-crm-secret-change-in-production")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "480"))

    # Board client
    CRM_API_BASE_URL = os.getenv("CRM_API_BASE_URL", "http://localhost:5001")
    CRM_HTTP_TIMEOUT = float(os.getenv("CRM_HTTP_TIMEOUT", "10"))
    TOAST_DURATION_SECONDS = float(os.getenv("TOAST_DURATION_SECONDS", "3.2"))

    @classmethod
    def get_database_url(cls) -> str:
        """Return the SQLAlchemy URL for the store."""
        return cls.DATABASE_URL

    @classmethod
    def apply_overrides(cls, overrides: dict) -> None:
        """Override settings in place (tests, embedded deployments)."""
        for key, value in overrides.items():
            if not hasattr(cls, key):
                raise KeyError(f"Unknown config key: {key}")
            setattr(cls, key, value)


# Singleton instance
config = Config()
