"""
Pytest configuration for all tests.
Sets up Python path to find the backend modules and provides an app wired to
a fresh in-memory SQLite database.
"""

import sys
import os

# Add backend directory to Python path
backend_path = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'backend'))
if backend_path not in sys.path:
    sys.path.insert(0, backend_path)

import pytest


@pytest.fixture
def app():
    """Create Flask test app on an empty in-memory database."""
    from server import create_app
    from clinic_crm.db.sqlite import reset_engine

    app = create_app(
        config_overrides={"DATABASE_URL": "sqlite://", "LOG_LEVEL": "WARNING"},
        init_database=True,
    )
    app.config['TESTING'] = True
    yield app
    reset_engine()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def default_clinic(app):
    from clinic_crm.services.auth_service import get_auth_service
    return get_auth_service().get_or_create_default_clinic()


@pytest.fixture
def make_clinic(app):
    """Factory for extra clinics."""
    from clinic_crm.db.sqlite import get_db_session
    from clinic_crm.models import Clinic, ClinicStatus

    def _make(slug, status=ClinicStatus.ACTIVE):
        with get_db_session() as session:
            clinic = Clinic(name=slug.title(), slug=slug, status=status)
            session.add(clinic)
            session.commit()
            session.refresh(clinic)
            session.expunge(clinic)
            return clinic

    return _make


@pytest.fixture
def make_user(app):
    """Factory returning (user, auth_header) for a freshly created account."""
    from clinic_crm.models import UserRole
    from clinic_crm.services.auth_service import get_auth_service

    def _make(username, clinic_id=None, role=UserRole.STAFF, password="secret123"):
        auth_service = get_auth_service()
        user, error = auth_service.create_user(
            username=username, password=password, name=username.title(),
            role=role, clinic_id=clinic_id,
        )
        assert error is None, error
        token = auth_service.create_access_token(user)
        return user, {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def staff(default_clinic, make_user):
    """Staff member of the default clinic."""
    return make_user("reception", clinic_id=default_clinic.id)


@pytest.fixture
def auth_header(staff):
    return staff[1]
