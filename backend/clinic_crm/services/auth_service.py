"""
Authentication Service.

Handles:
- Username/password authentication
- JWT access token generation and validation
- Staff user lookup and creation
- Default clinic bootstrap
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple
import jwt
import bcrypt

from clinic_crm.config import config
from clinic_crm.db.sqlite import get_db_session
from clinic_crm.models.tenant import AppUser, Clinic, ClinicStatus, UserRole


class AuthService:
    """Service for handling staff authentication."""

    def __init__(self):
        self.logger = logging.getLogger("service.AuthService")

    @property
    def jwt_secret(self) -> str:
        return config.JWT_SECRET

    @property
    def jwt_algorithm(self) -> str:
        return config.JWT_ALGORITHM

    # =========================================================================
    # Password Hashing
    # =========================================================================

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt."""
        salt = bcrypt.gensalt()
        return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Verify a password against its hash."""
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))

    # =========================================================================
    # JWT Token Management
    # =========================================================================

    def create_access_token(self, user: AppUser) -> str:
        """Create an access token carrying the user's clinic and role."""
        expire = datetime.utcnow() + timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
        payload = {
            "sub": str(user.id),
            "clinic_id": user.clinic_id,
            "role": user.role,
            "exp": expire,
            "type": "access",
        }
        return jwt.encode(payload, self.jwt_secret, algorithm=self.jwt_algorithm)

    def decode_token(self, token: str) -> Optional[dict]:
        """Decode and validate a JWT token."""
        try:
            return jwt.decode(token, self.jwt_secret, algorithms=[self.jwt_algorithm])
        except jwt.ExpiredSignatureError:
            self.logger.info("Rejected expired token")
            return None
        except jwt.InvalidTokenError:
            return None

    # =========================================================================
    # User Lookup
    # =========================================================================

    def get_user_by_id(self, user_id: int) -> Optional[AppUser]:
        """Find an active user by ID."""
        with get_db_session() as session:
            user = session.query(AppUser).filter(
                AppUser.id == user_id,
                AppUser.is_active == True,  # noqa: E712
            ).first()
            if user:
                session.expunge(user)
            return user

    def get_user_by_username(self, username: str) -> Optional[AppUser]:
        with get_db_session() as session:
            user = session.query(AppUser).filter(AppUser.username == username).first()
            if user:
                session.expunge(user)
            return user

    def get_clinic(self, clinic_id: int) -> Optional[Clinic]:
        with get_db_session() as session:
            clinic = session.query(Clinic).filter(Clinic.id == clinic_id).first()
            if clinic:
                session.expunge(clinic)
            return clinic

    # =========================================================================
    # User Registration
    # =========================================================================

    def create_user(
        self,
        username: str,
        password: str,
        name: str,
        role: str = UserRole.STAFF,
        clinic_id: Optional[int] = None,
    ) -> Tuple[Optional[AppUser], Optional[str]]:
        """Create a staff user.

        Returns:
            Tuple of (user, error_message). Error is None on success.
        """
        username = username.strip().lower()
        if role not in UserRole.ALL:
            return None, f"Unknown role: {role}"
        if role != UserRole.SUPER_ADMIN and clinic_id is None:
            return None, "Clinic is required for clinic staff"

        with get_db_session() as session:
            existing = session.query(AppUser).filter(AppUser.username == username).first()
            if existing:
                return None, "Username already registered"

            user = AppUser(
                username=username,
                password_hash=self.hash_password(password),
                name=name,
                role=role,
                clinic_id=None if role == UserRole.SUPER_ADMIN else clinic_id,
                is_active=True,
            )
            session.add(user)
            session.commit()
            session.refresh(user)
            session.expunge(user)

            self.logger.info(f"Created user {username} (role={role}, clinic={user.clinic_id})")
            return user, None

    # =========================================================================
    # Authentication
    # =========================================================================

    def authenticate(self, username: str, password: str) -> Tuple[Optional[dict], Optional[str]]:
        """Authenticate a user with username/password.

        Returns:
            Tuple of (auth_response, error_message)
        """
        with get_db_session() as session:
            user = session.query(AppUser).filter(
                AppUser.username == username,
                AppUser.is_active == True,  # noqa: E712
            ).first()

            if not user or not self.verify_password(password, user.password_hash):
                return None, "Invalid username or password"

            if user.clinic_id is not None:
                clinic = session.query(Clinic).filter(Clinic.id == user.clinic_id).first()
                if clinic is None or clinic.status == ClinicStatus.SUSPENDED:
                    return None, "Clinic is suspended"

            user.last_login_at = datetime.utcnow()
            session.commit()

            access_token = self.create_access_token(user)
            self.logger.info(f"User {username} logged in")

            return {
                "access_token": access_token,
                "token_type": "bearer",
                "expires_in": config.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
                "user": user.to_dict(),
            }, None

    # =========================================================================
    # User Context Validation
    # =========================================================================

    def validate_access_token(self, access_token: str) -> Optional[AppUser]:
        """Validate an access token and return the user."""
        payload = self.decode_token(access_token)
        if not payload or payload.get("type") != "access":
            return None

        user_id = payload.get("sub")
        if not user_id:
            return None

        try:
            return self.get_user_by_id(int(user_id))
        except (TypeError, ValueError):
            return None

    def get_or_create_default_clinic(self) -> Clinic:
        """Get or create the clinic public submissions fall back to."""
        with get_db_session() as session:
            clinic = session.query(Clinic).filter(
                Clinic.slug == config.DEFAULT_CLINIC_SLUG
            ).first()

            if not clinic:
                clinic = Clinic(name="Default Clinic", slug=config.DEFAULT_CLINIC_SLUG)
                session.add(clinic)
                session.commit()
                session.refresh(clinic)
                self.logger.info("Created default clinic")

            session.expunge(clinic)
            return clinic


# Singleton instance
_auth_service = None

def get_auth_service() -> AuthService:
    """Get the singleton auth service instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service


def get_user_from_token(token: str) -> Optional[AppUser]:
    """Get user from access token."""
    return get_auth_service().validate_access_token(token)
