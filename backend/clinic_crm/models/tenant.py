"""
Clinic (tenant) and staff user models.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean
from sqlalchemy.orm import relationship

from clinic_crm.db.sqlite import Base


class ClinicStatus:
    """Clinic lifecycle values."""
    ACTIVE = "active"
    SUSPENDED = "suspended"


class UserRole:
    """Staff roles."""
    SUPER_ADMIN = "super_admin"
    CLINIC_ADMIN = "clinic_admin"
    STAFF = "staff"

    ALL = (SUPER_ADMIN, CLINIC_ADMIN, STAFF)


class Clinic(Base):
    """A tenant clinic. Every lead and patient row belongs to one."""

    __tablename__ = "clinic"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), nullable=False, unique=True)
    status = Column(String(20), default=ClinicStatus.ACTIVE, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    users = relationship("AppUser", back_populates="clinic")

    @property
    def is_suspended(self) -> bool:
        return self.status == ClinicStatus.SUSPENDED

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "status": self.status,
        }


class AppUser(Base):
    """Staff account.

    Super admins have no clinic; every other role is bound to exactly one.
    """

    __tablename__ = "app_user"

    id = Column(Integer, primary_key=True, autoincrement=True)
    clinic_id = Column(Integer, ForeignKey("clinic.id"), nullable=True)
    username = Column(String(100), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(20), default=UserRole.STAFF, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_login_at = Column(DateTime, nullable=True)

    # Relationships
    clinic = relationship("Clinic", back_populates="users")

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "role": self.role,
            "clinic_id": self.clinic_id,
        }
