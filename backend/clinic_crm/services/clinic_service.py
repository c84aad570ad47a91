"""
ClinicService: platform-level clinic administration (super admins only).
"""

import logging
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session as DbSession

from clinic_crm.errors import BadRequestError, NotFoundError
from clinic_crm.models import AppUser, Clinic, ClinicStatus

CLINIC_STATUSES = (ClinicStatus.ACTIVE, ClinicStatus.SUSPENDED)


class ClinicService:
    def __init__(self, db: DbSession):
        self.db = db
        self.logger = logging.getLogger("service.ClinicService")

    def list_clinics(self) -> List[dict]:
        """Every clinic with its user count and most recent staff login."""
        rows = (
            self.db.query(
                Clinic,
                func.count(AppUser.id),
                func.max(AppUser.last_login_at),
            )
            .outerjoin(AppUser, AppUser.clinic_id == Clinic.id)
            .group_by(Clinic.id)
            .order_by(Clinic.created_at.desc(), Clinic.id.desc())
            .all()
        )
        return [
            {
                **clinic.to_dict(),
                "user_count": user_count,
                "last_login_at": last_login.isoformat() if last_login else None,
            }
            for clinic, user_count, last_login in rows
        ]

    def set_status(self, clinic_id: int, status) -> Clinic:
        if status not in CLINIC_STATUSES:
            raise BadRequestError(
                f"Invalid status. Expected one of: {', '.join(CLINIC_STATUSES)}",
                code="INVALID_STATUS",
            )

        clinic = self.db.query(Clinic).filter(Clinic.id == clinic_id).first()
        if clinic is None:
            raise NotFoundError("Clinic not found")

        previous = clinic.status
        clinic.status = status
        self.db.commit()

        self.logger.info(f"Clinic {clinic.id} ({clinic.slug}): {previous} -> {status}")
        return clinic
