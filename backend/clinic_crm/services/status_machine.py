"""
Server-authoritative status transitions.

Both pipelines (leads, patients) share the same rules:
- the target must be a recognized state of the pipeline
- entering the terminal state requires an attendance outcome
- an outcome is only accepted together with the terminal state
- leaving the terminal state clears the outcome
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from clinic_crm.errors import BadRequestError
from clinic_crm.statuses import (
    PipelineRegistry,
    ATTENDANCE_OUTCOME_VALUES,
    is_attendance_outcome,
)


@dataclass(frozen=True)
class StatusChange:
    """Result of applying a transition to a record."""

    record_id: int
    from_status: str
    to_status: str
    attendance_status: Optional[str]

    @property
    def changed(self) -> bool:
        return self.from_status != self.to_status

    def to_payload(self) -> dict:
        return {
            "from_status": self.from_status,
            "to_status": self.to_status,
            "attendance_status": self.attendance_status,
        }


def validate_transition(
    registry: PipelineRegistry,
    target: object,
    attendance_status: object = None,
    allowed: Tuple[str, ...] = None,
) -> None:
    """Raise BadRequestError unless (target, attendance_status) is acceptable."""
    valid_targets = allowed or registry.statuses
    if not isinstance(target, str) or target not in valid_targets:
        raise BadRequestError(
            f"Invalid status. Expected one of: {', '.join(valid_targets)}",
            code="INVALID_STATUS",
        )

    if registry.is_terminal(target):
        if attendance_status is None:
            raise BadRequestError(
                f"attendance_status is required when moving to '{target}'",
                code="ATTENDANCE_REQUIRED",
            )
        if not is_attendance_outcome(attendance_status):
            raise BadRequestError(
                f"Invalid attendance_status. Expected one of: {', '.join(ATTENDANCE_OUTCOME_VALUES)}",
                code="INVALID_ATTENDANCE",
            )
    elif attendance_status is not None:
        raise BadRequestError(
            f"attendance_status is only accepted when moving to '{registry.terminal}'",
            code="UNEXPECTED_ATTENDANCE",
        )


def apply_transition(
    record,
    registry: PipelineRegistry,
    target: str,
    attendance_status: Optional[str] = None,
    allowed: Tuple[str, ...] = None,
) -> StatusChange:
    """Validate and apply a status change to a lead or patient row (not committed)."""
    validate_transition(registry, target, attendance_status, allowed=allowed)

    previous = record.status
    now = datetime.utcnow()

    record.status = target
    record.attendance_status = attendance_status if registry.is_terminal(target) else None
    if previous != target:
        record.status_updated_at = now
    record.updated_at = now

    return StatusChange(
        record_id=record.id,
        from_status=previous,
        to_status=target,
        attendance_status=record.attendance_status,
    )
