"""Field validators shared by the lead and patient services."""

import re
from datetime import datetime
from typing import Optional

from clinic_crm.errors import BadRequestError

_NON_DIGITS = re.compile(r"\D+")


def require_name(value, field: str = "name", min_length: int = 2, max_length: int = 100) -> str:
    name = (value or "").strip() if isinstance(value, str) else ""
    if not name:
        raise BadRequestError(f"{field} is required")
    if len(name) < min_length:
        raise BadRequestError(f"{field} must be at least {min_length} characters")
    if len(name) > max_length:
        raise BadRequestError(f"{field} must be at most {max_length} characters")
    return name


def normalize_phone(value, required: bool = True) -> Optional[str]:
    """Strip formatting and check for a 10 or 11 digit number."""
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise BadRequestError("phone is required")
        return None
    digits = _NON_DIGITS.sub("", str(value))
    if not 10 <= len(digits) <= 11:
        raise BadRequestError("phone must have 10 or 11 digits")
    return digits


def optional_text(value, field: str, max_length: int) -> Optional[str]:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise BadRequestError(f"{field} must be a string")
    if len(value) > max_length:
        raise BadRequestError(f"{field} must be at most {max_length} characters")
    return value


def parse_datetime(value, field: str) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; naive results are kept as-is."""
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise BadRequestError(f"{field} must be an ISO-8601 string")
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise BadRequestError(f"{field} must be an ISO-8601 string")
    if parsed.tzinfo is not None:
        parsed = parsed.replace(tzinfo=None) - parsed.utcoffset()
    return parsed
