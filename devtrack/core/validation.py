# devtrack/core/validation.py
"""
Cleaning and checking of form and query input. Every validator returns the
cleaned value or raises ValidationError.
"""

import re
import logging
from typing import Any, Optional, List
from datetime import date, datetime

from devtrack.core.errors import ValidationError

logger = logging.getLogger(__name__)


def sanitize_string(value: Any, max_length: Optional[int] = None, allow_empty: bool = False) -> str:
    """
    Strip surrounding whitespace and control characters (newlines and tabs
    survive). None and blank input are errors unless allow_empty is set.
    """
    if value is None:
        if allow_empty:
            return ""
        raise ValidationError("Value cannot be None")

    value = str(value).strip()

    if not value and not allow_empty:
        raise ValidationError("Value cannot be empty")

    if max_length and len(value) > max_length:
        raise ValidationError(f"Value exceeds maximum length of {max_length}")

    return ''.join(char for char in value if ord(char) >= 32 or char in '\n\r\t')


def sanitize_sql_like(value: str) -> str:
    """Escape LIKE wildcards so the value matches literally (pair with ESCAPE '\\')."""
    if not value:
        return ""
    value = str(value)
    value = value.replace('\\', '\\\\')
    value = value.replace('%', '\\%')
    return value.replace('_', '\\_')


def validate_integer(
    value: Any,
    min_value: Optional[int] = None,
    max_value: Optional[int] = None,
    allow_none: bool = False
) -> Optional[int]:
    if value is None or value == "":
        if allow_none:
            return None
        raise ValidationError("Integer value is required")

    try:
        value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(f"Invalid integer: {value}")

    if min_value is not None and value < min_value:
        raise ValidationError(f"Value must be at least {min_value}")
    if max_value is not None and value > max_value:
        raise ValidationError(f"Value must be at most {max_value}")
    return value


def parse_date(value: Any) -> Optional[date]:
    """
    Lenient reading of stored purchase/warranty dates: date, datetime or an
    ISO string (a time part is allowed). None when it is not a calendar date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace('Z', '+00:00')).date()
    except ValueError:
        pass
    try:
        return datetime.strptime(text[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def validate_date(value: str, format: str = "%Y-%m-%d", allow_empty: bool = False) -> Optional[str]:
    """Strict check of a submitted date; returns it normalized to YYYY-MM-DD."""
    if not value:
        if allow_empty:
            return None
        raise ValidationError("Date is required")

    try:
        return datetime.strptime(value, format).date().isoformat()
    except ValueError:
        raise ValidationError(f"Invalid date format. Expected: {format}")


def validate_password(password: str, min_length: int = 8) -> str:
    if not password:
        raise ValidationError("Password is required")
    if len(password) < min_length:
        raise ValidationError(f"Password must be at least {min_length} characters")
    if len(password) > 128:
        raise ValidationError("Password is too long")
    return password


def validate_choice(value: Any, choices: List[Any], allow_none: bool = False) -> Optional[Any]:
    if value is None or value == "":
        if allow_none:
            return None
        raise ValidationError("Value is required")

    if value not in choices:
        raise ValidationError(f"Invalid choice. Must be one of: {', '.join(map(str, choices))}")
    return value


def validate_kode(value: Any) -> str:
    """Item-type codes are exactly two ASCII digits."""
    value = sanitize_string(value, max_length=2)
    if not re.fullmatch(r'[0-9]{2}', value):
        raise ValidationError("Kode item must be exactly two digits")
    return value


def validate_divisi_name(value: Any) -> str:
    """Division names end up in URLs, so no slashes."""
    value = sanitize_string(value, max_length=40)
    if '/' in value:
        raise ValidationError("Divisi name cannot contain '/'")
    return value.upper()


def validate_fields(data: dict, schema: dict) -> dict:
    """
    Run each validator in schema over data.get(field).

    All fields are checked before failing; the ValidationError payload maps
    every failing field to its message under 'fields', which the device
    form renders next to the inputs.
    """
    validated = {}
    errors = {}

    for field_name, validator in schema.items():
        try:
            validated[field_name] = validator(data.get(field_name))
        except ValidationError as e:
            errors[field_name] = e.message
            logger.debug(f"Rejected {field_name}: {e.message}")

    if errors:
        summary = "; ".join(f"{k}: {v}" for k, v in errors.items())
        raise ValidationError(summary, payload={'fields': errors})

    return validated
