from __future__ import annotations

import math
from typing import Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str, *, max_length: Optional[int] = None) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return require_max_length(str(value).strip(), max_length, field_name)


def require_max_length(value: str, max_length: Optional[int], field_name: str) -> str:
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"{field_name} must be at most {max_length} characters")
    return value


def optional_text(value, field_name: str, *, max_length: Optional[int] = None) -> Optional[str]:
    """Stripped string or None for blank input. Non-strings are rejected."""

    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    return require_max_length(value.strip(), max_length, field_name) or None


def require_latitude(value: float, field_name: str = "latitude") -> float:
    lat = _require_number(value, field_name)
    if not -90.0 <= lat <= 90.0:
        raise ValidationError(f"{field_name} must be between -90 and 90")
    return lat


def require_longitude(value: float, field_name: str = "longitude") -> float:
    lng = _require_number(value, field_name)
    if not -180.0 <= lng <= 180.0:
        raise ValidationError(f"{field_name} must be between -180 and 180")
    return lng


def require_positive(value: float, field_name: str) -> float:
    number = _require_number(value, field_name)
    if number <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return number


def require_non_negative_int(value: int, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if number < 0:
        raise ValidationError(f"{field_name} must not be negative")
    return number


def _require_number(value: float, field_name: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not math.isfinite(number):
        raise ValidationError(f"{field_name} must be a finite number")
    return number
