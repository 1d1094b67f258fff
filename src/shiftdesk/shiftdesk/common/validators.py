from __future__ import annotations

from typing import Optional

from ..core.exceptions import ValidationError


def require_positive_int(value, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer", field=field_name)
    if number <= 0:
        raise ValidationError(f"{field_name} must be positive", field=field_name)
    return number


def optional_text(value: Optional[str]) -> Optional[str]:
    return (value or "").strip() or None
