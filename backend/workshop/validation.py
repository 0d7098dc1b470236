from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any

from .errors import ValidationError


EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Maximum cost: 99,999,999.99 (Numeric(10, 2))
MAX_COST = Decimal("99999999.99")


def clean_str(value: Any) -> str | None:
    """Strip strings; blank becomes None."""
    if value is None:
        return None
    stripped = str(value).strip()
    return stripped or None


def require_fields(payload: dict, fields: list[str], label: str | None = None) -> None:
    missing = [f for f in fields if clean_str(payload.get(f)) is None]
    if missing:
        prefix = f"{label}: " if label else ""
        raise ValidationError(f"{prefix}missing required fields: {', '.join(missing)}")


def parse_int(value: Any, field: str) -> int:
    """
    Strict integer parsing for form input.

    Accepts ints and plain digit strings (optional leading minus); rejects
    bools, floats, decimals and scientific notation.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer", field=field)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer", field=field)
        # Reject scientific notation (e.g., "1e5") and decimals (e.g., "12.5")
        if "e" in stripped.lower() or "." in stripped:
            raise ValidationError(f"{field} must be a plain integer", field=field)
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer", field=field)
    raise ValidationError(f"{field} must be an integer", field=field)


def parse_id(value: Any, field: str) -> int:
    """Entity ids: required, strict integers, positive."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} is required", field=field)
    parsed = parse_int(value, field)
    if parsed <= 0:
        raise ValidationError(f"{field} must be a positive integer", field=field)
    return parsed


def parse_cost(value: Any, field: str = "cost") -> Decimal:
    """Parse a non-negative money amount with two decimals."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a valid non-negative number", field=field)
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a valid non-negative number", field=field)
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"{field} must be a valid non-negative number", field=field)
    if amount > MAX_COST:
        raise ValidationError(f"{field} exceeds maximum allowed value", field=field)
    return amount.quantize(Decimal("0.01"))


def validate_email(value: str, field: str = "email") -> str:
    if not EMAIL_RE.match(value):
        raise ValidationError("Invalid email format", field=field)
    return value


def reject_unknown_fields(payload: dict, allowed: set[str]) -> None:
    unknown = sorted(k for k in payload if k not in allowed)
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(unknown)}")
