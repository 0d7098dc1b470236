# Overview: Canonical forms for vehicle and client identifiers.

"""
Identifier normalization.

Every lookup, uniqueness check and persisted write involving a plate, VIN,
national ID or email goes through these functions first, so that
"ABC-123", "abc 123" and "ABC123" name the same vehicle.

All functions are pure and idempotent: f(f(x)) == f(x).
"""

from __future__ import annotations

import re


_PLATE_STRIP_RE = re.compile(r"[-\s]")
_WHITESPACE_RE = re.compile(r"\s")
_DNI_STRIP_RE = re.compile(r"[\s.\-]")


def normalize_plate(value: str | None) -> str:
    """Remove hyphens and whitespace, uppercase. Falsy input -> ""."""
    if not value:
        return ""
    return _PLATE_STRIP_RE.sub("", str(value)).upper()


def normalize_vin(value: str | None) -> str:
    """Trim, remove internal whitespace, uppercase. Falsy input -> ""."""
    if not value:
        return ""
    return _WHITESPACE_RE.sub("", str(value).strip()).upper()


def normalize_dni(value: str | None) -> str | None:
    """Remove whitespace, dots and hyphens, uppercase. Blank -> None."""
    if not value:
        return None
    cleaned = _DNI_STRIP_RE.sub("", str(value)).upper()
    return cleaned or None


def normalize_email(value: str | None) -> str | None:
    """Trim and lower-case. Blank -> None."""
    if not value:
        return None
    cleaned = str(value).strip().lower()
    return cleaned or None
