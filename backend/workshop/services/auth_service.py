# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Password hashing and login.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, 12 by default)
- Minimum length from PASSWORD_MIN_LENGTH (6 by default)
- Accounts without a password hash never authenticate with a password
- Session tokens managed separately (see session_service.py)
"""

from __future__ import annotations

import bcrypt
from flask import current_app

from ..errors import ValidationError
from ..extensions import db
from ..models import StaffUser
from ..time_utils import utcnow
from .identifier_service import normalize_email


def validate_password_strength(password: str | None, field: str = "password") -> None:
    """Raise ValidationError when the password is missing or too short."""
    min_length = current_app.config.get("PASSWORD_MIN_LENGTH", 6)
    if not password or len(password) < min_length:
        raise ValidationError(
            f"Password must be at least {min_length} characters long", field=field
        )


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for length before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str | None, password_hash: str | None) -> bool:
    """
    Verify password against bcrypt hash.

    Returns False for a missing password or hash, or a malformed hash.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Invalid salt / not a bcrypt hash
        return False


def authenticate(email: str, password: str) -> StaffUser | None:
    """
    Authenticate a staff user by email and password.

    Returns the user if credentials are valid and the account is active,
    None otherwise. Updates last_login_at on success.
    """
    email = normalize_email(email)
    if not email:
        return None

    user = db.session.query(StaffUser).filter(
        StaffUser.email == email,
        StaffUser.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None
