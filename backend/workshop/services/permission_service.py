# Overview: Service-layer operations for permission; encapsulates business logic and database work.

"""
Access policy and security event logging.

Every mutating operation calls `require` before touching the store; read
operations call `authorize` and degrade to empty results.

DESIGN PRINCIPLES:
- Fail closed: no actor or unknown role means deny
- Log denials only: grants are not logged
- Self-protection: an actor can never change their own role or delete
  their own account, whatever their role
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import has_request_context, request

from ..errors import AuthenticationRequired, AuthorizationDenied
from ..extensions import db
from ..models import SecurityEvent, StaffRole
from ..permissions import SELF_PROTECTED_PERMISSIONS, get_role_permissions, validate_permission_code
from ..time_utils import utcnow


SELF_PROTECTION_MESSAGES = {
    "CHANGE_ROLE": "You cannot change your own role",
    "DELETE_USER": "You cannot delete your own account",
}


@dataclass(frozen=True)
class Actor:
    """Who is performing an operation: the authenticated staff user's id and role."""
    id: int
    role: StaffRole

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(id=user.id, role=StaffRole.parse(user.role) or StaffRole.VIEWER)


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
) -> SecurityEvent:
    """
    Append a row to the security audit trail and commit it.

    event_type examples:
    - PERMISSION_DENIED
    - AUTHENTICATION_REQUIRED
    - LOGIN_SUCCESS / LOGIN_FAILED
    - LOGOUT
    """
    if ip_address is None and has_request_context():
        ip_address = request.remote_addr

    event = SecurityEvent(
        user_id=user_id,
        event_type=event_type,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        occurred_at=utcnow(),
    )

    db.session.add(event)
    db.session.commit()

    return event


def _is_self_target(actor: Actor, action: str, target_user_id) -> bool:
    if action not in SELF_PROTECTED_PERMISSIONS or target_user_id is None:
        return False
    try:
        return int(target_user_id) == actor.id
    except (TypeError, ValueError):
        return False


def authorize(actor: Actor | None, action: str, target_user_id=None) -> bool:
    """
    Pure policy check over the role table.

    Returns False for a missing actor, an unknown role, or a self-protected
    action aimed at the actor's own account.
    """
    if not validate_permission_code(action):
        raise ValueError(f"Unknown permission code: {action}")
    if actor is None:
        return False
    role = StaffRole.parse(actor.role)
    if role is None:
        return False
    if _is_self_target(actor, action, target_user_id):
        return False
    return action in get_role_permissions(role)


def require(actor: Actor | None, action: str, target_user_id=None) -> Actor:
    """
    Enforce `action` for `actor` or raise.

    Raises AuthenticationRequired when there is no actor and
    AuthorizationDenied when the role lacks the action or the
    self-protection rule triggers. Denials are logged.
    """
    if actor is None:
        log_security_event(None, "AUTHENTICATION_REQUIRED", False, action=action, reason="No active session")
        raise AuthenticationRequired("Authentication required")

    if _is_self_target(actor, action, target_user_id):
        message = SELF_PROTECTION_MESSAGES.get(action, "You cannot perform this action on your own account")
        log_security_event(actor.id, "PERMISSION_DENIED", False, action=action, reason="Self-protection")
        raise AuthorizationDenied(message, code="self_protection")

    if not authorize(actor, action):
        log_security_event(actor.id, "PERMISSION_DENIED", False, action=action, reason=f"Role {actor.role} lacks {action}")
        raise AuthorizationDenied("You do not have permission to perform this action", code="role")

    return actor
