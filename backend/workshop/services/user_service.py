# Overview: Service-layer operations for user; encapsulates business logic and database work.

"""
Staff account management.

Only ADMINs create users, change roles, delete accounts and list users.
Every authenticated actor may edit their own profile. Nobody may change
their own role or delete their own account (self-protection, enforced by
permission_service.require).
"""

from __future__ import annotations

from flask import current_app

from ..errors import ConflictError, NotFound, ValidationError
from ..extensions import db
from ..models import Intervention, StaffRole, StaffUser
from ..validation import clean_str, parse_id, validate_email
from . import permission_service
from .auth_service import hash_password, validate_password_strength, verify_password
from .concurrency import lock_for_update
from .identifier_service import normalize_email
from .results import ActionResult, Page, page_bounds, service_action
from .session_service import delete_user_sessions, revoke_all_user_sessions


NAME_MIN_LENGTH = 2


def _parse_role(value) -> StaffRole:
    role = StaffRole.parse(value) if value else None
    if role is None:
        allowed = ", ".join(r.value for r in StaffRole)
        raise ValidationError(f"Invalid role. Allowed roles: {allowed}", field="role")
    return role


def _email_taken(email: str, exclude_id: int | None = None) -> bool:
    q = db.session.query(StaffUser.id).filter(StaffUser.email == email)
    if exclude_id is not None:
        q = q.filter(StaffUser.id != exclude_id)
    return q.first() is not None


@service_action
def create_user(actor, name, email, password, role) -> ActionResult:
    permission_service.require(actor, "CREATE_USER")

    name = clean_str(name)
    email = normalize_email(email)
    if not name or not email or not password or not role:
        raise ValidationError("All fields are required: name, email, password, role")
    validate_email(email)
    validate_password_strength(password)
    role = _parse_role(role)

    if _email_taken(email):
        raise ConflictError("Email is already registered", field="email")

    user = StaffUser(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role.value,
        is_active=True,
    )
    db.session.add(user)
    db.session.flush()

    return ActionResult.ok(
        f"User {user.email} created",
        {"user": user},
        stale_views=["users"],
        status_code=201,
    )


@service_action
def change_role(actor, target_user_id, role) -> ActionResult:
    """Change another user's role; their sessions are revoked so the new role applies at once."""
    permission_service.require(actor, "CHANGE_ROLE", target_user_id=target_user_id)

    target_user_id = parse_id(target_user_id, "user_id")
    role = _parse_role(role)

    user = lock_for_update(db.session.query(StaffUser).filter_by(id=target_user_id)).first()
    if not user:
        raise NotFound("User not found")

    if user.role != role.value:
        user.role = role.value
        revoke_all_user_sessions(user.id, reason="Role changed")
    db.session.flush()

    return ActionResult.ok(
        f"Role of {user.email} set to {role.value}",
        {"user": user},
        stale_views=["users", f"user:{user.id}"],
    )


@service_action
def delete_user(actor, target_user_id) -> ActionResult:
    """
    Delete a staff account.

    Blocked while the user is recorded as performer of any intervention;
    work orders are never cascaded away.
    """
    permission_service.require(actor, "DELETE_USER", target_user_id=target_user_id)

    target_user_id = parse_id(target_user_id, "user_id")
    user = lock_for_update(db.session.query(StaffUser).filter_by(id=target_user_id)).first()
    if not user:
        raise NotFound("User not found")

    performed = (
        db.session.query(db.func.count(Intervention.id))
        .filter(Intervention.performed_by_id == user.id)
        .scalar()
    )
    if performed:
        raise ConflictError(
            f"User {user.email} performed {performed} intervention(s) and cannot be deleted",
            code="has_interventions",
        )

    email = user.email
    delete_user_sessions(user.id)
    db.session.delete(user)
    db.session.flush()

    return ActionResult.ok(
        f"User {email} deleted",
        {"user_id": target_user_id},
        stale_views=["users"],
    )


@service_action
def update_profile(actor, name=None, email=None, current_password=None, new_password=None) -> ActionResult:
    """
    Self-service edit of the actor's own name, email and password.

    A password change needs the current password and an existing hash.
    Submitting nothing different is a success with a "no changes" message.
    """
    permission_service.require(actor, "EDIT_OWN_PROFILE")

    user = lock_for_update(db.session.query(StaffUser).filter_by(id=actor.id)).first()
    if not user:
        raise NotFound("User not found")

    changed = []

    name = clean_str(name)
    if name is not None and name != user.name:
        if len(name) < NAME_MIN_LENGTH:
            raise ValidationError(
                f"Name must be at least {NAME_MIN_LENGTH} characters long", field="name"
            )
        user.name = name
        changed.append("name")

    email = normalize_email(email)
    if email is not None and email != user.email:
        validate_email(email)
        if _email_taken(email, exclude_id=user.id):
            raise ConflictError("Email is already registered", field="email")
        user.email = email
        changed.append("email")

    if new_password:
        if not user.password_hash:
            raise ValidationError(
                "This account has no password to change", field="new_password", code="no_password"
            )
        if not current_password:
            raise ValidationError("Current password is required", field="current_password")
        if not verify_password(current_password, user.password_hash):
            raise ValidationError("Current password is incorrect", field="current_password")
        validate_password_strength(new_password, field="new_password")
        user.password_hash = hash_password(new_password)
        changed.append("password")

    if not changed:
        return ActionResult.ok("No changes", {"user": user})

    db.session.flush()
    current_app.logger.info("User %s updated profile fields: %s", user.id, ", ".join(changed))

    return ActionResult.ok(
        "Profile updated",
        {"user": user},
        stale_views=["profile", "users"],
    )


def list_users_page(actor, page=1, query: str = "") -> Page:
    """ADMIN-only paginated listing ordered by name; others get an empty page."""
    page_size = current_app.config.get("PAGE_SIZE", 10)
    if not permission_service.authorize(actor, "VIEW_USERS"):
        return Page.empty(page_size)

    page, offset = page_bounds(page, page_size)
    q = db.session.query(StaffUser)
    term = (query or "").strip()
    if term:
        q = q.filter(db.or_(
            StaffUser.name.icontains(term, autoescape=True),
            StaffUser.email.icontains(term, autoescape=True),
        ))

    total = q.count()
    users = q.order_by(StaffUser.name.asc(), StaffUser.id.asc()).offset(offset).limit(page_size).all()
    return Page(items=users, total=total, current_page=page, page_size=page_size)
