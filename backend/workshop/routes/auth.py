# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/workshop/routes/auth.py
"""
Authentication API routes

- Bearer session tokens (see session_service)
- Login attempts are recorded in security_events
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, bearer_token
from ..permissions import (
    PermissionCategory,
    get_permission_definition,
    get_permissions_by_category,
    get_role_permissions,
)
from ..services import auth_service
from ..services import session_service
from ..services import permission_service
from .responses import json_body


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Returns user info and session token on success.
    Token must be included in Authorization header for protected routes.
    """
    try:
        data = json_body()
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user_agent = request.headers.get("User-Agent")
        ip_address = request.remote_addr

        user = auth_service.authenticate(email, password)

        if not user:
            permission_service.log_security_event(
                user_id=None,
                event_type="LOGIN_FAILED",
                success=False,
                reason=f"Invalid credentials for {str(email)[:64]}",
                ip_address=ip_address,
            )
            return jsonify({"error": "Invalid credentials"}), 401

        permission_service.log_security_event(
            user_id=user.id,
            event_type="LOGIN_SUCCESS",
            success=True,
            ip_address=ip_address,
        )

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=user_agent,
            ip_address=ip_address
        )

        return jsonify({
            "user": user.to_dict(),
            "permissions": sorted(get_role_permissions(user.role)),
            "token": token,
            "session": session.to_dict(),
            "message": "Login successful"
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    try:
        session_service.revoke_session(bearer_token(), reason="User logout")
        permission_service.log_security_event(
            user_id=g.current_user.id,
            event_type="LOGOUT",
            success=True,
        )
        return jsonify({"message": "Logged out"}), 200
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    user = g.current_user
    return jsonify({
        "user": user.to_dict(),
        "permissions": sorted(get_role_permissions(user.role)),
        "session": g.session_context.session.to_dict(),
    }), 200


@auth_bp.get("/permissions")
@require_auth
def permission_catalog_route():
    """Every gated action grouped by category, flagged with whether the caller holds it."""
    granted = get_role_permissions(g.actor.role)
    catalog = {}
    for category in (
        PermissionCategory.VEHICLES,
        PermissionCategory.CLIENTS,
        PermissionCategory.INTERVENTIONS,
        PermissionCategory.USERS,
    ):
        catalog[category] = [
            dict(get_permission_definition(perm[0]), granted=perm[0] in granted)
            for perm in get_permissions_by_category(category)
        ]
    return jsonify({"role": g.actor.role.value, "categories": catalog}), 200
