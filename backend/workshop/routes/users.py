# Overview: Flask API routes for staff user operations; parses input and returns JSON responses.

# backend/workshop/routes/users.py
from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_permission
from ..services import user_service
from .responses import json_body, result_response


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_permission("VIEW_USERS")
def list_users_route():
    page = user_service.list_users_page(
        g.actor,
        page=request.args.get("page", 1),
        query=request.args.get("q", ""),
    )
    return jsonify(page.to_dict()), 200


@users_bp.post("")
@require_auth
def create_user_route():
    """Body: {"name", "email", "password", "role"}"""
    try:
        data = json_body()
        result = user_service.create_user(
            g.actor,
            data.get("name"),
            data.get("email"),
            data.get("password"),
            data.get("role"),
        )
        return result_response(result)
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.patch("/me")
@require_auth
def update_profile_route():
    """Body: any of {"name", "email", "current_password", "new_password"}"""
    try:
        data = json_body()
        result = user_service.update_profile(
            g.actor,
            name=data.get("name"),
            email=data.get("email"),
            current_password=data.get("current_password"),
            new_password=data.get("new_password"),
        )
        return result_response(result)
    except Exception:
        current_app.logger.exception("Failed to update profile")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.patch("/<int:user_id>/role")
@require_auth
def change_role_route(user_id: int):
    """Body: {"role": "ADMIN" | "MECHANIC" | "VIEWER"}"""
    try:
        result = user_service.change_role(g.actor, user_id, json_body().get("role"))
        return result_response(result)
    except Exception:
        current_app.logger.exception("Failed to change user role")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.delete("/<int:user_id>")
@require_auth
def delete_user_route(user_id: int):
    try:
        result = user_service.delete_user(g.actor, user_id)
        return result_response(result)
    except Exception:
        current_app.logger.exception("Failed to delete user")
        return jsonify({"error": "Internal server error"}), 500
