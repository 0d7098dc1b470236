# Overview: Flask API routes for clients operations; parses input and returns JSON responses.

# backend/workshop/routes/clients.py
from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_permission
from ..extensions import db
from ..models import Client
from ..services import client_service, ownership_service
from .responses import json_body, result_response


clients_bp = Blueprint("clients", __name__, url_prefix="/api/clients")


@clients_bp.get("")
@require_auth
@require_permission("VIEW_CLIENTS")
def list_clients_route():
    page = client_service.list_clients_page(
        g.actor,
        page=request.args.get("page", 1),
        query=request.args.get("q", ""),
    )
    return jsonify(page.to_dict()), 200


@clients_bp.get("/<int:client_id>")
@require_auth
@require_permission("VIEW_CLIENTS")
def get_client_route(client_id: int):
    details = client_service.get_client_details(g.actor, client_id)
    if details is None:
        return jsonify({"error": "Client not found"}), 404
    return jsonify(details), 200


@clients_bp.patch("/<int:client_id>")
@require_auth
def update_client_route(client_id: int):
    try:
        result = client_service.update_client(g.actor, client_id, json_body())
        return result_response(result)
    except Exception:
        current_app.logger.exception("Failed to update client")
        return jsonify({"error": "Internal server error"}), 500


@clients_bp.get("/<int:client_id>/ownerships")
@require_auth
@require_permission("VIEW_CLIENTS")
def client_ownerships_route(client_id: int):
    if db.session.get(Client, client_id) is None:
        return jsonify({"error": "Client not found"}), 404
    history = ownership_service.ownership_history(client_id)
    return jsonify({"items": [record.to_dict() for record in history]}), 200
