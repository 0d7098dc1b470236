# Overview: Flask API routes for cars operations; parses input and returns JSON responses.

# backend/workshop/routes/cars.py
from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_permission
from ..services import ownership_service, vehicle_service
from .responses import json_body, result_response


cars_bp = Blueprint("cars", __name__, url_prefix="/api/cars")


@cars_bp.get("")
@require_auth
@require_permission("VIEW_VEHICLES")
def list_cars_route():
    page = vehicle_service.list_cars_page(
        g.actor,
        page=request.args.get("page", 1),
        query=request.args.get("q", ""),
    )
    return jsonify(page.to_dict()), 200


@cars_bp.get("/search")
@require_auth
@require_permission("VIEW_VEHICLES")
def search_cars_route():
    term = request.args.get("q", "")
    return jsonify({"items": vehicle_service.search_cars(g.actor, term)}), 200


@cars_bp.post("")
@require_auth
def register_vehicle_route():
    """
    Register a car with its owner.

    Body: {"owner": {...client fields}, "vehicle": {...car fields}}
    """
    try:
        data = json_body()
        result = ownership_service.register_vehicle(g.actor, data.get("owner"), data.get("vehicle"))
        return result_response(result)
    except Exception:
        current_app.logger.exception("Failed to register vehicle")
        return jsonify({"error": "Internal server error"}), 500


@cars_bp.get("/<int:car_id>")
@require_auth
@require_permission("VIEW_VEHICLES")
def get_car_route(car_id: int):
    detail = vehicle_service.get_car_detail(g.actor, car_id)
    if detail is None:
        return jsonify({"error": "Car not found"}), 404
    return jsonify(detail), 200


@cars_bp.patch("/<int:car_id>")
@require_auth
def update_car_route(car_id: int):
    try:
        result = vehicle_service.update_car_attributes(g.actor, car_id, json_body())
        return result_response(result)
    except Exception:
        current_app.logger.exception("Failed to update car")
        return jsonify({"error": "Internal server error"}), 500


@cars_bp.post("/<int:car_id>/transfer")
@require_auth
def transfer_car_route(car_id: int):
    """Body: {"client_id": <new owner id>}"""
    try:
        data = json_body()
        result = ownership_service.transfer_ownership(g.actor, data.get("client_id"), car_id)
        return result_response(result)
    except Exception:
        current_app.logger.exception("Failed to transfer car ownership")
        return jsonify({"error": "Internal server error"}), 500


@cars_bp.get("/<int:car_id>/owner")
@require_auth
@require_permission("VIEW_VEHICLES")
def current_owner_route(car_id: int):
    owner = ownership_service.current_owner_of(car_id)
    return jsonify({"car_id": car_id, "owner": owner.to_dict() if owner else None}), 200
