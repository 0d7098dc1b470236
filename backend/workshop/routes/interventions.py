# Overview: Flask API routes for interventions operations; parses input and returns JSON responses.

# backend/workshop/routes/interventions.py
import io

from flask import Blueprint, request, jsonify, current_app, g, send_file

from ..decorators import require_auth, require_permission
from ..receipts import render_receipt_pdf
from ..services import intervention_service
from .responses import json_body, result_response


interventions_bp = Blueprint("interventions", __name__, url_prefix="/api/interventions")


@interventions_bp.get("")
@require_auth
@require_permission("VIEW_INTERVENTIONS")
def list_active_route():
    """
    Active work orders.

    Query: ?exclude=CLOSED,CANCELLED overrides the configured exclusion;
    ?exclude= (empty) lists every status.
    """
    excluded = None
    if "exclude" in request.args:
        excluded = [s for s in request.args.get("exclude", "").split(",") if s.strip()]
    rows = intervention_service.list_active_interventions(g.actor, excluded_statuses=excluded)
    return jsonify({"items": rows}), 200


@interventions_bp.post("")
@require_auth
def create_intervention_route():
    """Body: {"car_id", "description", "notes"?, "mileage"}"""
    try:
        data = json_body()
        result = intervention_service.create_intervention(
            g.actor,
            data.get("car_id"),
            data.get("description"),
            notes=data.get("notes"),
            mileage=data.get("mileage"),
        )
        return result_response(result)
    except Exception:
        current_app.logger.exception("Failed to create intervention")
        return jsonify({"error": "Internal server error"}), 500


@interventions_bp.get("/<int:intervention_id>")
@require_auth
@require_permission("VIEW_INTERVENTIONS")
def get_intervention_route(intervention_id: int):
    detail = intervention_service.intervention_detail(g.actor, intervention_id)
    if detail is None:
        return jsonify({"error": "Intervention not found"}), 404
    return jsonify(detail), 200


@interventions_bp.patch("/<int:intervention_id>")
@require_auth
def update_intervention_route(intervention_id: int):
    """
    Body: any of {"notes", "cost", "status"}

    CLOSED and CANCELLED are terminal: reopening answers 400 with code
    "invalid_transition" unless INTERVENTION_ALLOW_REOPEN is enabled.
    """
    try:
        result = intervention_service.update_intervention(g.actor, intervention_id, json_body())
        return result_response(result)
    except Exception:
        current_app.logger.exception("Failed to update intervention")
        return jsonify({"error": "Internal server error"}), 500


@interventions_bp.get("/<int:intervention_id>/receipt")
@require_auth
@require_permission("VIEW_INTERVENTIONS")
def receipt_route(intervention_id: int):
    data = intervention_service.receipt_data(g.actor, intervention_id)
    if data is None:
        return jsonify({"error": "Intervention not found"}), 404
    return jsonify(data), 200


@interventions_bp.get("/<int:intervention_id>/receipt.pdf")
@require_auth
@require_permission("VIEW_INTERVENTIONS")
def receipt_pdf_route(intervention_id: int):
    data = intervention_service.receipt_data(g.actor, intervention_id)
    if data is None:
        return jsonify({"error": "Intervention not found"}), 404
    try:
        pdf_bytes = render_receipt_pdf(data, current_app.config.get("WORKSHOP_NAME", "Workshop"))
    except Exception:
        current_app.logger.exception("Failed to render receipt")
        return jsonify({"error": "Internal server error"}), 500

    filename = f"work-order-{data['order_number']}.pdf"
    return send_file(
        io.BytesIO(pdf_bytes),
        as_attachment=True,
        download_name=filename,
        mimetype="application/pdf",
    )
