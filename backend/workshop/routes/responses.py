# Overview: JSON response helpers shared by the API blueprints.

from flask import jsonify, request

from ..services.results import ActionResult


def result_response(result: ActionResult):
    """Serialize an ActionResult with the HTTP status its outcome maps to."""
    return jsonify(result.to_dict()), result.status_code


def json_body() -> dict:
    """Request JSON object, or {} for a missing/invalid body."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
