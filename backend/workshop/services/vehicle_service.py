# Overview: Service-layer operations for vehicle; encapsulates business logic and database work.

from __future__ import annotations

from flask import current_app

from ..errors import ConflictError, NotFound, ValidationError
from ..extensions import db
from ..models import Car, Intervention
from ..validation import clean_str, parse_int, reject_unknown_fields
from . import permission_service
from .concurrency import lock_for_update
from .identifier_service import normalize_plate, normalize_vin
from .ownership_service import car_ownership_history, current_owner_of, current_owners_by_car
from .results import ActionResult, Page, page_bounds, service_action


UNKNOWN_OWNER = "Unknown client"
SEARCH_MIN_LENGTH = 3
SEARCH_LIMIT = 10

EDITABLE_FIELDS = {
    "license_plate",
    "vin",
    "make",
    "model",
    "year",
    "color",
    "engine_number",
    "initial_km",
}


def _car_row(car: Car, owner) -> dict:
    return {
        "id": car.id,
        "license_plate": car.license_plate,
        "vin": car.vin,
        "make": car.make,
        "model": car.model,
        "year": car.year,
        "make_model": car.make_model,
        "owner_id": owner.id if owner else None,
        "owner_name": owner.full_name if owner else UNKNOWN_OWNER,
    }


def _with_owners(cars: list[Car]) -> list[dict]:
    owners = current_owners_by_car(car.id for car in cars)
    return [_car_row(car, owners.get(car.id)) for car in cars]


def _term_filter(term: str):
    clauses = [
        Car.license_plate.icontains(term, autoescape=True),
        Car.make.icontains(term, autoescape=True),
        Car.model.icontains(term, autoescape=True),
    ]
    plate = normalize_plate(term)
    if plate and plate != term:
        clauses.append(Car.license_plate.icontains(plate, autoescape=True))
    return db.or_(*clauses)


def search_cars(actor, term: str, limit: int = SEARCH_LIMIT) -> list[dict]:
    """
    Contains-match on plate, make or model, case-insensitive.

    Terms shorter than three characters and callers without a session get [].
    """
    if not permission_service.authorize(actor, "VIEW_VEHICLES"):
        return []
    term = (term or "").strip()
    if len(term) < SEARCH_MIN_LENGTH:
        return []

    cars = (
        db.session.query(Car)
        .filter(_term_filter(term))
        .order_by(Car.license_plate.asc())
        .limit(limit)
        .all()
    )
    return _with_owners(cars)


def list_cars_page(actor, page=1, query: str = "") -> Page:
    """Paginated car listing ordered by plate, with current owner names."""
    page_size = current_app.config.get("PAGE_SIZE", 10)
    if not permission_service.authorize(actor, "VIEW_VEHICLES"):
        return Page.empty(page_size)

    page, offset = page_bounds(page, page_size)
    q = db.session.query(Car)
    term = (query or "").strip()
    if term:
        q = q.filter(_term_filter(term))

    total = q.count()
    cars = q.order_by(Car.license_plate.asc()).offset(offset).limit(page_size).all()
    return Page(items=_with_owners(cars), total=total, current_page=page, page_size=page_size)


def get_car_detail(actor, car_id) -> dict | None:
    """Car, current owner, ownership history and interventions (newest first)."""
    if not permission_service.authorize(actor, "VIEW_VEHICLES"):
        return None
    car = db.session.get(Car, car_id)
    if not car:
        return None

    owner = current_owner_of(car.id)
    interventions = (
        db.session.query(Intervention)
        .filter(Intervention.car_id == car.id)
        .order_by(Intervention.order_number.desc())
        .all()
    )

    history = []
    for record in car_ownership_history(car.id):
        row = record.to_dict()
        row["client_name"] = record.client.full_name
        history.append(row)

    return {
        "car": car.to_dict(),
        "owner": owner.to_dict() if owner else None,
        "owner_name": owner.full_name if owner else UNKNOWN_OWNER,
        "ownership_history": history,
        "interventions": [i.to_dict() for i in interventions],
    }


def _unique_identifier(field: str, value: str, car_id: int, label: str) -> None:
    column = getattr(Car, field)
    taken = db.session.query(Car.id).filter(column == value, Car.id != car_id).first()
    if taken:
        raise ConflictError(f"{label} {value} is already registered to another vehicle", field=field)


@service_action
def update_car_attributes(actor, car_id, fields) -> ActionResult:
    """Edit car attributes; plate and VIN are normalized and stay unique."""
    permission_service.require(actor, "EDIT_VEHICLE")

    if not isinstance(fields, dict) or not fields:
        raise ValidationError("No fields provided to update", code="nothing_to_update")
    reject_unknown_fields(fields, EDITABLE_FIELDS)

    patch = {}
    if "license_plate" in fields:
        patch["license_plate"] = normalize_plate(fields["license_plate"])
        if not patch["license_plate"]:
            raise ValidationError("License plate is invalid", field="license_plate")
    if "vin" in fields:
        patch["vin"] = normalize_vin(fields["vin"])
        if not patch["vin"]:
            raise ValidationError("VIN is invalid", field="vin")
    for name in ("make", "model", "color", "engine_number"):
        if name in fields:
            patch[name] = clean_str(fields[name])
    if "year" in fields:
        patch["year"] = None if clean_str(fields["year"]) is None else parse_int(fields["year"], "year")
    if "initial_km" in fields:
        patch["initial_km"] = parse_int(fields["initial_km"], "initial_km")
        if patch["initial_km"] < 0:
            raise ValidationError("initial_km must not be negative", field="initial_km")

    car = lock_for_update(db.session.query(Car).filter_by(id=car_id)).first()
    if not car:
        raise NotFound("Car not found")

    if "license_plate" in patch:
        _unique_identifier("license_plate", patch["license_plate"], car.id, "License plate")
    if "vin" in patch:
        _unique_identifier("vin", patch["vin"], car.id, "VIN")

    for name, value in patch.items():
        setattr(car, name, value)
    db.session.flush()

    return ActionResult.ok(
        f"Vehicle {car.license_plate} updated",
        {"car": car},
        stale_views=["cars", f"car:{car.id}"],
    )
