# Overview: Service-layer operations for ownership; encapsulates business logic and database work.

"""
Ownership history: who owns which car, and since when.

INVARIANT: per car, at most one CarOwnership row has end_date NULL. Every
write path in this module preserves it:
- register_vehicle only opens a row for a car it just created
- transfer_ownership closes every open row of the car (under lock) and
  flushes before inserting the new one

The partial unique index uq_car_ownerships_open_per_car backs the invariant
up at the store level on SQLite and PostgreSQL; a losing concurrent writer
gets an IntegrityError, which service_action reports as a conflict.

Rows are never deleted; closing sets end_date.
"""

from __future__ import annotations

from ..errors import ConflictError, NotFound, ValidationError
from ..extensions import db
from ..models import Car, CarOwnership, Client
from ..time_utils import utcnow
from ..validation import clean_str, parse_id, parse_int, require_fields, validate_email
from . import permission_service
from .concurrency import lock_for_update
from .identifier_service import normalize_dni, normalize_email, normalize_plate, normalize_vin
from .results import ActionResult, service_action


OWNER_REQUIRED_FIELDS = ["first_name", "last_name", "phone"]
VEHICLE_REQUIRED_FIELDS = ["license_plate", "vin", "make", "model", "year", "initial_km"]


def _clean_owner_info(owner_info) -> dict:
    if not isinstance(owner_info, dict):
        raise ValidationError("Owner data is required")
    require_fields(owner_info, OWNER_REQUIRED_FIELDS, label="Owner")

    email = normalize_email(owner_info.get("email"))
    if email:
        validate_email(email)

    return {
        "first_name": clean_str(owner_info.get("first_name")),
        "last_name": clean_str(owner_info.get("last_name")),
        "phone": clean_str(owner_info.get("phone")),
        "email": email,
        "dni": normalize_dni(owner_info.get("dni")),
        "address": clean_str(owner_info.get("address")),
    }


def _clean_vehicle_info(vehicle_info) -> dict:
    if not isinstance(vehicle_info, dict):
        raise ValidationError("Vehicle data is required")
    require_fields(vehicle_info, VEHICLE_REQUIRED_FIELDS, label="Vehicle")

    plate = normalize_plate(vehicle_info.get("license_plate"))
    if not plate:
        raise ValidationError("License plate is invalid", field="license_plate")
    vin = normalize_vin(vehicle_info.get("vin"))
    if not vin:
        raise ValidationError("VIN is invalid", field="vin")

    initial_km = parse_int(vehicle_info.get("initial_km"), "initial_km")
    if initial_km < 0:
        raise ValidationError("initial_km must not be negative", field="initial_km")

    return {
        "license_plate": plate,
        "vin": vin,
        "make": clean_str(vehicle_info.get("make")),
        "model": clean_str(vehicle_info.get("model")),
        "year": parse_int(vehicle_info.get("year"), "year"),
        "color": clean_str(vehicle_info.get("color")),
        "engine_number": clean_str(vehicle_info.get("engine_number")),
        "initial_km": initial_km,
    }


def _find_client(owner: dict) -> Client | None:
    """Resolve by dni first, then by email."""
    if owner["dni"]:
        client = db.session.query(Client).filter_by(dni=owner["dni"]).first()
        if client:
            return client
    if owner["email"]:
        return db.session.query(Client).filter_by(email=owner["email"]).first()
    return None


def _find_car(plate: str, vin: str) -> tuple[Car | None, str | None]:
    """Resolve by plate first, then by VIN. Returns (car, matched_field)."""
    car = db.session.query(Car).filter_by(license_plate=plate).first()
    if car:
        return car, "license_plate"
    car = db.session.query(Car).filter_by(vin=vin).first()
    if car:
        return car, "vin"
    return None, None


def _open_record(car_id: int) -> CarOwnership | None:
    return (
        db.session.query(CarOwnership)
        .filter(CarOwnership.car_id == car_id, CarOwnership.end_date.is_(None))
        .order_by(CarOwnership.start_date.desc(), CarOwnership.id.desc())
        .first()
    )


def _apply_owner_updates(client: Client, owner: dict) -> None:
    """Refresh contact data of an existing client; id and dni stay."""
    client.first_name = owner["first_name"]
    client.last_name = owner["last_name"]
    client.phone = owner["phone"]
    if owner["address"]:
        client.address = owner["address"]
    if owner["email"] and owner["email"] != client.email:
        taken = db.session.query(Client).filter(
            Client.email == owner["email"], Client.id != client.id
        ).first()
        if taken:
            raise ConflictError("Email is already used by another client", field="email")
        client.email = owner["email"]
    if owner["dni"] and not client.dni:
        client.dni = owner["dni"]


@service_action
def register_vehicle(actor, owner_info, vehicle_info) -> ActionResult:
    """
    Register a car and open its first ownership record in one transaction.

    An existing car (same plate or VIN) is never reassigned: re-registering
    it fails, with a distinct message when the requesting client already owns
    it.
    """
    permission_service.require(actor, "REGISTER_VEHICLE")

    owner = _clean_owner_info(owner_info)
    vehicle = _clean_vehicle_info(vehicle_info)

    client = _find_client(owner)
    car, matched_field = _find_car(vehicle["license_plate"], vehicle["vin"])

    if car is not None:
        current = _open_record(car.id)
        if client is not None and current is not None and current.client_id == client.id:
            raise ConflictError(
                f"Vehicle {car.license_plate} is already registered to this client",
                field=matched_field,
                code="duplicate_registration",
            )
        label = "License plate" if matched_field == "license_plate" else "VIN"
        value = vehicle[matched_field]
        raise ConflictError(
            f"{label} {value} is already registered to a different client",
            field=matched_field,
            code="identifier_taken",
        )

    if client is None:
        client = Client(**owner)
        db.session.add(client)
    else:
        _apply_owner_updates(client, owner)

    car = Car(**vehicle)
    db.session.add(car)
    db.session.flush()

    db.session.add(CarOwnership(car_id=car.id, client_id=client.id, start_date=utcnow()))
    db.session.flush()

    return ActionResult.ok(
        f"Vehicle {car.license_plate} registered to {client.full_name}",
        {"car": car, "client": client},
        stale_views=["cars", "clients", f"client:{client.id}"],
        status_code=201,
    )


@service_action
def transfer_ownership(actor, client_id, car_id) -> ActionResult:
    """
    Make `client_id` the current owner of `car_id`.

    Closes every open record of the car (normally one; more only if the
    invariant was broken outside this module) and opens a new one, all in
    one transaction. Postcondition: exactly one open record for the car.
    """
    permission_service.require(actor, "TRANSFER_OWNERSHIP")

    client_id = parse_id(client_id, "client_id")
    car_id = parse_id(car_id, "car_id")

    car = lock_for_update(db.session.query(Car).filter_by(id=car_id)).first()
    if not car:
        raise NotFound("Car not found", field="car_id")
    client = db.session.get(Client, client_id)
    if not client:
        raise NotFound("Client not found", field="client_id")

    now = utcnow()
    open_records = lock_for_update(
        db.session.query(CarOwnership).filter(
            CarOwnership.car_id == car.id,
            CarOwnership.end_date.is_(None),
        )
    ).all()

    previous_client_ids = []
    for record in open_records:
        # end >= start even if the clock moved backwards
        record.end_date = max(now, record.start_date)
        previous_client_ids.append(record.client_id)

    # Closed rows must reach the store before the new open row
    db.session.flush()

    ownership = CarOwnership(car_id=car.id, client_id=client.id, start_date=now)
    db.session.add(ownership)
    db.session.flush()

    stale = ["cars", f"car:{car.id}", "clients", f"client:{client.id}"]
    stale.extend(f"client:{cid}" for cid in previous_client_ids)

    return ActionResult.ok(
        f"Vehicle {car.license_plate} transferred to {client.full_name}",
        {"ownership": ownership},
        stale_views=stale,
    )


def current_owner_of(car_id: int) -> Client | None:
    """The client on the car's open ownership record, or None."""
    record = _open_record(car_id)
    return record.client if record else None


def current_owners_by_car(car_ids) -> dict[int, Client]:
    """car_id -> current owner, for listing projections (one query)."""
    car_ids = list(car_ids)
    if not car_ids:
        return {}
    rows = (
        db.session.query(CarOwnership.car_id, Client)
        .join(Client, Client.id == CarOwnership.client_id)
        .filter(CarOwnership.car_id.in_(car_ids), CarOwnership.end_date.is_(None))
        .all()
    )
    return {car_id: client for car_id, client in rows}


def ownership_history(client_id: int) -> list[CarOwnership]:
    """Every ownership record of a client, newest start first."""
    return (
        db.session.query(CarOwnership)
        .filter(CarOwnership.client_id == client_id)
        .order_by(CarOwnership.start_date.desc(), CarOwnership.id.desc())
        .all()
    )


def car_ownership_history(car_id: int) -> list[CarOwnership]:
    """Every ownership record of a car, newest start first."""
    return (
        db.session.query(CarOwnership)
        .filter(CarOwnership.car_id == car_id)
        .order_by(CarOwnership.start_date.desc(), CarOwnership.id.desc())
        .all()
    )
