# Overview: Service-layer operations for intervention; encapsulates business logic and database work.

"""
Work orders ("interventions").

Order numbers come from the "interventions" NumberSequence, allocated in
the same transaction as the insert. On first use the sequence is seeded
from the current row count, so N sequential creations yield
count_before + 1 ... count_before + N. A validation failure happens before
allocation and leaves the counter untouched; a rolled-back insert hands its
number back.

Status lifecycle: OPEN -> CLOSED | CANCELLED. Terminal states only reopen
when INTERVENTION_ALLOW_REOPEN is set.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.orm import joinedload

from ..errors import NotFound, ValidationError
from ..extensions import db
from ..models import Car, Intervention, InterventionStatus
from ..time_utils import to_utc_z, utcnow
from ..validation import clean_str, parse_cost, parse_id, parse_int
from . import permission_service
from .concurrency import lock_for_update
from .ownership_service import current_owner_of, current_owners_by_car
from .results import ActionResult, service_action
from .sequence_service import count_of, next_number


SEQUENCE_NAME = "interventions"

TRANSITIONS = {
    InterventionStatus.OPEN: frozenset({
        InterventionStatus.OPEN,
        InterventionStatus.CLOSED,
        InterventionStatus.CANCELLED,
    }),
    InterventionStatus.CLOSED: frozenset({InterventionStatus.CLOSED}),
    InterventionStatus.CANCELLED: frozenset({InterventionStatus.CANCELLED}),
}


def allowed_transitions(current: InterventionStatus, allow_reopen: bool = False) -> frozenset:
    allowed = TRANSITIONS.get(current, frozenset())
    if allow_reopen and current.is_terminal:
        allowed = allowed | {InterventionStatus.OPEN}
    return allowed


def _check_transition(current_value: str, target: InterventionStatus) -> None:
    current = InterventionStatus.parse(current_value)
    if current is None:
        # unknown stored label, treated as OPEN
        current = InterventionStatus.OPEN
    allow_reopen = current_app.config.get("INTERVENTION_ALLOW_REOPEN", False)
    if target not in allowed_transitions(current, allow_reopen):
        raise ValidationError(
            f"Cannot change status from {current.value} to {target.value}",
            field="status",
            code="invalid_transition",
        )


@service_action
def create_intervention(actor, car_id, description, notes=None, mileage=None) -> ActionResult:
    """Open a work order on a car, performed by the acting staff user."""
    permission_service.require(actor, "CREATE_INTERVENTION")

    car_id = parse_id(car_id, "car_id")
    description = clean_str(description)
    if not description:
        raise ValidationError("Description is required", field="description")
    if clean_str(mileage) is None:
        raise ValidationError("Mileage is required", field="mileage")
    mileage_km = parse_int(mileage, "mileage")
    if mileage_km < 0:
        raise ValidationError("Mileage must not be negative", field="mileage")

    car = db.session.get(Car, car_id)
    if not car:
        raise NotFound("Car not found", field="car_id")

    order_number = next_number(SEQUENCE_NAME, seed_from=count_of(Intervention))
    now = utcnow()

    intervention = Intervention(
        order_number=order_number,
        car_id=car.id,
        performed_by_id=actor.id,
        description=description,
        notes=clean_str(notes),
        status=InterventionStatus.OPEN.value,
        mileage_km=mileage_km,
        created_at=now,
        updated_at=now,
    )
    db.session.add(intervention)
    db.session.flush()

    return ActionResult.ok(
        f"Work order #{order_number} created",
        {"intervention": intervention},
        stale_views=["interventions", f"car:{car.id}"],
        status_code=201,
    )


@service_action
def update_intervention(actor, intervention_id, changes) -> ActionResult:
    """
    Update notes, cost and/or status of a work order.

    Absent or None values are left alone; a blank cost is treated as absent.
    A request that changes nothing is rejected rather than reported as success.

    Status moves follow TRANSITIONS: CLOSED and CANCELLED orders stay terminal
    and a move back to OPEN fails with code "invalid_transition", unless
    INTERVENTION_ALLOW_REOPEN is set.
    """
    permission_service.require(actor, "UPDATE_INTERVENTION")

    changes = changes if isinstance(changes, dict) else {}
    patch = {}

    if changes.get("notes") is not None:
        patch["notes"] = clean_str(changes["notes"])

    cost = changes.get("cost")
    if cost is not None and not (isinstance(cost, str) and not cost.strip()):
        patch["cost"] = parse_cost(cost)

    status = None
    if changes.get("status"):
        status = InterventionStatus.parse(changes["status"])
        if status is None:
            raise ValidationError(f"Invalid status: {changes['status']}", field="status")

    if not patch and status is None:
        raise ValidationError("Nothing to update", code="nothing_to_update")

    intervention = lock_for_update(
        db.session.query(Intervention).filter_by(id=intervention_id)
    ).first()
    if not intervention:
        raise NotFound("Intervention not found")

    if status is not None:
        _check_transition(intervention.status, status)
        patch["status"] = status.value

    for name, value in patch.items():
        setattr(intervention, name, value)
    intervention.updated_at = utcnow()
    db.session.flush()

    return ActionResult.ok(
        f"Work order #{intervention.order_number} updated",
        {"intervention": intervention},
        stale_views=["interventions", f"intervention:{intervention.id}", f"car:{intervention.car_id}"],
    )


def _excluded(excluded_statuses) -> list[str]:
    if excluded_statuses is None:
        excluded_statuses = current_app.config.get(
            "ACTIVE_INTERVENTION_EXCLUDED_STATUSES", ("CLOSED", "CANCELLED")
        )
    return [str(s).strip().upper() for s in excluded_statuses]


def list_active_interventions(actor, excluded_statuses=None) -> list[dict]:
    """Work orders not in an excluded status, newest order number first."""
    if not permission_service.authorize(actor, "VIEW_INTERVENTIONS"):
        return []

    q = db.session.query(Intervention).options(
        joinedload(Intervention.car),
        joinedload(Intervention.performed_by),
    )
    excluded = _excluded(excluded_statuses)
    if excluded:
        q = q.filter(Intervention.status.notin_(excluded))
    interventions = q.order_by(Intervention.order_number.desc()).all()

    owners = current_owners_by_car({i.car_id for i in interventions})
    rows = []
    for i in interventions:
        owner = owners.get(i.car_id)
        rows.append({
            "id": i.id,
            "order_number": i.order_number,
            "status": i.status,
            "date": to_utc_z(i.created_at),
            "description": i.description,
            "license_plate": i.car.license_plate,
            "make_model": i.car.make_model,
            "owner_name": owner.full_name if owner else None,
            "performed_by": i.performed_by.name if i.performed_by else None,
        })
    return rows


def _load(intervention_id) -> Intervention | None:
    return (
        db.session.query(Intervention)
        .options(joinedload(Intervention.car), joinedload(Intervention.performed_by))
        .filter(Intervention.id == intervention_id)
        .first()
    )


def intervention_detail(actor, intervention_id) -> dict | None:
    """Full record with car, current owner and performer."""
    if not permission_service.authorize(actor, "VIEW_INTERVENTIONS"):
        return None
    intervention = _load(intervention_id)
    if not intervention:
        return None

    owner = current_owner_of(intervention.car_id)
    performer = intervention.performed_by

    data = intervention.to_dict()
    data["car"] = intervention.car.to_dict()
    data["owner"] = {
        "id": owner.id,
        "name": owner.full_name,
        "phone": owner.phone,
        "email": owner.email,
        "dni": owner.dni,
    } if owner else None
    data["performed_by"] = {
        "id": performer.id,
        "name": performer.name,
        "role": performer.role,
    } if performer else None
    return data


def receipt_data(actor, intervention_id) -> dict | None:
    """Flat projection for a printed receipt; None when missing or not allowed."""
    if not permission_service.authorize(actor, "VIEW_INTERVENTIONS"):
        return None
    intervention = _load(intervention_id)
    if not intervention:
        return None

    car = intervention.car
    owner = current_owner_of(car.id)

    return {
        "order_number": intervention.order_number,
        "status": intervention.status,
        "created_at": to_utc_z(intervention.created_at),
        "updated_at": to_utc_z(intervention.updated_at),
        "mileage_km": intervention.mileage_km,
        "description": intervention.description,
        "notes": intervention.notes,
        "cost": str(intervention.cost) if intervention.cost is not None else None,
        "car": {
            "license_plate": car.license_plate,
            "make": car.make,
            "model": car.model,
            "year": car.year,
            "vin": car.vin,
        },
        "owner": {"name": owner.full_name, "dni": owner.dni} if owner else None,
        "performed_by": intervention.performed_by.name if intervention.performed_by else None,
    }
