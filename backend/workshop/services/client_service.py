# Overview: Service-layer operations for client; encapsulates business logic and database work.

from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from ..errors import ConflictError, NotFound, ValidationError
from ..extensions import db
from ..models import CarOwnership, Client
from ..time_utils import to_utc_z
from ..validation import clean_str, reject_unknown_fields, validate_email
from . import permission_service
from .concurrency import lock_for_update
from .identifier_service import normalize_dni, normalize_email
from .ownership_service import ownership_history
from .results import ActionResult, Page, page_bounds, service_action


EDITABLE_FIELDS = {"first_name", "last_name", "phone", "email", "dni", "address"}


def list_clients_page(actor, page=1, query: str = "") -> Page:
    """
    Paginated client listing ordered by last name.

    Each row carries active_cars_count, the number of open ownership records.
    """
    page_size = current_app.config.get("PAGE_SIZE", 10)
    if not permission_service.authorize(actor, "VIEW_CLIENTS"):
        return Page.empty(page_size)

    page, offset = page_bounds(page, page_size)

    active_cars = (
        db.session.query(
            CarOwnership.client_id.label("client_id"),
            func.count(CarOwnership.id).label("active_cars_count"),
        )
        .filter(CarOwnership.end_date.is_(None))
        .group_by(CarOwnership.client_id)
        .subquery()
    )

    q = db.session.query(Client)
    term = (query or "").strip()
    if term:
        # autoescape: % and _ in the term match literally
        clauses = [
            Client.first_name.icontains(term, autoescape=True),
            Client.last_name.icontains(term, autoescape=True),
            Client.phone.icontains(term, autoescape=True),
            Client.email.icontains(term, autoescape=True),
            Client.dni.icontains(term, autoescape=True),
        ]
        dni = normalize_dni(term)
        if dni and dni != term:
            clauses.append(Client.dni.icontains(dni, autoescape=True))
        q = q.filter(db.or_(*clauses))

    total = q.count()
    rows = (
        q.outerjoin(active_cars, active_cars.c.client_id == Client.id)
        .add_columns(func.coalesce(active_cars.c.active_cars_count, 0))
        .order_by(Client.last_name.asc(), Client.first_name.asc(), Client.id.asc())
        .offset(offset)
        .limit(page_size)
        .all()
    )

    items = []
    for client, count in rows:
        row = client.to_dict()
        row["active_cars_count"] = int(count or 0)
        items.append(row)
    return Page(items=items, total=total, current_page=page, page_size=page_size)


def get_client_details(actor, client_id) -> dict | None:
    """Client fields plus car history, newest start first."""
    if not permission_service.authorize(actor, "VIEW_CLIENTS"):
        return None
    client = db.session.get(Client, client_id)
    if not client:
        return None

    cars = []
    for record in ownership_history(client.id):
        car = record.car
        cars.append({
            "ownership_id": record.id,
            "car_id": car.id,
            "license_plate": car.license_plate,
            "make": car.make,
            "model": car.model,
            "year": car.year,
            "start_date": to_utc_z(record.start_date),
            "end_date": to_utc_z(record.end_date) if record.end_date else None,
            "is_active": record.is_active,
        })

    data = client.to_dict()
    data["cars"] = cars
    data["active_cars_count"] = sum(1 for c in cars if c["is_active"])
    return data


@service_action
def update_client(actor, client_id, fields) -> ActionResult:
    """Edit client contact data; dni and email are normalized and stay unique."""
    permission_service.require(actor, "EDIT_CLIENT")

    if not isinstance(fields, dict) or not fields:
        raise ValidationError("No fields provided to update", code="nothing_to_update")
    reject_unknown_fields(fields, EDITABLE_FIELDS)

    patch = {}
    for name in ("first_name", "last_name", "phone"):
        if name in fields:
            patch[name] = clean_str(fields[name])
            if not patch[name]:
                raise ValidationError(f"{name} is required", field=name)
    if "address" in fields:
        patch["address"] = clean_str(fields["address"])
    if "email" in fields:
        patch["email"] = normalize_email(fields["email"])
        if patch["email"]:
            validate_email(patch["email"])
    if "dni" in fields:
        patch["dni"] = normalize_dni(fields["dni"])

    client = lock_for_update(db.session.query(Client).filter_by(id=client_id)).first()
    if not client:
        raise NotFound("Client not found")

    for name, label in (("dni", "DNI"), ("email", "Email")):
        value = patch.get(name)
        if not value:
            continue
        column = getattr(Client, name)
        taken = db.session.query(Client.id).filter(column == value, Client.id != client.id).first()
        if taken:
            raise ConflictError(f"{label} is already used by another client", field=name)

    for name, value in patch.items():
        setattr(client, name, value)
    db.session.flush()

    return ActionResult.ok(
        f"Client {client.full_name} updated",
        {"client": client},
        stale_views=["clients", f"client:{client.id}"],
    )
