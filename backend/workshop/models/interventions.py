from __future__ import annotations

import enum

from ..extensions import db
from ..time_utils import to_utc_z


class InterventionStatus(str, enum.Enum):
    """
    Work-order lifecycle.

    OPEN is the initial state; CLOSED and CANCELLED are terminal. Allowed
    moves live in intervention_service.TRANSITIONS.
    """
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"

    @classmethod
    def parse(cls, value) -> "InterventionStatus | None":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None

    @property
    def is_terminal(self) -> bool:
        return self is not InterventionStatus.OPEN


class Intervention(db.Model):
    """
    Work order ("OT") opened by a staff member on a car.

    order_number is allocated from the "interventions" NumberSequence in the
    same transaction as the insert; the unique constraint backs it up.
    Interventions are never deleted.
    """
    __tablename__ = "interventions"
    __table_args__ = (
        db.UniqueConstraint("order_number", name="uq_interventions_order_number"),
        db.Index("ix_interventions_status_order", "status", "order_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.Integer, nullable=False)

    car_id = db.Column(db.Integer, db.ForeignKey("cars.id"), nullable=False, index=True)
    performed_by_id = db.Column(
        db.Integer,
        db.ForeignKey("staff_users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    description = db.Column(db.Text, nullable=False)
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default=InterventionStatus.OPEN.value)
    mileage_km = db.Column(db.Integer, nullable=False)
    cost = db.Column(db.Numeric(10, 2), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False)

    car = db.relationship("Car", backref=db.backref("interventions", lazy=True))
    performed_by = db.relationship("StaffUser", backref=db.backref("interventions", lazy=True, passive_deletes="all"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_number": self.order_number,
            "car_id": self.car_id,
            "performed_by_id": self.performed_by_id,
            "description": self.description,
            "notes": self.notes,
            "status": self.status,
            "mileage_km": self.mileage_km,
            "cost": str(self.cost) if self.cost is not None else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class NumberSequence(db.Model):
    """
    Per-name counter for gapless business numbers.

    next_number is the number the next allocation returns. Rows are updated
    with a single atomic UPDATE inside the caller's transaction, so a rollback
    gives the number back.
    """
    __tablename__ = "number_sequences"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_number_sequences_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
