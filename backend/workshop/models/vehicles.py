from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Car(db.Model):
    """
    Vehicle master data.

    license_plate and vin are stored normalized (see identifier_service) and
    are independently unique.
    """
    __tablename__ = "cars"
    __table_args__ = (
        db.UniqueConstraint("license_plate", name="uq_cars_license_plate"),
        db.UniqueConstraint("vin", name="uq_cars_vin"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    license_plate = db.Column(db.String(16), nullable=False)
    vin = db.Column(db.String(32), nullable=False)

    make = db.Column(db.String(64), nullable=True)
    model = db.Column(db.String(64), nullable=True)
    year = db.Column(db.Integer, nullable=True)
    color = db.Column(db.String(32), nullable=True)
    engine_number = db.Column(db.String(64), nullable=True)
    initial_km = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    @property
    def make_model(self) -> str:
        return f"{self.make or 'N/A'} {self.model or 'N/A'}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "license_plate": self.license_plate,
            "vin": self.vin,
            "make": self.make,
            "model": self.model,
            "year": self.year,
            "color": self.color,
            "engine_number": self.engine_number,
            "initial_km": self.initial_km,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class CarOwnership(db.Model):
    """
    Temporal link between a car and a client.

    INVARIANT: per car, at most one row has end_date NULL (the current owner).
    The partial unique index enforces it on SQLite and PostgreSQL; the
    ownership service keeps it everywhere else.

    APPEND-ONLY: rows are closed (end_date set), never deleted.
    """
    __tablename__ = "car_ownerships"
    __table_args__ = (
        db.Index("ix_car_ownerships_car_end", "car_id", "end_date"),
        db.Index("ix_car_ownerships_client_start", "client_id", "start_date"),
        db.Index(
            "uq_car_ownerships_open_per_car",
            "car_id",
            unique=True,
            sqlite_where=db.text("end_date IS NULL"),
            postgresql_where=db.text("end_date IS NULL"),
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    car_id = db.Column(db.Integer, db.ForeignKey("cars.id"), nullable=False, index=True)
    client_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=False, index=True)

    start_date = db.Column(db.DateTime(timezone=True), nullable=False)
    end_date = db.Column(db.DateTime(timezone=True), nullable=True)

    car = db.relationship("Car", backref=db.backref("ownership_history", lazy=True))
    client = db.relationship("Client", backref=db.backref("ownership_history", lazy=True))

    @property
    def is_active(self) -> bool:
        return self.end_date is None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "car_id": self.car_id,
            "client_id": self.client_id,
            "start_date": to_utc_z(self.start_date),
            "end_date": to_utc_z(self.end_date) if self.end_date else None,
            "is_active": self.is_active,
        }
