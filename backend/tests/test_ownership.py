"""
Ownership history: registration, transfer and the one-open-record rule.
"""

from workshop.extensions import db
from workshop.models import Car, CarOwnership, Client, SecurityEvent
from workshop.services import ownership_service


def open_records(car_id):
    return (
        db.session.query(CarOwnership)
        .filter(CarOwnership.car_id == car_id, CarOwnership.end_date.is_(None))
        .all()
    )


def assert_single_open_record_per_car():
    for car in db.session.query(Car).all():
        assert len(open_records(car.id)) <= 1, f"car {car.license_plate} has several open records"


# =============================================================================
# REGISTRATION
# =============================================================================


class TestRegisterVehicle:

    def test_registers_new_client_and_car(self, admin, make_owner, make_vehicle):
        result = ownership_service.register_vehicle(admin, make_owner(), make_vehicle())

        assert result.success is True
        car = result.data["car"]
        client = result.data["client"]
        assert car.license_plate == "ABC123"
        assert car.vin == "1FADP3F20FL000001"
        assert car.year == 2015
        assert car.initial_km == 87000
        assert client.full_name == "Laura Giménez"
        assert client.dni == "30123456"
        assert client.email == "laura@example.com"

        records = open_records(car.id)
        assert len(records) == 1
        assert records[0].client_id == client.id
        assert ownership_service.current_owner_of(car.id).id == client.id
        assert set(result.stale_views) >= {"cars", "clients", f"client:{client.id}"}

    def test_mechanic_is_denied(self, mechanic, make_owner, make_vehicle):
        result = ownership_service.register_vehicle(mechanic, make_owner(), make_vehicle())

        assert result.success is False
        assert result.error == "authorization_denied"
        assert result.status_code == 403
        assert db.session.query(Car).count() == 0
        assert db.session.query(CarOwnership).count() == 0

    def test_viewer_is_denied(self, viewer, make_owner, make_vehicle):
        result = ownership_service.register_vehicle(viewer, make_owner(), make_vehicle())

        assert result.success is False
        assert result.error == "authorization_denied"
        assert db.session.query(Car).count() == 0
        assert db.session.query(Client).count() == 0
        event = db.session.query(SecurityEvent).filter_by(event_type="PERMISSION_DENIED").one()
        assert event.action == "REGISTER_VEHICLE"

    def test_no_actor_requires_authentication(self, make_owner, make_vehicle):
        result = ownership_service.register_vehicle(None, make_owner(), make_vehicle())
        assert result.success is False
        assert result.error == "authentication_required"

    def test_same_client_resubmission_is_a_distinct_duplicate(self, admin, registered, make_owner, make_vehicle):
        car, client = registered

        result = ownership_service.register_vehicle(
            admin, make_owner(), make_vehicle(license_plate="abc 123")
        )

        assert result.success is False
        assert result.error == "conflict"
        assert result.code == "duplicate_registration"
        assert "already registered to this client" in result.message
        assert db.session.query(CarOwnership).filter_by(car_id=car.id).count() == 1

    def test_plate_of_another_clients_car_is_rejected(self, admin, registered, make_owner, make_vehicle):
        car, laura = registered

        result = ownership_service.register_vehicle(
            admin,
            make_owner(first_name="Pedro", last_name="Ruiz", email="pedro@example.com", dni="11222333"),
            make_vehicle(license_plate="abc-123", vin="OTHERVIN0000001"),
        )

        assert result.success is False
        assert result.code == "identifier_taken"
        assert result.field == "license_plate"
        assert "different client" in result.message
        # nothing changed
        assert db.session.query(Client).count() == 1
        assert db.session.query(Car).count() == 1
        assert ownership_service.current_owner_of(car.id).id == laura.id

    def test_vin_of_another_clients_car_is_rejected(self, admin, registered, make_owner, make_vehicle):
        result = ownership_service.register_vehicle(
            admin,
            make_owner(first_name="Pedro", last_name="Ruiz", email="pedro@example.com", dni="11222333"),
            make_vehicle(license_plate="NEW-001", vin=" 1fadp3f20fl000001 "),
        )

        assert result.success is False
        assert result.field == "vin"
        assert db.session.query(Car).count() == 1

    def test_existing_client_found_by_dni_gets_second_car(self, admin, registered, make_owner, make_vehicle):
        _, laura = registered

        result = ownership_service.register_vehicle(
            admin,
            make_owner(dni="30-123-456", phone="11-4444-9999"),
            make_vehicle(license_plate="GHI-789", vin="WVWZZZ1JZ3W000003", make="VW", model="Gol"),
        )

        assert result.success is True
        assert result.data["client"].id == laura.id
        assert db.session.query(Client).count() == 1
        refreshed = db.session.get(Client, laura.id)
        assert refreshed.phone == "11-4444-9999"
        assert refreshed.dni == "30123456"
        active = [r for r in ownership_service.ownership_history(laura.id) if r.is_active]
        assert len(active) == 2

    def test_existing_client_found_by_email_when_no_dni(self, admin, registered, make_owner, make_vehicle):
        _, laura = registered

        result = ownership_service.register_vehicle(
            admin,
            make_owner(dni=None, email="LAURA@example.com"),
            make_vehicle(license_plate="JKL-000", vin="VIN0000000000004"),
        )

        assert result.success is True
        assert result.data["client"].id == laura.id

    def test_missing_owner_phone_is_rejected_before_writes(self, admin, make_owner, make_vehicle):
        result = ownership_service.register_vehicle(admin, make_owner(phone="  "), make_vehicle())

        assert result.success is False
        assert result.error == "validation_error"
        assert "phone" in result.message
        assert db.session.query(Client).count() == 0

    def test_non_numeric_year_is_rejected(self, admin, make_owner, make_vehicle):
        result = ownership_service.register_vehicle(admin, make_owner(), make_vehicle(year="20x5"))

        assert result.success is False
        assert result.field == "year"
        assert db.session.query(Car).count() == 0

    def test_plate_empty_after_normalization_is_rejected(self, admin, make_owner, make_vehicle):
        result = ownership_service.register_vehicle(admin, make_owner(), make_vehicle(license_plate=" - "))

        assert result.success is False
        assert result.field == "license_plate"

    def test_invalid_owner_email_is_rejected(self, admin, make_owner, make_vehicle):
        result = ownership_service.register_vehicle(admin, make_owner(email="not-an-email"), make_vehicle())

        assert result.success is False
        assert result.field == "email"


# =============================================================================
# TRANSFER
# =============================================================================


class TestTransferOwnership:

    def test_transfer_closes_previous_and_opens_new(self, admin, registered, second_client):
        car, laura = registered

        result = ownership_service.transfer_ownership(admin, second_client.id, car.id)

        assert result.success is True
        records = open_records(car.id)
        assert len(records) == 1
        assert records[0].client_id == second_client.id
        assert ownership_service.current_owner_of(car.id).id == second_client.id

        laura_history = ownership_service.ownership_history(laura.id)
        closed = [r for r in laura_history if r.car_id == car.id]
        assert len(closed) == 1
        assert closed[0].end_date is not None
        assert closed[0].end_date >= closed[0].start_date

        assert f"client:{laura.id}" in result.stale_views
        assert f"client:{second_client.id}" in result.stale_views
        assert f"car:{car.id}" in result.stale_views
        assert_single_open_record_per_car()

    def test_repeated_transfers_keep_full_history(self, admin, registered, second_client):
        car, laura = registered

        assert ownership_service.transfer_ownership(admin, second_client.id, car.id).success
        assert ownership_service.transfer_ownership(admin, laura.id, car.id).success

        history = ownership_service.car_ownership_history(car.id)
        assert [r.client_id for r in history] == [laura.id, second_client.id, laura.id]
        assert [r.is_active for r in history] == [True, False, False]
        assert_single_open_record_per_car()

    def test_car_without_owner_gets_one(self, admin, second_client):
        car = Car(license_plate="ORPHAN1", vin="ORPHANVIN000001", initial_km=0)
        db.session.add(car)
        db.session.commit()

        result = ownership_service.transfer_ownership(admin, second_client.id, car.id)

        assert result.success is True
        assert len(open_records(car.id)) == 1

    def test_mechanic_cannot_transfer(self, mechanic, registered, second_client):
        car, laura = registered

        result = ownership_service.transfer_ownership(mechanic, second_client.id, car.id)

        assert result.success is False
        assert result.error == "authorization_denied"
        assert ownership_service.current_owner_of(car.id).id == laura.id

    def test_unknown_car(self, admin, second_client):
        result = ownership_service.transfer_ownership(admin, second_client.id, 9999)
        assert result.success is False
        assert result.error == "not_found"

    def test_unknown_client(self, admin, registered):
        car, laura = registered

        result = ownership_service.transfer_ownership(admin, 9999, car.id)

        assert result.success is False
        assert result.error == "not_found"
        assert ownership_service.current_owner_of(car.id).id == laura.id


class TestQueries:

    def test_current_owner_of_car_without_records(self, db_session):
        car = Car(license_plate="NOOWNER", vin="NOOWNERVIN00001", initial_km=0)
        db.session.add(car)
        db.session.commit()
        assert ownership_service.current_owner_of(car.id) is None

    def test_history_of_client_without_cars(self, db_session):
        client = Client(first_name="Ana", last_name="Sosa", phone="1")
        db.session.add(client)
        db.session.commit()
        assert ownership_service.ownership_history(client.id) == []
