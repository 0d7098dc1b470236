"""
Client service: listing with active car counts, details, contact edits.
"""

import pytest

from workshop.extensions import db
from workshop.models import Client
from workshop.services import client_service, ownership_service


class TestListClients:

    def test_rows_carry_active_cars_count(self, admin, viewer, registered, second_client, make_owner, make_vehicle):
        car, laura = registered
        ownership_service.register_vehicle(
            admin, make_owner(), make_vehicle(license_plate="LAU-002", vin="LAURAVIN0000002")
        )
        ownership_service.transfer_ownership(admin, second_client.id, car.id)

        page = client_service.list_clients_page(viewer)

        counts = {row["full_name"]: row["active_cars_count"] for row in page.items}
        assert counts == {"Laura Giménez": 1, "Marcelo Pereyra": 2}

    def test_ordered_by_last_name(self, viewer, registered, second_client):
        page = client_service.list_clients_page(viewer)
        assert [row["last_name"] for row in page.items] == ["Giménez", "Pereyra"]

    def test_search_by_formatted_dni(self, viewer, registered, second_client):
        page = client_service.list_clients_page(viewer, query="28.987.654")
        assert [row["last_name"] for row in page.items] == ["Pereyra"]
        assert page.total == 1

    def test_wildcards_in_query_match_literally(self, viewer, registered):
        assert client_service.list_clients_page(viewer, query="Gim_nez").total == 0
        assert client_service.list_clients_page(viewer, query="%").items == []

    def test_client_without_cars_counts_zero(self, viewer, db_session):
        db.session.add(Client(first_name="Ana", last_name="Sosa", phone="1"))
        db.session.commit()

        page = client_service.list_clients_page(viewer)
        assert page.items[0]["active_cars_count"] == 0

    def test_without_session(self, registered):
        assert client_service.list_clients_page(None).items == []


class TestClientDetails:

    def test_history_newest_first_with_active_flag(self, admin, registered, second_client):
        car, laura = registered
        ownership_service.transfer_ownership(admin, second_client.id, car.id)

        details = client_service.get_client_details(admin, second_client.id)

        assert details["full_name"] == "Marcelo Pereyra"
        plates = [(c["license_plate"], c["is_active"]) for c in details["cars"]]
        assert plates == [("ABC123", True), ("XYZ987", True)]
        assert details["active_cars_count"] == 2

        laura_details = client_service.get_client_details(admin, laura.id)
        assert laura_details["cars"][0]["is_active"] is False
        assert laura_details["cars"][0]["end_date"] is not None

    def test_missing_client(self, admin, db_session):
        assert client_service.get_client_details(admin, 404) is None


class TestUpdateClient:

    def test_updates_and_normalizes(self, mechanic, registered):
        _, laura = registered

        result = client_service.update_client(
            mechanic, laura.id, {"email": " Laura.G@Example.com ", "dni": "30 123 457", "address": "Calle 1"}
        )

        assert result.success is True
        refreshed = db.session.get(Client, laura.id)
        assert refreshed.email == "laura.g@example.com"
        assert refreshed.dni == "30123457"
        assert refreshed.address == "Calle 1"
        assert set(result.stale_views) == {"clients", f"client:{laura.id}"}

    def test_blank_name_is_rejected(self, admin, registered):
        _, laura = registered
        result = client_service.update_client(admin, laura.id, {"first_name": "  "})
        assert result.success is False
        assert result.field == "first_name"

    @pytest.mark.parametrize("phone", [None, "", "   "])
    def test_phone_cannot_be_cleared(self, admin, registered, phone):
        _, laura = registered

        result = client_service.update_client(admin, laura.id, {"phone": phone})

        assert result.success is False
        assert result.field == "phone"
        assert db.session.get(Client, laura.id).phone == "11-5555-0101"

    def test_dni_of_another_client_conflicts(self, admin, registered, second_client):
        _, laura = registered

        result = client_service.update_client(admin, laura.id, {"dni": "28-987-654"})

        assert result.success is False
        assert result.error == "conflict"
        assert result.field == "dni"
        assert db.session.get(Client, laura.id).dni == "30123456"

    def test_email_of_another_client_conflicts(self, admin, registered, second_client):
        _, laura = registered
        result = client_service.update_client(admin, laura.id, {"email": "MARCELO@example.com"})
        assert result.field == "email"

    def test_viewer_is_denied(self, viewer, registered):
        _, laura = registered
        result = client_service.update_client(viewer, laura.id, {"phone": "1"})
        assert result.error == "authorization_denied"

    def test_unknown_client(self, admin, db_session):
        result = client_service.update_client(admin, 999, {"phone": "1"})
        assert result.error == "not_found"
