"""
Vehicle service: attribute edits, search, listing and detail.
"""

import pytest

from workshop.extensions import db
from workshop.models import Car
from workshop.services import intervention_service, vehicle_service


class TestUpdateCarAttributes:

    def test_updates_and_normalizes(self, mechanic, registered):
        car, _ = registered

        result = vehicle_service.update_car_attributes(
            mechanic, car.id, {"license_plate": "zz 999", "color": " Red ", "year": "2016"}
        )

        assert result.success is True
        refreshed = db.session.get(Car, car.id)
        assert refreshed.license_plate == "ZZ999"
        assert refreshed.color == "Red"
        assert refreshed.year == 2016
        assert set(result.stale_views) == {"cars", f"car:{car.id}"}

    def test_plate_collision_names_field(self, admin, registered, second_client):
        car, _ = registered

        result = vehicle_service.update_car_attributes(admin, car.id, {"license_plate": "xyz-987"})

        assert result.success is False
        assert result.error == "conflict"
        assert result.field == "license_plate"
        assert db.session.get(Car, car.id).license_plate == "ABC123"

    def test_vin_collision_names_field(self, admin, registered, second_client):
        car, _ = registered

        result = vehicle_service.update_car_attributes(admin, car.id, {"vin": "vf1bb05cf2r000002"})

        assert result.success is False
        assert result.field == "vin"

    def test_same_plate_on_same_car_is_fine(self, admin, registered):
        car, _ = registered
        result = vehicle_service.update_car_attributes(admin, car.id, {"license_plate": "ABC-123"})
        assert result.success is True

    @pytest.mark.parametrize("fields", [{}, None])
    def test_empty_update_is_rejected(self, admin, registered, fields):
        car, _ = registered
        result = vehicle_service.update_car_attributes(admin, car.id, fields)
        assert result.success is False
        assert result.error == "validation_error"

    def test_unknown_field_is_rejected(self, admin, registered):
        car, _ = registered
        result = vehicle_service.update_car_attributes(admin, car.id, {"owner": 3})
        assert result.success is False
        assert "owner" in result.message

    def test_blank_plate_is_rejected(self, admin, registered):
        car, _ = registered
        result = vehicle_service.update_car_attributes(admin, car.id, {"license_plate": "  "})
        assert result.success is False
        assert result.field == "license_plate"

    def test_viewer_is_denied(self, viewer, registered):
        car, _ = registered
        result = vehicle_service.update_car_attributes(viewer, car.id, {"color": "Black"})
        assert result.success is False
        assert result.error == "authorization_denied"

    def test_unknown_car(self, admin, db_session):
        result = vehicle_service.update_car_attributes(admin, 4242, {"color": "Black"})
        assert result.error == "not_found"


class TestSearchAndListing:

    def test_short_terms_return_nothing(self, viewer, registered):
        assert vehicle_service.search_cars(viewer, "AB") == []

    def test_search_by_plate_any_format(self, viewer, registered):
        rows = vehicle_service.search_cars(viewer, "abc-1")
        assert [r["license_plate"] for r in rows] == ["ABC123"]
        assert rows[0]["owner_name"] == "Laura Giménez"

    def test_search_by_make_case_insensitive(self, viewer, registered, second_client):
        rows = vehicle_service.search_cars(viewer, "renAULT")
        assert [r["license_plate"] for r in rows] == ["XYZ987"]

    def test_car_without_owner_shows_unknown_client(self, viewer, db_session):
        db.session.add(Car(license_plate="NOB123", vin="NOBODY000000001", make="Fiat", initial_km=0))
        db.session.commit()

        rows = vehicle_service.search_cars(viewer, "NOB")
        assert rows[0]["owner_name"] == "Unknown client"

    def test_wildcards_in_term_match_literally(self, viewer, registered):
        assert vehicle_service.search_cars(viewer, "AB_") == []
        assert vehicle_service.search_cars(viewer, "%%%") == []
        assert vehicle_service.list_cars_page(viewer, query="%").total == 0

    def test_search_without_session(self, registered):
        assert vehicle_service.search_cars(None, "ABC") == []

    def test_list_is_ordered_by_plate_and_paginated(self, app, viewer, registered, second_client):
        app.config["PAGE_SIZE"] = 1
        try:
            first = vehicle_service.list_cars_page(viewer, page=1)
            second = vehicle_service.list_cars_page(viewer, page="2")
        finally:
            app.config["PAGE_SIZE"] = 10

        assert first.total == 2
        assert first.total_pages == 2
        assert first.items[0]["license_plate"] == "ABC123"
        assert second.current_page == 2
        assert second.items[0]["license_plate"] == "XYZ987"

    def test_list_without_session_is_empty(self, registered):
        page = vehicle_service.list_cars_page(None)
        assert page.items == []
        assert page.total_pages == 0


class TestCarDetail:

    def test_detail_includes_owner_history_and_orders(self, admin, mechanic, registered):
        car, laura = registered
        intervention_service.create_intervention(mechanic, car.id, "Brakes", mileage=88000)
        intervention_service.create_intervention(mechanic, car.id, "Oil", mileage=89000)

        detail = vehicle_service.get_car_detail(admin, car.id)

        assert detail["car"]["license_plate"] == "ABC123"
        assert detail["owner"]["id"] == laura.id
        assert len(detail["ownership_history"]) == 1
        assert [i["description"] for i in detail["interventions"]] == ["Oil", "Brakes"]

    def test_missing_car(self, admin, db_session):
        assert vehicle_service.get_car_detail(admin, 777) is None

    def test_without_session(self, registered):
        car, _ = registered
        assert vehicle_service.get_car_detail(None, car.id) is None
