"""
Transaction wrapper and result shapes.
"""

from sqlalchemy.exc import IntegrityError, OperationalError

from workshop.errors import NotFound, ValidationError
from workshop.extensions import db
from workshop.models import Client
from workshop.services.results import (
    GENERIC_FAILURE_MESSAGE,
    ActionResult,
    Page,
    page_bounds,
    service_action,
)


def _add_client(name):
    db.session.add(Client(first_name=name, last_name="Test", phone="1"))
    db.session.flush()


class TestServiceAction:

    def test_success_commits(self, db_session):
        @service_action
        def op():
            _add_client("Ana")
            return ActionResult.ok("done", stale_views=["clients", "clients"])

        result = op()

        assert result.success is True
        assert result.stale_views == ("clients",)
        db.session.rollback()
        assert db.session.query(Client).count() == 1

    def test_domain_error_rolls_back(self, db_session):
        @service_action
        def op():
            _add_client("Ana")
            raise ValidationError("Bad input", field="phone")

        result = op()

        assert result.success is False
        assert result.error == "validation_error"
        assert result.field == "phone"
        assert result.status_code == 400
        assert db.session.query(Client).count() == 0

    def test_integrity_error_becomes_conflict(self, db_session):
        @service_action
        def op():
            raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: clients.dni"))

        result = op()

        assert result.error == "conflict"
        assert result.field == "dni"
        assert result.status_code == 409

    def test_store_error_is_generic(self, db_session):
        @service_action
        def op():
            _add_client("Ana")
            raise OperationalError("UPDATE", {}, Exception("database is locked"))

        result = op()

        assert result.error == "transaction_failure"
        assert result.message == GENERIC_FAILURE_MESSAGE
        assert "locked" not in result.message
        assert db.session.query(Client).count() == 0

    def test_failure_payload(self):
        payload = ActionResult.fail(NotFound("Car not found")).to_dict()
        assert payload == {
            "success": False,
            "message": "Car not found",
            "stale_views": [],
            "error": "not_found",
            "field": None,
            "code": None,
        }


class TestPage:

    def test_total_pages(self):
        assert Page(items=[], total=0, page_size=10).total_pages == 0
        assert Page(items=[], total=10, page_size=10).total_pages == 1
        assert Page(items=[], total=11, page_size=10).total_pages == 2

    def test_to_dict(self):
        page = Page(items=[{"id": 1}], total=21, current_page=3, page_size=10)
        assert page.to_dict() == {"items": [{"id": 1}], "total": 21, "total_pages": 3, "current_page": 3}

    def test_page_bounds(self):
        assert page_bounds(2, 10) == (2, 10)
        assert page_bounds("3", 5) == (3, 10)
        assert page_bounds("x", 10) == (1, 0)
        assert page_bounds(-4, 10) == (1, 0)
        assert page_bounds(None, 10) == (1, 0)
