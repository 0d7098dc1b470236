"""
CLI bootstrap commands.
"""

from workshop.extensions import db
from workshop.models import Car, CarOwnership, Intervention, NumberSequence, StaffUser


def test_init_creates_first_admin_once(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["system", "init", "--admin-password", "changeme1"])

    assert "PASS Created ADMIN: admin@workshop.local" in result.output
    assert db.session.query(StaffUser).filter_by(role="ADMIN").count() == 1
    assert db.session.query(NumberSequence).filter_by(name="interventions").count() == 1

    again = runner.invoke(args=["system", "init", "--admin-password", "changeme1"])
    assert "already exists" in again.output
    assert db.session.query(StaffUser).count() == 1


def test_init_rejects_short_password(app, db_session):
    result = app.test_cli_runner().invoke(args=["system", "init", "--admin-password", "123"])

    assert "FAIL" in result.output
    assert db.session.query(StaffUser).count() == 0


def test_seed_demo(app, db_session):
    runner = app.test_cli_runner()
    runner.invoke(args=["system", "init", "--admin-password", "changeme1"])

    result = runner.invoke(args=["system", "seed-demo"])

    assert "DONE" in result.output
    assert db.session.query(Car).count() == 2
    assert db.session.query(CarOwnership).filter_by(end_date=None).count() == 2
    assert db.session.query(Intervention).one().order_number == 1

    # running twice neither duplicates cars nor opens a second work order
    runner.invoke(args=["system", "seed-demo"])
    assert db.session.query(Car).count() == 2
    assert db.session.query(Intervention).count() == 1


def test_seed_demo_needs_admin(app, db_session):
    result = app.test_cli_runner().invoke(args=["system", "seed-demo"])
    assert "No ADMIN found" in result.output


def test_users_create_and_list(app, db_session):
    runner = app.test_cli_runner()

    created = runner.invoke(args=[
        "users", "create", "--name", "Ana", "--email", "Ana@Workshop.local",
        "--password", "secret1", "--role", "mechanic",
    ])
    assert "PASS Created user" in created.output

    listing = runner.invoke(args=["users", "list"])
    assert "ana@workshop.local" in listing.output
    assert "MECHANIC" in listing.output

    duplicate = runner.invoke(args=[
        "users", "create", "--name", "Ana", "--email", "ana@workshop.local",
        "--password", "secret1", "--role", "VIEWER",
    ])
    assert "already exists" in duplicate.output
