"""
Pytest fixtures for workshop backend tests.

Provides an in-memory database app, per-test table wipe, staff users for
each role, their actors and bearer-token headers, and payload factories.
"""

import pytest

from workshop import create_app
from workshop.extensions import db
from workshop.models import StaffRole, StaffUser
from workshop.services import ownership_service, session_service
from workshop.services.auth_service import hash_password
from workshop.services.permission_service import Actor


TEST_PASSWORD = "secret123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function', autouse=True)
def db_session(app):
    """Fresh data for each test; schema is kept."""
    with app.app_context():
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        app.config['INTERVENTION_ALLOW_REOPEN'] = False
        app.config['ACTIVE_INTERVENTION_EXCLUDED_STATUSES'] = ('CLOSED', 'CANCELLED')

        yield db.session

        db.session.rollback()


def _make_user(name, email, role, password=TEST_PASSWORD):
    user = StaffUser(
        name=name,
        email=email,
        password_hash=hash_password(password) if password else None,
        role=role.value,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def admin_user(db_session):
    return _make_user("Admin", "admin@workshop.test", StaffRole.ADMIN)


@pytest.fixture
def mechanic_user(db_session):
    return _make_user("Mechanic", "mechanic@workshop.test", StaffRole.MECHANIC)


@pytest.fixture
def viewer_user(db_session):
    return _make_user("Viewer", "viewer@workshop.test", StaffRole.VIEWER)


@pytest.fixture
def admin(admin_user):
    return Actor.from_user(admin_user)


@pytest.fixture
def mechanic(mechanic_user):
    return Actor.from_user(mechanic_user)


@pytest.fixture
def viewer(viewer_user):
    return Actor.from_user(viewer_user)


def _headers(user):
    _, token = session_service.create_session(user.id)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def admin_headers(admin_user):
    return _headers(admin_user)


@pytest.fixture
def mechanic_headers(mechanic_user):
    return _headers(mechanic_user)


@pytest.fixture
def viewer_headers(viewer_user):
    return _headers(viewer_user)


@pytest.fixture
def make_owner():
    """Owner payload factory; keyword arguments override the defaults."""
    def factory(**overrides):
        data = {
            "first_name": "Laura",
            "last_name": "Giménez",
            "phone": "11-5555-0101",
            "email": "laura@example.com",
            "dni": "30.123.456",
        }
        data.update(overrides)
        return data
    return factory


@pytest.fixture
def make_vehicle():
    """Vehicle payload factory; keyword arguments override the defaults."""
    def factory(**overrides):
        data = {
            "license_plate": "ABC-123",
            "vin": "1FADP3F20FL000001",
            "make": "Ford",
            "model": "Focus",
            "year": "2015",
            "initial_km": "87000",
        }
        data.update(overrides)
        return data
    return factory


@pytest.fixture
def registered(admin, make_owner, make_vehicle):
    """Laura Giménez with a Ford Focus ABC123. Returns (car, client)."""
    result = ownership_service.register_vehicle(admin, make_owner(), make_vehicle())
    assert result.success, result.message
    return result.data["car"], result.data["client"]


@pytest.fixture
def second_client(admin, make_owner, make_vehicle):
    """Marcelo Pereyra with a Renault Clio XYZ987. Returns the client."""
    result = ownership_service.register_vehicle(
        admin,
        make_owner(first_name="Marcelo", last_name="Pereyra", email="marcelo@example.com", dni="28987654"),
        make_vehicle(license_plate="XYZ-987", vin="VF1BB05CF2R000002", make="Renault", model="Clio"),
    )
    assert result.success, result.message
    return result.data["client"]
