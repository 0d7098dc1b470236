# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/workshop/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--admin-email admin@workshop.local]
#   Idempotent bootstrap: creates tables, the order-number sequence and a first ADMIN.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed-demo
#   Demo clients, cars, a mechanic and one work order.
# - python -m flask system cleanup-sessions
#   Delete expired/revoked sessions older than 30 days.
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all staff users with role and active status.
# - python -m flask users create --name "Ana" --email ana@workshop.local --password secret1 --role MECHANIC
#   Create a staff user (prompts if options are omitted).

import click
from flask.cli import with_appcontext

from .errors import WorkshopError
from .extensions import db
from .models import Car, Intervention, StaffRole, StaffUser
from .services.auth_service import hash_password, validate_password_strength
from .services.intervention_service import SEQUENCE_NAME
from .services.permission_service import Actor
from .services.sequence_service import count_of, ensure_sequence
from .services.session_service import cleanup_expired_sessions


DEMO_PASSWORD = "workshop123"

DEMO_VEHICLES = [
    (
        {"first_name": "Laura", "last_name": "Giménez", "phone": "11-5555-0101",
         "email": "laura.gimenez@example.com", "dni": "30.123.456"},
        {"license_plate": "ABC-123", "vin": "1FADP3F20FL000001", "make": "Ford",
         "model": "Focus", "year": 2015, "color": "Blue", "initial_km": 87000},
    ),
    (
        {"first_name": "Marcelo", "last_name": "Pereyra", "phone": "11-5555-0202",
         "email": "marcelo.pereyra@example.com", "dni": "28.987.654"},
        {"license_plate": "XYZ-987", "vin": "VF1BB05CF2R000002", "make": "Renault",
         "model": "Clio", "year": 2012, "color": "Grey", "initial_km": 132000},
    ),
]


def _create_staff_user(name, email, password, role) -> StaffUser:
    validate_password_strength(password)
    user = StaffUser(
        name=name,
        email=email.strip().lower(),
        password_hash=hash_password(password),
        role=role,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user


@click.group('system')
def system_group():
    """System bootstrap and maintenance commands."""


@system_group.command('init')
@click.option('--admin-name', default='Administrator', help='Name of the first ADMIN')
@click.option('--admin-email', default='admin@workshop.local', help='Email of the first ADMIN')
@click.option('--admin-password', default=None, help='Password of the first ADMIN (prompted if omitted)')
@with_appcontext
def init_system(admin_name, admin_email, admin_password):
    """
    Idempotent bootstrap: tables, the work-order sequence and one ADMIN.

    An ADMIN is only created when no ADMIN exists yet.
    """
    click.echo("START Initializing workshop system...")

    db.create_all()
    click.echo("PASS Tables ready")

    seq = ensure_sequence(SEQUENCE_NAME, seed_from=count_of(Intervention))
    db.session.commit()
    click.echo(f"PASS Work-order sequence ready (next number: {seq.next_number})")

    existing_admin = db.session.query(StaffUser).filter_by(role=StaffRole.ADMIN.value).first()
    if existing_admin:
        click.echo(f"WARN  ADMIN already exists ({existing_admin.email}), skipping...")
        return

    if not admin_password:
        admin_password = click.prompt("Password for the first ADMIN", hide_input=True, confirmation_prompt=True)

    try:
        user = _create_staff_user(admin_name, admin_email, admin_password, StaffRole.ADMIN.value)
    except WorkshopError as e:
        db.session.rollback()
        click.echo(f"FAIL Failed to create ADMIN: {e.message}")
        return

    click.echo(f"PASS Created ADMIN: {user.email} (ID: {user.id})")
    click.echo("DONE Workshop system initialized")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@system_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """
    Demo data: two clients with one car each, a MECHANIC, and one open work order.

    Goes through the same services as the API, so every invariant holds.
    Requires an existing ADMIN (run system init first).
    """
    from .services import intervention_service, ownership_service

    admin = db.session.query(StaffUser).filter_by(role=StaffRole.ADMIN.value).first()
    if not admin:
        click.echo("FAIL No ADMIN found. Run 'python -m flask system init' first.")
        return
    actor = Actor.from_user(admin)

    mechanic = db.session.query(StaffUser).filter_by(email="mechanic@workshop.local").first()
    if not mechanic:
        mechanic = _create_staff_user("Mechanic", "mechanic@workshop.local", DEMO_PASSWORD, StaffRole.MECHANIC.value)
        click.echo(f"PASS Created MECHANIC: {mechanic.email} / {DEMO_PASSWORD}")

    for owner, vehicle in DEMO_VEHICLES:
        result = ownership_service.register_vehicle(actor, owner, vehicle)
        if result.success:
            click.echo(f"PASS {result.message}")
        else:
            click.echo(f"WARN  {result.message}")

    car = db.session.query(Car).filter_by(license_plate="ABC123").first()
    has_orders = db.session.query(Intervention.id).filter_by(car_id=car.id).first() if car else True
    if car and not has_orders:
        result = intervention_service.create_intervention(
            Actor.from_user(mechanic),
            car.id,
            "Oil and filter change",
            notes="Customer reports noise when braking",
            mileage=car.initial_km + 1500,
        )
        click.echo(f"{'PASS' if result.success else 'WARN '} {result.message}")

    click.echo("DONE Demo data ready")


@system_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions():
    """Delete expired and revoked sessions older than 30 days."""
    deleted = cleanup_expired_sessions()
    click.echo(f"PASS Deleted {deleted} old session(s)")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Full name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice([r.value for r in StaffRole], case_sensitive=False), prompt=True, help='Role')
@with_appcontext
def create_user_cli(name, email, password, role):
    """Create a staff user directly (bootstrap; bypasses the ADMIN gate)."""
    email = email.strip().lower()
    if db.session.query(StaffUser).filter_by(email=email).first():
        click.echo(f"FAIL User with email '{email}' already exists")
        return

    try:
        user = _create_staff_user(name, email, password, role.upper())
    except WorkshopError as e:
        db.session.rollback()
        click.echo(f"FAIL Failed to create user: {e.message}")
        return

    click.echo(f"PASS Created user: {user.name} ({user.email}) with role '{user.role}'")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all staff users."""
    users = db.session.query(StaffUser).order_by(StaffUser.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<24} {'Email':<32} {'Role':<10} {'Active'}")
    click.echo("="*80)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {(user.name or '-'):<24} {user.email:<32} {user.role:<10} {active_str}")

    click.echo("="*80 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
