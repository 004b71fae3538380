# Overview: Flask CLI command groups for schema bootstrap, demo seeding, token issuance and pricing.

# backend/fuelpass/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables that do not exist yet.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed
#   Idempotent demo network: two OMCs, stations, catalog, users, pumps and one unused token.
#
# Tokens:
# - python -m flask tokens issue --driver-email driver@fuelpass.local --amount 1000 [--token TXN-001]
#   Record a purchased token for a driver.
#
# Station prices:
# - python -m flask prices set --station-id 1 --catalog-id 1 --price 25.50
#   Create or replace a station override.
# - python -m flask prices clear --station-id 1 --catalog-id 1
#   Remove a station override so the catalog default applies.

import click
from decimal import Decimal
from flask.cli import with_appcontext

from .extensions import db
from .models import (
    Omc, Station, Dispenser, Pump, ProductCatalog, StationProductPrice,
    User, Role,
)
from .money import format_decimal
from .services import pricing_service, token_service
from .services.auth_service import create_user
from .validation import ValidationError, ConflictError, NotFoundError


DEFAULT_PASSWORD = "Password123!"


@click.group('system')
def system_group():
    """Schema bootstrap and demo data commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system seed' to load demo data.")


def _get_or_create(model, defaults=None, **lookup):
    row = db.session.query(model).filter_by(**lookup).first()
    if row is not None:
        return row, False
    row = model(**lookup, **(defaults or {}))
    db.session.add(row)
    db.session.flush()
    return row, True


def _ensure_user(email, role, **kwargs):
    user = db.session.query(User).filter_by(email=email).first()
    if user is not None:
        click.echo(f"PASS Using existing user: {email}")
        return user
    user = create_user(email=email, password=DEFAULT_PASSWORD, role=role, **kwargs)
    click.echo(f"PASS Created user: {email} ({role.value})")
    return user


@system_group.command('seed')
@with_appcontext
def seed():
    """
    Load a small demo network.

    Creates (skipping anything already present):
    - OMCs: Alpha Energy (Diesel 25.00, Gasoline 28.50), Beta Petroleum (Diesel 24.80)
    - Stations: Station A (Alpha), Station B (Beta)
    - Station A overrides Diesel to 25.50
    - Users: admin, station_manager, attendant (Station A), driver
    - Dispenser DISP-001 with pump PUMP-001A (Diesel), DISP-002 with PUMP-002A (Gasoline)
    - Token TXN-001 worth 1000.00 for the driver, UNUSED
    - All passwords default to: "Password123!"
    """
    click.echo("START Seeding demo data...")

    alpha, _ = _get_or_create(Omc, name="Alpha Energy", defaults={"location": "Accra"})
    beta, _ = _get_or_create(Omc, name="Beta Petroleum", defaults={"location": "Kumasi"})

    diesel, _ = _get_or_create(
        ProductCatalog, omc_id=alpha.id, name="Diesel", defaults={"default_price": Decimal("25.00")}
    )
    gasoline, _ = _get_or_create(
        ProductCatalog, omc_id=alpha.id, name="Gasoline", defaults={"default_price": Decimal("28.50")}
    )
    _get_or_create(
        ProductCatalog, omc_id=beta.id, name="Diesel", defaults={"default_price": Decimal("24.80")}
    )

    station_a, _ = _get_or_create(
        Station, omc_id=alpha.id, name="Station A",
        defaults={"region": "Greater Accra", "district": "Accra Metro", "town": "Osu"},
    )
    _get_or_create(
        Station, omc_id=beta.id, name="Station B",
        defaults={"region": "Ashanti", "district": "Kumasi Metro", "town": "Adum"},
    )
    click.echo(f"PASS OMCs and stations ready: {alpha.name}, {beta.name}")

    _get_or_create(
        StationProductPrice, catalog_id=diesel.id, station_id=station_a.id,
        defaults={"price": Decimal("25.50")},
    )
    click.echo("PASS Station A Diesel override: 25.50")

    _ensure_user("admin@fuelpass.local", Role.OMC_ADMIN, name="OMC Admin", omc_id=alpha.id)
    _ensure_user(
        "manager@fuelpass.local", Role.STATION_MANAGER, name="Station Manager", station_id=station_a.id
    )
    attendant = _ensure_user(
        "attendant@fuelpass.local", Role.PUMP_ATTENDANT, name="Pump Attendant", station_id=station_a.id
    )
    driver = _ensure_user(
        "driver@fuelpass.local", Role.DRIVER, name="Demo Driver",
        company_name="Demo Haulage", vehicle_count=3,
    )

    disp1, _ = _get_or_create(Dispenser, dispenser_number="DISP-001", defaults={"station_id": station_a.id})
    disp2, _ = _get_or_create(Dispenser, dispenser_number="DISP-002", defaults={"station_id": station_a.id})
    pump1, _ = _get_or_create(
        Pump, pump_number="PUMP-001A", defaults={"dispenser_id": disp1.id, "product_catalog_id": diesel.id}
    )
    _get_or_create(
        Pump, pump_number="PUMP-002A", defaults={"dispenser_id": disp2.id, "product_catalog_id": gasoline.id}
    )
    if attendant not in pump1.attendants:
        pump1.attendants.append(attendant)
    click.echo("PASS Dispensers and pumps ready")

    db.session.commit()

    if token_service.find_token("TXN-001") is None:
        token_service.issue_token(driver_id=driver.id, amount="1000", token="TXN-001")
        click.echo("PASS Issued token TXN-001 (1000.00)")
    else:
        click.echo("PASS Using existing token TXN-001")

    click.echo(f"\nPASS Seed complete. Default password: {DEFAULT_PASSWORD}")


@click.group('tokens')
def tokens_group():
    """Fuel token commands."""


@tokens_group.command('issue')
@click.option('--driver-email', required=True, help='Email of the purchasing driver')
@click.option('--amount', required=True, help='Prepaid amount, e.g. 1000.00')
@click.option('--token', default=None, help='Explicit token string (generated if omitted)')
@with_appcontext
def issue_token(driver_email, amount, token):
    """Record a purchased token for a driver."""
    driver = db.session.query(User).filter_by(email=driver_email.strip().lower()).first()
    if driver is None:
        raise click.ClickException(f"Driver {driver_email} not found")

    try:
        record = token_service.issue_token(driver_id=driver.id, amount=amount, token=token)
    except (ValidationError, ConflictError, NotFoundError) as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Issued {record.token} amount={format_decimal(record.amount)} driver={driver.email}")


@click.group('prices')
def prices_group():
    """Station price override commands."""


@prices_group.command('set')
@click.option('--station-id', required=True, type=int)
@click.option('--catalog-id', required=True, type=int)
@click.option('--price', required=True, help='Price per liter, e.g. 25.50')
@with_appcontext
def set_price(station_id, catalog_id, price):
    """Create or replace a station override."""
    try:
        row = pricing_service.upsert_override(catalog_id=catalog_id, station_id=station_id, price=price)
    except (ValidationError, NotFoundError) as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Station {station_id} catalog {catalog_id} price={format_decimal(row.price)}")


@prices_group.command('clear')
@click.option('--station-id', required=True, type=int)
@click.option('--catalog-id', required=True, type=int)
@with_appcontext
def clear_price(station_id, catalog_id):
    """Remove a station override so the catalog default applies."""
    if pricing_service.remove_override(catalog_id=catalog_id, station_id=station_id):
        click.echo(f"PASS Override removed for station {station_id} catalog {catalog_id}")
    else:
        click.echo(f"WARN No override for station {station_id} catalog {catalog_id}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(tokens_group)
    app.cli.add_command(prices_group)
