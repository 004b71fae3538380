"""
Pytest fixtures for FuelPass backend tests.

Provides an in-memory database, a small two-OMC station network, users for
every role, one unused token and a test client.
"""

from decimal import Decimal

import pytest
from fuelpass import create_app
from fuelpass.extensions import db
from fuelpass.models import (
    Omc, Station, Dispenser, Pump, ProductCatalog, StationProductPrice, Role,
)
from fuelpass.services import session_service, token_service
from fuelpass.services.auth_service import create_user


TEST_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def omc(db_session):
    omc = Omc(name="Alpha Energy", location="Accra")
    db_session.add(omc)
    db_session.commit()
    return omc


@pytest.fixture(scope='function')
def other_omc(db_session):
    omc = Omc(name="Beta Petroleum", location="Kumasi")
    db_session.add(omc)
    db_session.commit()
    return omc


@pytest.fixture(scope='function')
def station(db_session, omc):
    """Station A, owned by Alpha Energy."""
    station = Station(omc_id=omc.id, name="Station A", region="Greater Accra", town="Osu")
    db_session.add(station)
    db_session.commit()
    return station


@pytest.fixture(scope='function')
def other_station(db_session, other_omc):
    """Station B, owned by Beta Petroleum."""
    station = Station(omc_id=other_omc.id, name="Station B", region="Ashanti", town="Adum")
    db_session.add(station)
    db_session.commit()
    return station


@pytest.fixture(scope='function')
def diesel(db_session, omc):
    """Alpha Energy Diesel, default 25.00."""
    entry = ProductCatalog(omc_id=omc.id, name="Diesel", default_price=Decimal("25.00"))
    db_session.add(entry)
    db_session.commit()
    return entry


@pytest.fixture(scope='function')
def gasoline(db_session, omc):
    """Alpha Energy Gasoline, default 28.50."""
    entry = ProductCatalog(omc_id=omc.id, name="Gasoline", default_price=Decimal("28.50"))
    db_session.add(entry)
    db_session.commit()
    return entry


@pytest.fixture(scope='function')
def other_diesel(db_session, other_omc):
    """Beta Petroleum Diesel, default 24.80."""
    entry = ProductCatalog(omc_id=other_omc.id, name="Diesel", default_price=Decimal("24.80"))
    db_session.add(entry)
    db_session.commit()
    return entry


@pytest.fixture(scope='function')
def diesel_override(db_session, station, diesel):
    """Station A sells Diesel at 25.50."""
    row = StationProductPrice(catalog_id=diesel.id, station_id=station.id, price=Decimal("25.50"))
    db_session.add(row)
    db_session.commit()
    return row


@pytest.fixture(scope='function')
def dispenser(db_session, station):
    dispenser = Dispenser(station_id=station.id, dispenser_number="DISP-001")
    db_session.add(dispenser)
    db_session.commit()
    return dispenser


@pytest.fixture(scope='function')
def pump(db_session, dispenser, diesel):
    pump = Pump(dispenser_id=dispenser.id, product_catalog_id=diesel.id, pump_number="PUMP-001A")
    db_session.add(pump)
    db_session.commit()
    return pump


def _make_user(db_session, email, role, **kwargs):
    user = create_user(email=email, password=TEST_PASSWORD, role=role, password_rounds=4, **kwargs)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def attendant(db_session, station):
    return _make_user(
        db_session, "attendant@fuelpass.test", Role.PUMP_ATTENDANT,
        name="Ama Attendant", contact="0240000001", station_id=station.id,
    )


@pytest.fixture(scope='function')
def other_attendant(db_session, other_station):
    return _make_user(
        db_session, "attendant.b@fuelpass.test", Role.PUMP_ATTENDANT,
        name="Kofi Attendant", station_id=other_station.id,
    )


@pytest.fixture(scope='function')
def driver(db_session):
    return _make_user(
        db_session, "driver@fuelpass.test", Role.DRIVER,
        name="Demo Driver", company_name="Demo Haulage", vehicle_count=3,
    )


@pytest.fixture(scope='function')
def admin(db_session, omc):
    return _make_user(db_session, "admin@fuelpass.test", Role.OMC_ADMIN, name="OMC Admin", omc_id=omc.id)


@pytest.fixture(scope='function')
def manager(db_session, station):
    return _make_user(
        db_session, "manager@fuelpass.test", Role.STATION_MANAGER, name="Station Manager", station_id=station.id,
    )


@pytest.fixture(scope='function')
def token(db_session, driver):
    """TXN-001 worth 1000.00, UNUSED."""
    return token_service.issue_token(driver_id=driver.id, amount="1000", token="TXN-001")


def auth_headers_for(user) -> dict:
    """Open a session for `user` and return its Authorization header."""
    _session, plaintext = session_service.create_session(user_id=user.id)
    return {'Authorization': f'Bearer {plaintext}'}


@pytest.fixture(scope='function')
def attendant_headers(attendant):
    return auth_headers_for(attendant)


@pytest.fixture(scope='function')
def admin_headers(admin):
    return auth_headers_for(admin)


@pytest.fixture(scope='function')
def driver_headers(driver):
    return auth_headers_for(driver)


@pytest.fixture(scope='function')
def manager_headers(manager):
    return auth_headers_for(manager)
