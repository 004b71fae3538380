"""
Directory lookups the redemption core depends on.

Attendants, stations, dispensers, pumps and catalog entries are provisioned
elsewhere; this module only answers "does it exist and how is it wired".
Soft-deleted rows (deleted_at set) are treated as absent.
"""
from __future__ import annotations

from ..extensions import db
from ..models import Dispenser, ProductCatalog, Pump, Role, Station, User


def find_active_user(user_id: int, role: Role) -> User | None:
    return (
        db.session.query(User)
        .filter(
            User.id == user_id,
            User.role == role,
            User.deleted_at.is_(None),
        )
        .first()
    )


def find_active_attendant(attendant_id: int, station_id: int | None = None) -> User | None:
    """
    Active pump attendant, optionally constrained to a station.

    station_id=None applies no station filter at all.
    """
    query = db.session.query(User).filter(
        User.id == attendant_id,
        User.role == Role.PUMP_ATTENDANT,
        User.deleted_at.is_(None),
    )
    if station_id is not None:
        query = query.filter(User.station_id == station_id)
    return query.first()


def get_station(station_id: int) -> Station | None:
    return (
        db.session.query(Station)
        .filter(Station.id == station_id, Station.deleted_at.is_(None))
        .first()
    )


def get_dispenser(dispenser_id: int) -> Dispenser | None:
    return db.session.get(Dispenser, dispenser_id)


def get_pump(pump_id: int) -> Pump | None:
    return db.session.get(Pump, pump_id)


def get_catalog_entry(catalog_id: int) -> ProductCatalog | None:
    """Catalog entry regardless of soft-delete; callers check is_active."""
    return db.session.get(ProductCatalog, catalog_id)


def list_active_catalog(omc_id: int) -> list[ProductCatalog]:
    return (
        db.session.query(ProductCatalog)
        .filter(ProductCatalog.omc_id == omc_id, ProductCatalog.deleted_at.is_(None))
        .order_by(ProductCatalog.name.asc())
        .all()
    )
