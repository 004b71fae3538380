# Overview: Service-layer operations for station pricing; resolves per-liter prices and manages station overrides.

"""
Price resolution

RULE (authoritative):
- A StationProductPrice row for (catalog, station) wins unconditionally.
  effective_from is stamped on write and never filtered on read, so an
  override dated in the future is already in force.
- Without an override, the catalog entry's default_price applies.
- A missing or soft-deleted catalog entry has no price anywhere.
- A catalog entry owned by another OMC has no price at the station.

Prices are read fresh on every call. Nothing here caches, and redemption
must not reuse a price taken from an earlier quote.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from ..extensions import db
from ..models import ProductCatalog, Station, StationProductPrice
from ..money import format_decimal, to_decimal
from ..validation import ValidationError, NotFoundError, enforce_rules_price
from .concurrency import lock_for_update, run_with_retry
from .directory_service import get_catalog_entry, get_station, list_active_catalog
from fuelpass.time_utils import utcnow


PRICE_SOURCE_STATION = "station"
PRICE_SOURCE_DEFAULT = "default"


class PriceNotAvailableError(ValidationError):
    """No usable price for a product at a station."""


def get_override(catalog_id: int, station_id: int) -> StationProductPrice | None:
    return (
        db.session.query(StationProductPrice)
        .filter_by(catalog_id=catalog_id, station_id=station_id)
        .first()
    )


def _resolve(catalog: ProductCatalog | None, station: Station) -> tuple[Decimal, str]:
    if catalog is None or not catalog.is_active or catalog.omc_id != station.omc_id:
        raise PriceNotAvailableError("Product is not available at this station or price not set")

    override = get_override(catalog.id, station.id)
    if override is not None:
        return to_decimal(override.price), PRICE_SOURCE_STATION

    if catalog.default_price is None:
        raise PriceNotAvailableError("Product is not available at this station or price not set")
    return to_decimal(catalog.default_price), PRICE_SOURCE_DEFAULT


def resolve_price(catalog_id: int, station_id: int, *, require_positive: bool = False) -> Decimal:
    """
    Per-liter price of a catalog entry at a station.

    Raises NotFoundError for an unknown or soft-deleted station.
    Raises PriceNotAvailableError when nothing resolves, or when
    require_positive is set and the resolved price is zero or negative.
    """
    price, _source = resolve_price_with_source(catalog_id, station_id)
    if require_positive and price <= 0:
        raise PriceNotAvailableError("No valid price set for this product at the station")
    return price


def resolve_price_with_source(catalog_id: int, station_id: int) -> tuple[Decimal, str]:
    station = get_station(station_id)
    if station is None:
        raise NotFoundError("Station not found")
    return _resolve(get_catalog_entry(catalog_id), station)


def list_station_prices(station_id: int) -> dict:
    """Every active catalog entry of the station's OMC with its effective price."""
    station = get_station(station_id)
    if station is None:
        raise NotFoundError("Station not found")

    items = []
    for catalog in list_active_catalog(station.omc_id):
        price, source = _resolve(catalog, station)
        items.append({
            "catalog_id": catalog.id,
            "product": catalog.name,
            "price": format_decimal(price),
            "default_price": format_decimal(catalog.default_price),
            "source": source,
        })
    return {"station_id": station.id, "items": items, "count": len(items)}


def _require_station_and_catalog(catalog_id: int, station_id: int) -> tuple[Station, ProductCatalog]:
    station = get_station(station_id)
    if station is None:
        raise NotFoundError("Station not found")

    catalog = get_catalog_entry(catalog_id)
    if catalog is None or not catalog.is_active:
        raise NotFoundError("Product not found")

    # Stations can only price products from their own OMC's catalog
    if catalog.omc_id != station.omc_id:
        raise ValidationError("Product does not belong to the station's OMC")

    return station, catalog


def upsert_override(
    *,
    catalog_id: int,
    station_id: int,
    price,
    effective_from: datetime | None = None,
) -> StationProductPrice:
    """
    Create or replace the station's override for a catalog entry.

    effective_from defaults to now.
    """
    try:
        price = to_decimal(price)
    except ValueError:
        raise ValidationError("price must be a number")
    enforce_rules_price(price)

    def _op():
        _require_station_and_catalog(catalog_id, station_id)

        row = lock_for_update(
            db.session.query(StationProductPrice).filter_by(catalog_id=catalog_id, station_id=station_id)
        ).first()
        if row is None:
            row = StationProductPrice(catalog_id=catalog_id, station_id=station_id)
            db.session.add(row)

        row.price = price
        row.effective_from = effective_from or utcnow()

        db.session.commit()
        return row

    return run_with_retry(_op)


def remove_override(*, catalog_id: int, station_id: int) -> bool:
    """
    Drop the station's override so the catalog default applies again.

    Returns False if there was no override.
    """
    def _op():
        row = lock_for_update(
            db.session.query(StationProductPrice).filter_by(catalog_id=catalog_id, station_id=station_id)
        ).first()
        if row is None:
            return False
        db.session.delete(row)
        db.session.commit()
        return True

    return run_with_retry(_op)
