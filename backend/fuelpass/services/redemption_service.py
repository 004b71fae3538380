# Overview: Service-layer operations for token redemption and liters quotes.

"""
Redemption state machine

    UNUSED --redeem--> USED   (terminal; no reverse, no cancel)

redeem() validates the whole attendant/station/pump/dispenser/product chain
against the token, resolves the price fresh, reconciles liters and amount,
then performs ONE guarded write. Every check happens before that write, so a
failed redemption leaves the token exactly as it was.

calculate_liters() is the read-only preview an attendant sees before
dispensing. It never writes and carries 6 decimal places; redemption
commits at 3.
"""
from __future__ import annotations

from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Pump, Transaction
from ..money import format_decimal, liters_from_amount, reconcile, to_decimal, QUOTE_PLACES
from ..validation import ConflictError, NotFoundError, ValidationError
from . import directory_service, pricing_service, token_service
from .concurrency import run_with_retry
from fuelpass.time_utils import utcnow


def _validate_pump_chain(station_id: int, pump_id: int | None, dispenser_id: int | None) -> Pump | None:
    if pump_id is not None:
        pump = directory_service.get_pump(pump_id)
        if pump is None:
            raise NotFoundError("Pump not found")
        if pump.station_id != station_id:
            raise ValidationError("Pump does not belong to the provided station")
        if dispenser_id is not None and pump.dispenser_id != dispenser_id:
            raise ValidationError("Pump does not belong to the provided dispenser")
        return pump

    if dispenser_id is not None:
        dispenser = directory_service.get_dispenser(dispenser_id)
        if dispenser is None:
            raise NotFoundError("Dispenser not found")
        if dispenser.station_id != station_id:
            raise ValidationError("Dispenser does not belong to the provided station")
    return None


def redeem(
    token: str,
    attendant_id: int,
    *,
    product_catalog_id: int | None = None,
    liters: Decimal | None = None,
    amount: Decimal | None = None,
    station_id: int | None = None,
    dispenser_id: int | None = None,
    pump_id: int | None = None,
) -> Transaction:
    """
    Mark a token as used and stamp the sale details on it.

    Raises:
        NotFoundError: token missing or already used; attendant not found or
            not assigned to the station; station, pump or dispenser missing
        ValidationError: station or product unresolved, pump/dispenser chain
            mismatch, no price, neither liters nor amount known
        ConflictError: another redemption of the same token won the race
    """
    def _op():
        record = token_service.find_unused_token(token, lock=True)
        if record is None:
            raise NotFoundError(f"Token {token} not found or already used")

        attendant_station_id = station_id if station_id is not None else record.station_id
        attendant = directory_service.find_active_attendant(attendant_id, attendant_station_id)
        if attendant is None:
            raise NotFoundError("Fuel attendant not found or not assigned to this station")

        resolved_station_id = station_id if station_id is not None else record.station_id
        if resolved_station_id is None:
            raise ValidationError("Station ID is required")

        if directory_service.get_station(resolved_station_id) is None:
            raise NotFoundError("Station not found")

        pump = _validate_pump_chain(resolved_station_id, pump_id, dispenser_id)

        catalog_id = product_catalog_id if product_catalog_id is not None else record.product_catalog_id
        if catalog_id is None:
            raise ValidationError("Product catalog ID is required")

        if pump is not None and pump.product_catalog_id != catalog_id:
            current_app.logger.warning(
                "Token %s: pump %s dispenses product %s, redeemed as product %s",
                token, pump.id, pump.product_catalog_id, catalog_id,
            )

        price = pricing_service.resolve_price(catalog_id, resolved_station_id, require_positive=True)

        known_liters = liters if liters is not None else record.liters
        known_amount = amount if amount is not None else record.amount
        try:
            result = reconcile(known_liters, known_amount, price)
        except ValueError:
            raise ValidationError("Either liters or amount is required")

        if result.mismatch:
            current_app.logger.warning(
                "Token %s: entered liters (%s) differ from expected (%s) at price %s",
                token, result.liters, result.expected_liters, price,
            )

        fields = {
            "redeemed_at": utcnow(),
            "pump_attendant_id": attendant.id,
            "station_id": resolved_station_id,
            "product_catalog_id": catalog_id,
            "liters": result.liters,
            "amount": result.amount,
        }
        # Optional attribution only overwrites what the request supplies.
        if dispenser_id is not None:
            fields["dispenser_id"] = dispenser_id
        if pump_id is not None:
            fields["pump_id"] = pump_id

        transaction_id = record.id
        if not token_service.conditional_redeem(transaction_id, fields):
            db.session.rollback()
            raise ConflictError(f"Token {token} was redeemed by another request")

        db.session.commit()

        redeemed = db.session.get(Transaction, transaction_id)
        current_app.logger.info(
            "Redeemed token %s: %s L for %s at station %s by attendant %s",
            token, result.liters, result.amount, resolved_station_id, attendant.id,
        )
        return redeemed

    try:
        return run_with_retry(_op)
    except (NotFoundError, ValidationError):
        # Release the row lock taken by the initial read.
        db.session.rollback()
        raise


def calculate_liters(token: str, product_name: str, attendant_id: int) -> dict:
    """
    Preview how many liters a token buys for a product at the attendant's
    station. Read-only; identical inputs give identical output while the
    price is unchanged.
    """
    record = token_service.find_unused_token(token)
    if record is None:
        raise NotFoundError(f"Token {token} not found or already used")
    if record.amount is None:
        raise ValidationError("Token has no amount")

    if not product_name or not product_name.strip():
        raise ValidationError('Query param "product" is required')

    attendant = directory_service.find_active_attendant(attendant_id)
    station = (
        directory_service.get_station(attendant.station_id)
        if attendant is not None and attendant.station_id is not None
        else None
    )
    if station is None:
        raise NotFoundError("Attendant not assigned to a station")

    wanted = product_name.strip().lower()
    catalog_entries = directory_service.list_active_catalog(station.omc_id)
    catalog = next((c for c in catalog_entries if c.name.lower() == wanted), None)
    if catalog is None:
        available = ", ".join(c.name for c in catalog_entries) or "none"
        raise ValidationError(
            f'Product "{product_name}" not available at this station. Available: {available}'
        )

    price = pricing_service.resolve_price(catalog.id, station.id, require_positive=True)
    amount = to_decimal(record.amount)
    quoted = liters_from_amount(amount, price, places=QUOTE_PLACES)

    return {
        "token": record.token,
        "amount": format_decimal(amount),
        "product": catalog.name,
        "price_per_liter": format_decimal(price),
        "liters": format_decimal(quoted),
        "station": {"id": station.id, "name": station.name},
    }
