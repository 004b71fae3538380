# Overview: Domain error types and request payload validation driven by column metadata.

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy import Integer, Numeric, String
from sqlalchemy.orm import DeclarativeMeta

from fuelpass.money import to_decimal


# Maximum per-liter price and per-token amount accepted from clients.
MAX_PRICE = Decimal("99999.99")
MAX_AMOUNT = Decimal("9999999999.99")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., token already redeemed)."""


class NotFoundError(LookupError):
    """404-level missing (or deliberately hidden) resource."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """Which columns of a model a client payload may carry."""
    writable_fields: frozenset[str]


def _as_int(key: str, value: Any) -> int:
    # JSON numbers arrive as int or float; query-ish clients send strings
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return int(text)
    raise ValidationError(f"{key} must be an integer")


def _as_decimal(key: str, value: Any, scale: int | None) -> Decimal:
    try:
        number = to_decimal(value)
    except ValueError:
        raise ValidationError(f"{key} must be a number")
    if scale is not None and number.as_tuple().exponent < -scale:
        raise ValidationError(f"{key} allows at most {scale} decimal places")
    return number


def _coerce(col, value: Any):
    coltype = col.type
    if isinstance(coltype, Integer):
        return _as_int(col.key, value)
    if isinstance(coltype, Numeric):
        return _as_decimal(col.key, value, coltype.scale)
    if isinstance(coltype, String):
        text = str(value).strip()
        if coltype.length and len(text) > coltype.length:
            raise ValidationError(f"{col.key} exceeds max length {coltype.length}")
        return text
    raise ValidationError(f"{col.key} cannot be set")


def validate_payload(*, model: DeclarativeMeta, payload: Any, policy: ModelValidationPolicy) -> dict:
    """
    Check a JSON body against the policy allowlist and the model's column
    types, returning a dict of coerced values.

    Keys outside writable_fields are rejected outright. A null value means
    "not supplied" and is dropped, so callers fall back to stored values.
    """
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    columns = {c.key: c for c in model.__mapper__.columns}

    patch: dict = {}
    for key, raw in payload.items():
        if key not in policy.writable_fields or key not in columns:
            raise ValidationError(f"Field not allowed: {key}")
        if raw is None:
            continue
        patch[key] = _coerce(columns[key], raw)
    return patch


def enforce_rules_redemption(patch: dict) -> None:
    """Bounds that column metadata cannot express."""
    for key in ("liters", "amount"):
        value = patch.get(key)
        if value is not None and value <= 0:
            raise ValidationError(f"{key} must be > 0")
    amount = patch.get("amount")
    if amount is not None and amount > MAX_AMOUNT:
        raise ValidationError(f"amount cannot exceed {MAX_AMOUNT}")


def enforce_rules_price(price: Decimal) -> None:
    if price <= 0:
        raise ValidationError("price must be > 0")
    if price > MAX_PRICE:
        raise ValidationError(f"price cannot exceed {MAX_PRICE}")


def enforce_rules_token_amount(amount: Decimal) -> None:
    if amount <= 0:
        raise ValidationError("amount must be > 0")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"amount cannot exceed {MAX_AMOUNT}")
