# Overview: Flask API routes for token redemption and transaction queries; parses input and returns JSON responses.

# backend/fuelpass/routes/transactions.py
"""
Transaction API routes with role enforcement.

- Redemption and liters quotes are attendant-only; the attendant is always
  the authenticated user, never a request field.
- Admin listings are restricted to OMC_ADMIN.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..models import Role, Transaction
from ..services import redemption_service, transaction_query_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_redemption,
    ValidationError,
    ConflictError,
    NotFoundError,
)
from ..decorators import require_auth, require_role


REDEEM_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"product_catalog_id", "liters", "amount", "station_id", "dispenser_id", "pump_id"}),
)

transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


def _optional_int_arg(name: str) -> int | None:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"Invalid {name}")


@transactions_bp.get("/filtered")
@require_auth
@require_role(Role.OMC_ADMIN)
def filtered_transactions_route():
    """
    List tokens filtered by station or OMC.

    Query params:
    - station_id: int (optional) - takes precedence over omc_id
    - omc_id: int (optional)
    - page: int (default 1)
    - limit: int (default 20, max 100)
    """
    try:
        result = transaction_query_service.get_filtered_transactions(
            omc_id=_optional_int_arg("omc_id"),
            station_id=_optional_int_arg("station_id"),
            page=_optional_int_arg("page") or 1,
            limit=_optional_int_arg("limit") or 20,
        )
        return jsonify(result), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@transactions_bp.get("/filters/omcs")
@require_auth
def omc_filters_route():
    try:
        return jsonify(transaction_query_service.get_omc_filters(_optional_int_arg("omc_id"))), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@transactions_bp.get("/tokens/search")
@require_auth
def search_tokens_route():
    return jsonify(transaction_query_service.search_tokens(request.args.get("q"))), 200


@transactions_bp.get("/details/<int:transaction_id>")
@require_auth
@require_role(Role.OMC_ADMIN)
def transaction_details_route(transaction_id: int):
    try:
        return jsonify(transaction_query_service.get_transaction_details(transaction_id)), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@transactions_bp.patch("/token/<token>")
@require_auth
@require_role(Role.PUMP_ATTENDANT)
def redeem_token_route(token: str):
    """
    Redeem a token: mark it used and record the sale.

    Body (all optional): product_catalog_id, liters, amount, station_id,
    dispenser_id, pump_id. Missing values fall back to what the token
    already carries.

    404: token unknown or already used, attendant/station/pump missing
    400: missing station/product, mismatched pump chain, no price
    409: lost a concurrent redemption race
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Transaction, payload=payload, policy=REDEEM_POLICY)
        enforce_rules_redemption(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        record = redemption_service.redeem(token, g.current_user.id, **patch)
        return jsonify({"transaction": record.to_detail()}), 200

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to redeem token")
        return jsonify({"error": "Internal server error"}), 500


@transactions_bp.get("")
@require_auth
@require_role(Role.PUMP_ATTENDANT, Role.OMC_ADMIN)
def sales_history_route():
    """
    Completed sales for an attendant.

    Attendants may only read their own history.
    """
    try:
        attendant_id = _optional_int_arg("pump_attendant_id")
        if attendant_id is None:
            raise ValidationError("Invalid pump_attendant_id")
        page = _optional_int_arg("page")
        limit = _optional_int_arg("limit")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    if g.current_user.role != Role.OMC_ADMIN and g.current_user.id != attendant_id:
        return jsonify({"error": "You can only view your own sales"}), 403

    try:
        return jsonify(transaction_query_service.get_sales_history(attendant_id, page=page, limit=limit)), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@transactions_bp.get("/<token>/calculate-liters")
@require_auth
@require_role(Role.PUMP_ATTENDANT)
def calculate_liters_route(token: str):
    product_name = request.args.get("product")
    if not product_name:
        return jsonify({"error": 'Query param "product" is required'}), 400

    try:
        quote = redemption_service.calculate_liters(token, product_name, g.current_user.id)
        return jsonify(quote), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@transactions_bp.get("/<token>")
@require_auth
def token_details_route(token: str):
    try:
        return jsonify(transaction_query_service.get_token_details(token)), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
