# Overview: Flask API routes for station prices; parses input and returns JSON responses.

"""
Station price routes.

Reads are open to any authenticated user. Writes (override upsert/removal)
require OMC_ADMIN or STATION_MANAGER; a station manager may only price
their own station.
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..models import Role
from ..money import format_decimal
from ..services import pricing_service
from ..validation import ValidationError, NotFoundError
from ..decorators import require_auth, require_role
from ..time_utils import parse_iso_datetime


prices_bp = Blueprint("prices", __name__, url_prefix="/api/stations")


def _can_manage_station(station_id: int) -> bool:
    user = g.current_user
    if user.role == Role.STATION_MANAGER:
        return user.station_id == station_id
    return user.role == Role.OMC_ADMIN


@prices_bp.get("/<int:station_id>/prices")
@require_auth
def list_prices_route(station_id: int):
    try:
        return jsonify(pricing_service.list_station_prices(station_id)), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@prices_bp.get("/<int:station_id>/prices/<int:catalog_id>")
@require_auth
def resolve_price_route(station_id: int, catalog_id: int):
    try:
        price, source = pricing_service.resolve_price_with_source(catalog_id, station_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({
        "station_id": station_id,
        "catalog_id": catalog_id,
        "price": format_decimal(price),
        "source": source,
    }), 200


@prices_bp.put("/<int:station_id>/prices/<int:catalog_id>")
@require_auth
@require_role(Role.OMC_ADMIN, Role.STATION_MANAGER)
def upsert_price_route(station_id: int, catalog_id: int):
    """
    Set the station override for a product.

    Body: {"price": "25.50", "effective_from": "2026-01-01T00:00:00Z" (optional)}
    """
    if not _can_manage_station(station_id):
        return jsonify({"error": "Permission denied"}), 403

    data = request.get_json(silent=True) or {}
    if data.get("price") is None:
        return jsonify({"error": "price required"}), 400

    try:
        effective_from = parse_iso_datetime(data.get("effective_from"))
    except (AttributeError, TypeError, ValueError):
        return jsonify({"error": "effective_from must be an ISO-8601 datetime"}), 400

    try:
        row = pricing_service.upsert_override(
            catalog_id=catalog_id,
            station_id=station_id,
            price=data["price"],
            effective_from=effective_from,
        )
        return jsonify({"price": row.to_dict()}), 200

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to set station price")
        return jsonify({"error": "Internal server error"}), 500


@prices_bp.delete("/<int:station_id>/prices/<int:catalog_id>")
@require_auth
@require_role(Role.OMC_ADMIN, Role.STATION_MANAGER)
def remove_price_route(station_id: int, catalog_id: int):
    if not _can_manage_station(station_id):
        return jsonify({"error": "Permission denied"}), 403

    if not pricing_service.remove_override(catalog_id=catalog_id, station_id=station_id):
        return jsonify({"error": "Price override not found"}), 404

    return jsonify({"ok": True}), 200
