# Overview: Flask API routes for token purchase; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..models import Role
from ..services import token_service
from ..validation import ValidationError, ConflictError, NotFoundError
from ..decorators import require_auth, require_role


tokens_bp = Blueprint("tokens", __name__, url_prefix="/api/tokens")


@tokens_bp.post("")
@require_auth
@require_role(Role.DRIVER)
def issue_token_route():
    """
    Issue a prepaid token to the authenticated driver.

    Body: {"amount": "1000.00"}
    """
    data = request.get_json(silent=True) or {}
    amount = data.get("amount")
    if amount is None:
        return jsonify({"error": "amount required"}), 400

    try:
        record = token_service.issue_token(driver_id=g.current_user.id, amount=amount)
        return jsonify({"transaction": record.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to issue token")
        return jsonify({"error": "Internal server error"}), 500
