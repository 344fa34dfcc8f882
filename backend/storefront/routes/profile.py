# Overview: Customer's own profile (name/phone shared with the companies they buy from).

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_customer
from ..errors import StorefrontError, error_response
from ..services import auth_service


profile_bp = Blueprint("profile", __name__, url_prefix="/api/profile")


@profile_bp.get("")
@require_auth
@require_customer
def get_profile_route():
    profile = auth_service.get_profile(g.session_context.user_id)
    return jsonify({"profile": profile.to_dict()}), 200


@profile_bp.put("")
@require_auth
@require_customer
def update_profile_route():
    try:
        data = request.get_json(silent=True) or {}
        profile = auth_service.update_profile(
            g.session_context.user_id,
            name=data.get("name"),
            phone=data.get("phone"),
        )
        return jsonify({"profile": profile.to_dict()}), 200
    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update profile")
        return jsonify({"error": "Internal server error"}), 500
