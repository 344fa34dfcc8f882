from flask import Blueprint, jsonify, request, g, current_app

from ..decorators import require_auth, require_owner
from ..errors import StorefrontError, error_response
from ..services import preferences_service


preferences_bp = Blueprint("preferences", __name__, url_prefix="/api/preferences")


@preferences_bp.get("")
@require_auth
@require_owner
def get_preferences_route():
    try:
        return jsonify({"preferences": preferences_service.get_preferences(g.session_context)}), 200
    except StorefrontError as e:
        return error_response(e)


@preferences_bp.put("")
@require_auth
@require_owner
def update_preferences_route():
    """Body: {"notification_sound": true|false}. Saving the same value twice is fine."""
    try:
        data = request.get_json(silent=True) or {}
        prefs = preferences_service.set_notification_sound(
            g.session_context, data.get("notification_sound")
        )
        return jsonify({"preferences": prefs}), 200
    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to save preferences")
        return jsonify({"error": "Internal server error"}), 500
