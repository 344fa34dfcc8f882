# Overview: Flask API routes for category operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_owner
from ..errors import StorefrontError, error_response
from ..services import category_service


categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
@require_owner
def list_categories_route():
    try:
        categories = category_service.list_categories(g.session_context)
        return jsonify({"items": [c.to_dict() for c in categories], "count": len(categories)}), 200
    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list categories")
        return jsonify({"error": "Internal server error"}), 500


@categories_bp.post("")
@require_auth
@require_owner
def create_category_route():
    try:
        data = request.get_json(silent=True) or {}
        category = category_service.create_category(g.session_context, data.get("name"), data.get("slug"))
        return jsonify({"category": category.to_dict()}), 201
    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create category")
        return jsonify({"error": "Internal server error"}), 500


@categories_bp.put("/<int:category_id>")
@require_auth
@require_owner
def update_category_route(category_id: int):
    try:
        data = request.get_json(silent=True) or {}
        category = category_service.update_category(
            g.session_context, category_id, name=data.get("name"), slug=data.get("slug")
        )
        return jsonify({"category": category.to_dict()}), 200
    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update category")
        return jsonify({"error": "Internal server error"}), 500


@categories_bp.delete("/<int:category_id>")
@require_auth
@require_owner
def delete_category_route(category_id: int):
    try:
        category_service.delete_category(g.session_context, category_id)
        return jsonify({"deleted": True}), 200
    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete category")
        return jsonify({"error": "Internal server error"}), 500
