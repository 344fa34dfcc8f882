# Overview: Flask API routes for order operations; parses input and returns JSON responses.

# backend/storefront/routes/orders.py
"""Order lifecycle API routes (owner dashboard + customer submit)"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_owner, require_customer
from ..errors import StorefrontError, error_response
from ..services import order_service


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.get("")
@require_auth
@require_owner
def list_orders_route():
    """
    Company orders, open ones first, newest first within each group.

    Query: page (default 1), per_page (default ORDERS_PAGE_SIZE, max 100)
    """
    try:
        page = request.args.get("page", 1, type=int)
        per_page = request.args.get("per_page", None, type=int)
        return jsonify(order_service.list_orders(g.session_context, page=page, per_page=per_page)), 200

    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/<int:order_id>")
@require_auth
@require_owner
def get_order_route(order_id: int):
    try:
        return jsonify(order_service.get_order(g.session_context, order_id)), 200
    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/<int:order_id>/lines")
@require_auth
@require_owner
def order_lines_route(order_id: int):
    try:
        lines = order_service.get_order_lines(g.session_context, order_id)
        return jsonify({"items": lines, "count": len(lines)}), 200
    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load order lines")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/approve")
@require_auth
@require_owner
def approve_order_route(order_id: int):
    """
    Approve a SUBMITTED order and commit its stock.

    409 InvalidTransitionError when the order is not SUBMITTED (including a
    second approval), 409 ConcurrencyError when stock moved underneath.
    """
    try:
        order = order_service.approve_order(g.session_context, order_id)
        return jsonify({"order": order.to_dict()}), 200

    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to approve order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/cancel")
@require_auth
@require_owner
def cancel_order_route(order_id: int):
    try:
        order = order_service.cancel_order(g.session_context, order_id)
        return jsonify({"order": order.to_dict()}), 200

    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to cancel order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/submit")
@require_auth
@require_customer
def submit_order_route(order_id: int):
    """Customer sends their DRAFT order to the company."""
    try:
        order = order_service.submit_order(g.session_context, order_id)
        return jsonify({"order": order.to_dict()}), 200

    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to submit order")
        return jsonify({"error": "Internal server error"}), 500
