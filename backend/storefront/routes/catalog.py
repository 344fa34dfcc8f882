# Overview: Public catalog routes: browse a storefront by slug and place orders.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import optional_auth
from ..errors import StorefrontError, ValidationError, error_response
from ..handoff import build_handoff
from ..services import catalog_service, order_service
from ..services.tenant_service import get_company_by_slug


catalog_bp = Blueprint("catalog", __name__, url_prefix="/api/catalog")


@catalog_bp.get("/<slug>")
def catalog_route(slug: str):
    try:
        return jsonify(catalog_service.public_catalog(slug)), 200
    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load catalog %s", slug)
        return jsonify({"error": "Internal server error"}), 500


@catalog_bp.post("/<slug>/orders")
@optional_auth
def create_order_route(slug: str):
    """
    Place an order from a cart.

    Body: {"items": [{"product_id": 1, "quantity": 2}, ...], "submit": true}
    Anonymous shoppers are allowed; a logged-in customer is recorded on the
    order. Drafts ("submit": false) need a customer session. The response
    carries the WhatsApp handoff message and link.
    """
    try:
        data = request.get_json(silent=True) or {}
        items = data.get("items")
        if items is not None and not isinstance(items, list):
            raise ValidationError("items must be a list")
        submit = data.get("submit", True)
        if not isinstance(submit, bool):
            raise ValidationError("submit must be true or false")

        company = get_company_by_slug(slug)
        ctx = g.get("session_context")
        customer_user_id = ctx.user_id if ctx is not None and not ctx.is_owner else None

        order = order_service.create_order(company.id, customer_user_id, items, submit=submit)
        lines = order_service.lines_with_product_names(order.id)

        return jsonify({
            "order": order.to_dict(),
            "lines": lines,
            "handoff": build_handoff(company, lines, order.total_cents),
        }), 201

    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create order for catalog %s", slug)
        return jsonify({"error": "Internal server error"}), 500
