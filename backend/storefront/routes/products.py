# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/storefront/routes/products.py
"""
Product management routes (owner dashboard).

All operations are scoped to the caller's company; the company is resolved
from the session, never from the payload.
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_owner
from ..errors import StorefrontError, error_response
from ..services import products_service, storage_service
from ..services.tenant_service import require_owner as resolve_company

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_owner
def list_products_route():
    """
    Query params:
    - category_id: int (optional)
    - include_inactive: bool (default true)
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    category_id = request.args.get("category_id", type=int)
    include_inactive = request.args.get("include_inactive", "true").lower() not in {"0", "false", "no"}
    page = request.args.get("page", type=int)
    per_page = request.args.get("per_page", type=int)

    try:
        result = products_service.list_products(
            g.session_context,
            category_id=category_id,
            include_inactive=include_inactive,
            page=page,
            per_page=per_page,
        )
        return jsonify(result), 200
    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list products")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/<int:product_id>")
@require_auth
@require_owner
def get_product_route(product_id: int):
    try:
        product = products_service.get_product(g.session_context, product_id)
        return jsonify({"product": product.to_dict()}), 200
    except StorefrontError as e:
        return error_response(e)


@products_bp.post("")
@require_auth
@require_owner
def create_product_route():
    """
    Body: name, price (decimal) or price_cents, optional description,
    stock (null or negative = unlimited, 0 = unavailable), category_id,
    image_url, is_active.
    """
    try:
        product = products_service.create_product(g.session_context, request.get_json(silent=True) or {})
        return jsonify({"product": product.to_dict()}), 201
    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.put("/<int:product_id>")
@require_auth
@require_owner
def update_product_route(product_id: int):
    try:
        product = products_service.update_product(
            g.session_context, product_id, request.get_json(silent=True) or {}
        )
        return jsonify({"product": product.to_dict()}), 200
    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.post("/<int:product_id>/active")
@require_auth
@require_owner
def set_active_route(product_id: int):
    try:
        data = request.get_json(silent=True) or {}
        product = products_service.set_active(g.session_context, product_id, data.get("is_active"))
        return jsonify({"product": product.to_dict()}), 200
    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to toggle product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.delete("/<int:product_id>")
@require_auth
@require_owner
def delete_product_route(product_id: int):
    """409 when the product appears in orders; deactivate it instead."""
    try:
        products_service.delete_product(g.session_context, product_id)
        return jsonify({"ok": True}), 200
    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.post("/images")
@require_auth
@require_owner
def upload_image_route():
    """Multipart upload: `file` plus optional `name` (product name for the path)."""
    try:
        company_id = resolve_company(g.session_context)
        url = storage_service.save_product_image(
            company_id,
            request.form.get("name"),
            request.files.get("file"),
        )
        return jsonify({"url": url}), 201
    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to store product image")
        return jsonify({"error": "Internal server error"}), 500
