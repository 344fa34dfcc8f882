# Overview: Flask API routes for the owner's company profile.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_owner
from ..errors import StorefrontError, error_response
from ..services import company_service


company_bp = Blueprint("company", __name__, url_prefix="/api/company")


@company_bp.get("")
@require_auth
@require_owner
def get_company_route():
    try:
        company = company_service.get_my_company(g.session_context)
        return jsonify({"company": company.to_dict()}), 200
    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load company")
        return jsonify({"error": "Internal server error"}), 500


@company_bp.put("")
@require_auth
@require_owner
def save_company_route():
    """
    Create or update the owner's company.

    Body: name (min 2 chars), slug (optional, derived from name), whatsapp
    (digits with area code). 409 when the slug belongs to another company.
    """
    try:
        data = request.get_json(silent=True) or {}
        company, created = company_service.save_company(
            g.session_context,
            name=data.get("name"),
            slug=data.get("slug"),
            whatsapp=data.get("whatsapp"),
        )
        return jsonify({"company": company.to_dict(), "created": created}), 201 if created else 200

    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to save company")
        return jsonify({"error": "Internal server error"}), 500
