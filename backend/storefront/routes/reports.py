from flask import Blueprint, jsonify, request, g

from storefront.decorators import require_auth, require_owner
from storefront.errors import StorefrontError, error_response
from storefront.services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/dashboard")
@require_auth
@require_owner
def dashboard_report():
    window = request.args.get("window", reporting_service.WINDOW_ALL)

    try:
        report = reporting_service.dashboard_metrics(g.session_context, window)
        return jsonify(report), 200
    except StorefrontError as exc:
        return error_response(exc)
