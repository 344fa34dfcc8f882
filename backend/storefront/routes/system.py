# backend/storefront/routes/system.py
"""
System health and static asset endpoints.
"""

import os
import time
from flask import Blueprint, current_app, send_from_directory, abort
from ..extensions import db
from ..models import Company, Order
from ..notification_feed import get_feed
from storefront.time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity with a couple of cheap counts.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        company_count = db.session.query(Company).count()
        order_count = db.session.query(Order).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "companies": company_count,
                "orders": order_count,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: database reachable
    - 503: database unhealthy
    """
    start_time = time.time()
    database_health = check_database_health()

    if database_health["status"] == "unhealthy":
        overall_status, http_status = "unhealthy", 503
    else:
        overall_status, http_status = "healthy", 200

    response = {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": {
            "database": database_health,
            "notification_feed": {
                "status": "healthy",
                "subscribers": get_feed().subscriber_count(),
            },
        }
    }

    return response, http_status


@system_bp.get("/assets/<path:filename>")
def asset(filename: str):
    """Serve uploaded product images from UPLOAD_FOLDER."""
    folder = current_app.config.get("UPLOAD_FOLDER")
    if not folder or not os.path.isdir(folder):
        abort(404)
    return send_from_directory(folder, filename)
