# Overview: Page entry points behind the routing guard (the UI itself is served elsewhere).

from flask import Blueprint, jsonify, request

from ..decorators import current_session_context


pages_bp = Blueprint("pages", __name__)


@pages_bp.get("/login")
def login_page():
    return jsonify({"page": "login", "next": request.args.get("next", "/dashboard")}), 200


@pages_bp.get("/dashboard")
@pages_bp.get("/dashboard/<path:subpath>")
def dashboard_page(subpath: str = ""):
    ctx = current_session_context()
    return jsonify({
        "page": "dashboard",
        "section": subpath or None,
        "context": ctx.to_dict() if ctx else None,
    }), 200
