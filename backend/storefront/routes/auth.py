# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

Owners register to set up their storefront; customers register from a public
catalog. Login returns a bearer token and also sets it as an HttpOnly
`session_token` cookie so the dashboard page guard can see it.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import SESSION_COOKIE_NAME, extract_token, require_auth
from ..errors import StorefrontError, error_response
from ..services import auth_service
from ..services import session_service
from ..services.security_service import log_security_event
from ..services.session_service import SESSION_ABSOLUTE_TIMEOUT


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_response(user, status_code: int):
    session, token = session_service.create_session(
        user_id=user.id,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    context = session_service.context_for_user(user, session)
    response = jsonify({
        "user": user.to_dict(),
        "token": token,
        "session": session.to_dict(),
        "context": context.to_dict(),
    })
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        max_age=int(SESSION_ABSOLUTE_TIMEOUT.total_seconds()),
        httponly=True,
        samesite="Lax",
    )
    return response, status_code


@auth_bp.post("/register")
def register_route():
    """
    Create an account and log it in.

    Body: email, password, role (OWNER|CUSTOMER, default CUSTOMER),
    optional name and phone for customers.
    """
    try:
        data = request.get_json(silent=True) or {}
        user = auth_service.register_user(
            email=data.get("email"),
            password=data.get("password") or "",
            role=data.get("role") or "CUSTOMER",
            name=data.get("name"),
            phone=data.get("phone"),
        )
        return _session_response(user, 201)

    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user = auth_service.authenticate(email, password)
        if not user:
            log_security_event(
                user_id=None,
                event_type="LOGIN_FAILED",
                success=False,
                reason=f"Invalid credentials for {str(email).strip().lower()}",
            )
            return jsonify({"error": "Invalid credentials"}), 401

        return _session_response(user, 200)

    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    try:
        session_service.revoke_session(extract_token(), reason="User logout")
        log_security_event(
            user_id=g.session_context.user_id,
            event_type="LOGOUT",
            success=True,
            company_id=g.session_context.company_id,
        )
        response = jsonify({"message": "Logged out"})
        response.delete_cookie(SESSION_COOKIE_NAME)
        return response, 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    ctx = g.session_context
    user = ctx.user
    return jsonify({"user": user.to_dict(), "context": ctx.to_dict()}), 200
