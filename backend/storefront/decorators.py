# Overview: Request authentication decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .models.auth import ROLE_OWNER, ROLE_CUSTOMER
from .services import session_service
from .services.security_service import log_security_event

SESSION_COOKIE_NAME = "session_token"


def extract_token() -> str | None:
    """Bearer token from the Authorization header, else the session cookie."""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return request.cookies.get(SESSION_COOKIE_NAME) or None


def current_session_context():
    """Validate the request token and expose the result as g.session_context."""
    token = extract_token()
    g.session_context = session_service.validate_session(token) if token else None
    return g.session_context


def require_auth(f):
    """
    Require a valid session and expose it as g.session_context.

    SECURITY: Returns 401 if:
    - No Authorization header / session cookie
    - Invalid, expired, idle or revoked token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not extract_token():
            return jsonify({"error": "Authentication required"}), 401

        context = current_session_context()
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        return f(*args, **kwargs)

    return decorated_function


def optional_auth(f):
    """Resolve the session when a token is present; anonymous calls pass through."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        current_session_context()
        return f(*args, **kwargs)

    return decorated_function


def require_role(role: str):
    """
    Require a specific role (OWNER or CUSTOMER). Use after @require_auth.

    Tenant ownership of individual records is still checked in the services.
    """
    if role not in (ROLE_OWNER, ROLE_CUSTOMER):
        raise ValueError(f"Unknown role: {role}")

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            context = g.get("session_context")
            if context is None:
                # @require_auth must run first
                return jsonify({"error": "Authentication required"}), 401

            if context.role != role:
                log_security_event(
                    user_id=context.user_id,
                    event_type="ROLE_REQUIRED",
                    success=False,
                    reason=f"{role} role required, caller is {context.role}",
                    company_id=context.company_id,
                )
                return jsonify({"error": "Permission denied", "required_role": role}), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


require_owner = require_role(ROLE_OWNER)
require_customer = require_role(ROLE_CUSTOMER)
