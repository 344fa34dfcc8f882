"""
Page routing guard.

- /dashboard and anything below it needs a session; anonymous visitors are
  sent to /login?next=<original path> so they land back after logging in.
- /login with a valid session goes straight to /dashboard.
API routes are not affected; they answer 401 on their own.
"""

from urllib.parse import urlencode

from flask import Flask, redirect, request

from .decorators import current_session_context

LOGIN_PATH = "/login"
DASHBOARD_PATH = "/dashboard"


def _under(path: str, root: str) -> bool:
    return path == root or path.startswith(root + "/")


def login_redirect_target(path: str) -> str:
    return f"{LOGIN_PATH}?{urlencode({'next': path})}"


def register_route_guard(app: Flask) -> None:
    @app.before_request
    def guard_pages():
        path = request.path
        is_dashboard = _under(path, DASHBOARD_PATH)
        is_login = _under(path, LOGIN_PATH)
        if not (is_dashboard or is_login):
            return None

        authenticated = current_session_context() is not None

        if is_dashboard and not authenticated:
            app.logger.debug("Redirecting anonymous request for %s to login", path)
            return redirect(login_redirect_target(path))

        if is_login and authenticated:
            return redirect(DASHBOARD_PATH)

        return None
