"""
Error taxonomy shared by services and routes.

Services raise these; routes translate them with error_response(). Validation,
authorization, not-found and conflict errors carry actionable messages for the
user. Concurrency and upstream errors are answered with a generic "try again"
message while the underlying cause is logged.
"""

from __future__ import annotations

from flask import current_app, jsonify


class StorefrontError(Exception):
    """Base class for expected, user-facing failures."""

    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(StorefrontError):
    """Malformed or empty input (empty cart, invalid slug, bad price)."""

    status_code = 400


class AuthorizationError(StorefrontError):
    """Caller does not own the resource."""

    status_code = 403


class NotFoundError(StorefrontError):
    """Referenced company/order/product absent or not visible to the caller."""

    status_code = 404


class ConflictError(StorefrontError):
    """Business rule conflict (duplicate slug, category still in use)."""

    status_code = 409


class InvalidTransitionError(StorefrontError):
    """Order status transition not permitted from the current state."""

    status_code = 409


class StockError(StorefrontError):
    """Insufficient inventory at order-creation time."""

    status_code = 409


class ConcurrencyError(StorefrontError):
    """A conditioned update found the row already changed."""

    status_code = 409


class UpstreamUnavailableError(StorefrontError):
    """Backing service (database, storage) unreachable."""

    status_code = 503


RETRYABLE_ERRORS = (ConcurrencyError, UpstreamUnavailableError)

TRY_AGAIN_MESSAGE = "Could not complete the operation right now. Please try again."


def error_response(exc: StorefrontError):
    """Translate a StorefrontError into a JSON response tuple."""
    if isinstance(exc, RETRYABLE_ERRORS):
        current_app.logger.warning("%s: %s %s", type(exc).__name__, exc.message, exc.details)
        return jsonify({
            "error": TRY_AGAIN_MESSAGE,
            "code": type(exc).__name__,
        }), exc.status_code

    return jsonify({
        "error": exc.message,
        "code": type(exc).__name__,
        "details": exc.details,
    }), exc.status_code
