# Overview: Owner notification routes: unread poll, mark read, and the live SSE stream.

import json

from flask import Blueprint, Response, jsonify, g, current_app, stream_with_context

from ..decorators import require_auth, require_owner
from ..errors import StorefrontError, error_response
from ..extensions import db
from ..models.notifications import TYPE_NEW_ORDER
from ..notification_feed import NotificationEvent, get_feed
from ..services import notification_service
from ..services.tenant_service import require_owner as resolve_company


notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


def _sse(event: NotificationEvent) -> str:
    return f"id: {event.notification_id}\nevent: new_order\ndata: {json.dumps(event.to_dict())}\n\n"


@notifications_bp.get("/unread")
@require_auth
@require_owner
def latest_unread_route():
    """Most recent unread NEW_ORDER notification, or null."""
    try:
        notification = notification_service.latest_unread(g.session_context)
        return jsonify({"notification": notification.to_dict() if notification else None}), 200
    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load unread notification")
        return jsonify({"error": "Internal server error"}), 500


@notifications_bp.post("/<int:notification_id>/read")
@require_auth
@require_owner
def mark_read_route(notification_id: int):
    try:
        notification = notification_service.mark_read(g.session_context, notification_id)
        return jsonify({"notification": notification.to_dict()}), 200
    except StorefrontError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to mark notification read")
        return jsonify({"error": "Internal server error"}), 500


@notifications_bp.get("/stream")
@require_auth
@require_owner
def stream_route():
    """
    Server-sent events for new orders of the caller's company.

    The latest unread notification is sent first, then live inserts. A
    comment line is sent every NOTIFICATION_STREAM_HEARTBEAT_SECONDS while
    idle. Delivery is at-least-once; clients dedupe by event id.
    """
    try:
        ctx = g.session_context
        company_id = resolve_company(ctx)
    except StorefrontError as e:
        return error_response(e)

    heartbeat = current_app.config.get("NOTIFICATION_STREAM_HEARTBEAT_SECONDS", 15)
    subscription = get_feed().subscribe(company_id)

    def generate():
        try:
            latest = notification_service.latest_unread(ctx)
            if latest is not None:
                yield _sse(NotificationEvent.from_notification(latest))
            # Release the connection; the stream may stay open for hours
            db.session.close()

            while not subscription.closed:
                event = subscription.get(timeout=heartbeat)
                if event is None:
                    yield ": heartbeat\n\n"
                    continue
                if event.type != TYPE_NEW_ORDER or event.is_read:
                    continue
                yield _sse(event)
        finally:
            subscription.close()
            current_app.logger.info("Notification stream closed for company %s", company_id)

    return Response(
        stream_with_context(generate()),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
