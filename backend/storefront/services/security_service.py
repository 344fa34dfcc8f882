# Overview: Append-only security audit log with tenant context.

from flask import has_request_context, request

from ..extensions import db
from ..models import SecurityEvent
from storefront.time_utils import utcnow


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    company_id: int | None = None,
    commit: bool = True,
) -> SecurityEvent:
    """
    Log security event to audit trail with tenant context.

    Client context (path, method, ip, user agent) is filled from the current
    request when one is active.

    event_type examples:
    - LOGIN_FAILED
    - LOGOUT
    - OWNER_REQUIRED
    - CROSS_TENANT_ACCESS_DENIED
    - PROFILE_UPDATE_DENIED
    """
    ip_address = None
    user_agent = None
    if has_request_context():
        resource = resource or request.path
        action = action or request.method
        ip_address = request.remote_addr
        user_agent = request.headers.get("User-Agent")

    event = SecurityEvent(
        user_id=user_id,
        company_id=company_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow(),
    )

    db.session.add(event)
    if commit:
        db.session.commit()
    return event
