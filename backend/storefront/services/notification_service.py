"""
New-order notifications: write side and owner queries.

A notification row is written in the same transaction that moves an order to
SUBMITTED. Only after that transaction commits is the row published to the
in-process change feed, so subscribers never see a notification that was
rolled back. Marking read is the only mutation owners perform.
"""

from __future__ import annotations

from sqlalchemy import update

from ..errors import NotFoundError
from ..extensions import db
from ..models import Notification, Order
from ..models.notifications import TYPE_NEW_ORDER
from ..notification_feed import NotificationEvent, get_feed
from .concurrency import conditioned_update, run_atomic
from .session_service import SessionContext
from .tenant_service import require_owner
from storefront.time_utils import utcnow


def create_new_order_notification(order: Order) -> Notification:
    """Stage the NEW_ORDER notification for `order` (caller commits)."""
    notification = Notification(
        company_id=order.company_id,
        order_id=order.id,
        type=TYPE_NEW_ORDER,
        is_read=False,
        created_at=utcnow(),
    )
    db.session.add(notification)
    return notification


def publish(notification: Notification) -> int:
    """Push a committed notification to live subscribers."""
    return get_feed().publish(NotificationEvent.from_notification(notification))


def _unread_query(company_id: int):
    return (
        db.session.query(Notification)
        .filter(
            Notification.company_id == company_id,
            Notification.type == TYPE_NEW_ORDER,
            Notification.is_read.is_(False),
        )
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )


def latest_unread(ctx: SessionContext) -> Notification | None:
    """Most recent unread NEW_ORDER notification for the caller's company."""
    company_id = require_owner(ctx)
    return _unread_query(company_id).first()


def list_unread(ctx: SessionContext, limit: int = 50) -> list[Notification]:
    company_id = require_owner(ctx)
    return _unread_query(company_id).limit(limit).all()


def mark_read(ctx: SessionContext, notification_id: int) -> Notification:
    """
    Mark a notification read. Idempotent: an already-read notification is
    returned unchanged.
    """
    company_id = require_owner(ctx)

    def _op():
        notification = db.session.get(Notification, notification_id)
        if not notification or notification.company_id != company_id:
            raise NotFoundError("Notification not found")

        conditioned_update(
            update(Notification)
            .where(Notification.id == notification_id, Notification.is_read.is_(False))
            .values(is_read=True, read_at=utcnow())
        )
        db.session.commit()
        db.session.refresh(notification)
        return notification

    return run_atomic(_op)
