# Overview: Pytest coverage for the notification feed and owner notification queries.

"""
Notification Pipeline Tests (write side)

- The in-process feed delivers only to subscribers of the event's company
- A full subscriber queue drops its oldest event instead of blocking
- Submitting an order publishes its NEW_ORDER notification after commit
- Unread polling returns the newest unread notification of the caller only
- Marking read is idempotent and tenant-scoped
"""

import pytest

from storefront.errors import AuthorizationError, NotFoundError, StockError
from storefront.extensions import notification_feed
from storefront.models import Notification
from storefront.notification_feed import NotificationEvent, NotificationFeed
from storefront.services import notification_service

from conftest import create_order


def make_event(notification_id, company_id=1, created_at=None, **kwargs):
    return NotificationEvent(
        notification_id=notification_id,
        company_id=company_id,
        order_id=kwargs.get("order_id", notification_id),
        type=kwargs.get("type", "NEW_ORDER"),
        is_read=kwargs.get("is_read", False),
        created_at=created_at or f"2026-10-18T12:00:{notification_id:02d}Z",
    )


class TestNotificationFeed:
    """Push-only, company-filtered fan-out."""

    def test_publish_reaches_company_subscribers_only(self):
        feed = NotificationFeed()
        sub_a = feed.subscribe(1)
        sub_b = feed.subscribe(2)

        delivered = feed.publish(make_event(1, company_id=1))

        assert delivered == 1
        assert sub_a.get(timeout=0).notification_id == 1
        assert sub_b.get(timeout=0) is None

    def test_overflow_drops_oldest(self):
        feed = NotificationFeed(queue_size=2)
        sub = feed.subscribe(1)

        for notification_id in (1, 2, 3):
            feed.publish(make_event(notification_id))

        assert [e.notification_id for e in sub.drain()] == [2, 3]

    def test_close_unsubscribes(self):
        feed = NotificationFeed()
        sub = feed.subscribe(1)
        assert feed.subscriber_count(1) == 1

        sub.close()

        assert feed.subscriber_count(1) == 0
        assert feed.publish(make_event(1)) == 0
        assert sub.get(timeout=0) is None

    def test_subscriber_count_totals(self):
        feed = NotificationFeed()
        feed.subscribe(1)
        feed.subscribe(1)
        feed.subscribe(2)
        assert feed.subscriber_count() == 3
        assert feed.subscriber_count(1) == 2

    def test_sort_key_orders_by_time_then_id(self):
        older = make_event(5, created_at="2026-10-18T10:00:00Z")
        newer = make_event(4, created_at="2026-10-18T11:00:00Z")
        same_time_higher_id = make_event(6, created_at="2026-10-18T11:00:00Z")
        assert older.sort_key < newer.sort_key < same_time_higher_id.sort_key


class TestNotificationService:
    """Write-then-publish and owner queries."""

    def test_submission_published_after_commit(self, db_session, company_a, company_b, product_a):
        sub_a = notification_feed.subscribe(company_a.id)
        sub_b = notification_feed.subscribe(company_b.id)
        try:
            order = create_order(company_a, [{"product_id": product_a.id, "quantity": 1}])

            event = sub_a.get(timeout=0)
            assert event is not None
            assert event.order_id == order.id
            assert event.type == "NEW_ORDER"
            assert db_session.get(Notification, event.notification_id) is not None
            assert sub_b.get(timeout=0) is None
        finally:
            sub_a.close()
            sub_b.close()

    def test_draft_publishes_nothing(self, db_session, company_a, customer, product_a):
        sub = notification_feed.subscribe(company_a.id)
        try:
            create_order(company_a, [{"product_id": product_a.id, "quantity": 1}], customer, submit=False)
            assert sub.get(timeout=0) is None
        finally:
            sub.close()

    def test_rejected_order_publishes_nothing(self, db_session, company_a, product_a):
        sub = notification_feed.subscribe(company_a.id)
        try:
            with pytest.raises(StockError):
                create_order(company_a, [{"product_id": product_a.id, "quantity": 99}])
            assert sub.get(timeout=0) is None
        finally:
            sub.close()

    def test_latest_unread_is_newest(self, db_session, owner_ctx, company_a, unlimited_product):
        items = [{"product_id": unlimited_product.id, "quantity": 1}]
        create_order(company_a, items)
        newest = create_order(company_a, items)

        latest = notification_service.latest_unread(owner_ctx)
        assert latest.order_id == newest.id

    def test_latest_unread_none_when_all_read(self, db_session, owner_ctx, submitted_order):
        notification = notification_service.latest_unread(owner_ctx)
        notification_service.mark_read(owner_ctx, notification.id)

        assert notification_service.latest_unread(owner_ctx) is None
        assert notification_service.list_unread(owner_ctx) == []

    def test_latest_unread_scoped_to_company(self, db_session, owner_b_ctx, submitted_order):
        assert notification_service.latest_unread(owner_b_ctx) is None

    def test_mark_read_idempotent(self, db_session, owner_ctx, submitted_order):
        notification = notification_service.latest_unread(owner_ctx)

        first = notification_service.mark_read(owner_ctx, notification.id)
        read_at = first.read_at
        second = notification_service.mark_read(owner_ctx, notification.id)

        assert second.is_read is True
        assert second.read_at == read_at

    def test_mark_read_other_company(self, db_session, owner_ctx, owner_b_ctx, submitted_order):
        notification = notification_service.latest_unread(owner_ctx)

        with pytest.raises(NotFoundError):
            notification_service.mark_read(owner_b_ctx, notification.id)

        db_session.refresh(notification)
        assert notification.is_read is False

    def test_customer_cannot_poll(self, db_session, customer_ctx, submitted_order):
        with pytest.raises(AuthorizationError):
            notification_service.latest_unread(customer_ctx)
