# Overview: Pytest coverage for the owner dashboard notification session.

"""
Dashboard Session Tests (consumer side)

- connect() polls the latest unread notification before live events
- Live events are deduplicated by notification id; at most one popup shows
- Only a newer notification replaces the visible popup
- Sound plays only when enabled and unlocked; play failures are swallowed
- Acknowledging marks the notification read; a failed mark keeps the popup
"""

import pytest

from storefront.dashboard_session import (
    ACTION_OK,
    ACTION_VIEW_ORDER,
    ORDERS_PAGE_PATH,
    DashboardSession,
)
from storefront.errors import ValidationError
from storefront.extensions import db
from storefront.models import Notification
from storefront.notification_feed import NotificationFeed
from storefront.services import preferences_service

from conftest import create_order
from test_notifications import make_event


class FakeBackend:
    """Stands in for the unread poll and mark-read calls."""

    def __init__(self, unread=None, fail_mark=False):
        self.unread = unread
        self.fail_mark = fail_mark
        self.marked = []
        self.sounds = 0

    def fetch_latest_unread(self):
        return self.unread

    def mark_read(self, notification_id):
        if self.fail_mark:
            raise RuntimeError("network down")
        self.marked.append(notification_id)

    def play_sound(self):
        self.sounds += 1


def make_session(backend, feed=None, company_id=1, sound_enabled=False):
    return DashboardSession(
        company_id,
        feed=feed or NotificationFeed(),
        fetch_latest_unread=backend.fetch_latest_unread,
        mark_read=backend.mark_read,
        play_sound=backend.play_sound,
        sound_enabled=sound_enabled,
    )


class TestConnect:
    """Subscribe, then surface the polled backlog."""

    def test_connect_surfaces_unread_backlog(self):
        backend = FakeBackend(unread=make_event(7))
        session = make_session(backend)

        popup = session.connect()

        assert popup.notification_id == 7
        assert session.connected

    def test_connect_without_backlog(self):
        session = make_session(FakeBackend())
        assert session.connect() is None

    def test_reconnect_keeps_single_subscription(self):
        feed = NotificationFeed()
        session = make_session(FakeBackend(), feed=feed)

        session.connect()
        session.connect()

        assert feed.subscriber_count(1) == 1

    def test_events_during_poll_are_not_lost(self):
        feed = NotificationFeed()

        def poll_while_inserting():
            # An insert lands between subscribe and the unread poll
            feed.publish(make_event(3))
            return None

        session = DashboardSession(
            1,
            feed=feed,
            fetch_latest_unread=poll_while_inserting,
            mark_read=lambda notification_id: None,
        )
        session.connect()
        session.pump()

        assert session.popup.notification_id == 3

    def test_closed_session_cannot_reconnect(self):
        feed = NotificationFeed()
        session = make_session(FakeBackend(), feed=feed)
        session.connect()
        session.close()

        assert feed.subscriber_count(1) == 0
        with pytest.raises(RuntimeError):
            session.connect()


class TestLiveEvents:
    """Dedupe, company filter and newest-wins popup."""

    def test_live_event_becomes_popup(self):
        feed = NotificationFeed()
        session = make_session(FakeBackend(), feed=feed)
        session.connect()

        feed.publish(make_event(1))
        surfaced = session.pump()

        assert [e.notification_id for e in surfaced] == [1]
        assert session.popup.notification_id == 1

    def test_duplicate_delivery_ignored(self):
        session = make_session(FakeBackend())
        session.connect()

        assert session.handle_event(make_event(1)) is True
        assert session.handle_event(make_event(1)) is False

    def test_other_company_ignored(self):
        session = make_session(FakeBackend(), company_id=1)
        session.connect()

        assert session.handle_event(make_event(1, company_id=2)) is False
        assert session.popup is None

    def test_read_or_other_type_ignored(self):
        session = make_session(FakeBackend())
        session.connect()

        assert session.handle_event(make_event(1, is_read=True)) is False
        assert session.handle_event(make_event(2, type="SOMETHING_ELSE")) is False
        assert session.popup is None

    def test_newer_event_replaces_popup(self):
        session = make_session(FakeBackend())
        session.connect()
        session.handle_event(make_event(1))

        assert session.handle_event(make_event(2)) is True
        assert session.popup.notification_id == 2

    def test_older_event_does_not_replace_popup(self):
        session = make_session(FakeBackend())
        session.connect()
        session.handle_event(make_event(5))

        assert session.handle_event(make_event(4)) is False
        assert session.popup.notification_id == 5

    def test_acknowledged_notification_never_resurfaces(self):
        backend = FakeBackend(unread=make_event(1))
        session = make_session(backend)
        session.connect()
        session.acknowledge()

        # Stale poll result after reconnect
        session.connect()
        assert session.popup is None
        assert session.handle_event(make_event(1)) is False

    def test_pump_without_connection(self):
        session = make_session(FakeBackend())
        assert session.pump() == []


class TestSound:
    """Sound gated by preference and the first user gesture."""

    def test_disabled_preference_silent(self):
        backend = FakeBackend()
        session = make_session(backend, sound_enabled=False)
        session.unlock_audio()
        session.connect()
        session.handle_event(make_event(1))

        assert backend.sounds == 0

    def test_locked_audio_silent(self):
        backend = FakeBackend()
        session = make_session(backend, sound_enabled=True)
        session.connect()
        session.handle_event(make_event(1))

        assert backend.sounds == 0
        assert session.popup.notification_id == 1

    def test_enabled_and_unlocked_plays_once_per_popup(self):
        backend = FakeBackend()
        session = make_session(backend, sound_enabled=True)
        session.unlock_audio()
        session.connect()

        session.handle_event(make_event(1))
        session.handle_event(make_event(1))
        session.handle_event(make_event(2))

        assert backend.sounds == 2
        assert session.sounds_played == 2

    def test_play_failure_keeps_popup(self):
        def broken():
            raise OSError("no audio device")

        session = DashboardSession(
            1,
            feed=NotificationFeed(),
            fetch_latest_unread=lambda: None,
            mark_read=lambda notification_id: None,
            play_sound=broken,
            sound_enabled=True,
        )
        session.unlock_audio()
        session.connect()

        assert session.handle_event(make_event(1)) is True
        assert session.sounds_played == 0

    def test_toggle_sound(self):
        backend = FakeBackend()
        session = make_session(backend)
        session.unlock_audio()
        session.connect()

        session.set_sound_enabled(True)
        session.handle_event(make_event(1))
        assert backend.sounds == 1

    def test_close_relocks_audio(self):
        session = make_session(FakeBackend())
        session.unlock_audio()
        session.close()
        assert session.audio_unlocked is False


class TestAcknowledge:
    """OK / VIEW_ORDER both mark read."""

    def test_ok_marks_read(self):
        backend = FakeBackend(unread=make_event(3))
        session = make_session(backend)
        session.connect()

        assert session.acknowledge(ACTION_OK) is None
        assert backend.marked == [3]
        assert session.popup is None

    def test_view_order_navigates(self):
        backend = FakeBackend(unread=make_event(3))
        session = make_session(backend)
        session.connect()

        assert session.acknowledge(ACTION_VIEW_ORDER) == ORDERS_PAGE_PATH
        assert backend.marked == [3]

    def test_failed_mark_keeps_popup(self):
        backend = FakeBackend(unread=make_event(3), fail_mark=True)
        session = make_session(backend)
        session.connect()

        with pytest.raises(RuntimeError):
            session.acknowledge()
        assert session.popup.notification_id == 3

    def test_invalid_action(self):
        session = make_session(FakeBackend(unread=make_event(3)))
        session.connect()
        with pytest.raises(ValidationError):
            session.acknowledge("DISMISS")

    def test_nothing_to_acknowledge(self):
        backend = FakeBackend()
        session = make_session(backend)
        session.connect()
        assert session.acknowledge() is None
        assert backend.marked == []


class TestOwnerSession:
    """DashboardSession wired to the real services."""

    def test_backlog_then_live_then_acknowledge(self, db_session, owner_ctx, company_a, unlimited_product):
        items = [{"product_id": unlimited_product.id, "quantity": 1}]
        backlog = create_order(company_a, items)

        played = []
        preferences_service.set_notification_sound(owner_ctx, True)
        session = DashboardSession.for_owner(owner_ctx, play_sound=lambda: played.append(1))
        session.unlock_audio()
        try:
            popup = session.connect()
            assert popup.order_id == backlog.id

            live = create_order(company_a, items)
            surfaced = session.pump()
            assert [e.order_id for e in surfaced] == [live.id]
            assert len(played) == 2

            assert session.acknowledge(ACTION_VIEW_ORDER) == ORDERS_PAGE_PATH

            db.session.expire_all()
            read = db_session.query(Notification).filter_by(order_id=live.id).one()
            assert read.is_read is True
            unread = db_session.query(Notification).filter_by(order_id=backlog.id).one()
            assert unread.is_read is False
        finally:
            session.close()

    def test_sound_preference_loaded(self, db_session, owner_ctx):
        assert DashboardSession.for_owner(owner_ctx).sound_enabled is False
        preferences_service.set_notification_sound(owner_ctx, True)
        assert DashboardSession.for_owner(owner_ctx).sound_enabled is True
