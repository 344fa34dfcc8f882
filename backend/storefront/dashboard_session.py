"""
Owner dashboard session: consumer side of the new-order notification pipeline.

One DashboardSession per open dashboard. connect() covers the reconnect gap
deterministically: it opens the company subscription, surfaces the latest
unread NEW_ORDER notification found by polling, and only then lets live
events through. The feed delivers at-least-once and possibly out of order, so
events are deduplicated by notification id and only a newer notification can
replace the visible popup. Older ones stay unread until a later trigger.

Acknowledging the popup marks the notification read; that is the only write
the dashboard performs on notifications.
"""

from __future__ import annotations

import logging
from typing import Callable

from .errors import ValidationError
from .models.notifications import TYPE_NEW_ORDER
from .notification_feed import NotificationEvent, NotificationFeed, Subscription

logger = logging.getLogger(__name__)

ACTION_OK = "OK"
ACTION_VIEW_ORDER = "VIEW_ORDER"
ORDERS_PAGE_PATH = "/dashboard/orders"


class DashboardSession:
    def __init__(
        self,
        company_id: int,
        *,
        feed: NotificationFeed,
        fetch_latest_unread: Callable[[], NotificationEvent | None],
        mark_read: Callable[[int], object],
        play_sound: Callable[[], None] | None = None,
        sound_enabled: bool = False,
    ):
        self.company_id = company_id
        self.sound_enabled = sound_enabled
        self.popup: NotificationEvent | None = None
        self.sounds_played = 0

        self._feed = feed
        self._fetch_latest_unread = fetch_latest_unread
        self._mark_read = mark_read
        self._play_sound = play_sound

        self._subscription: Subscription | None = None
        self._seen: set[int] = set()
        self._acknowledged: set[int] = set()
        self._audio_unlocked = False
        self._closed = False

    @classmethod
    def for_owner(cls, ctx, *, play_sound: Callable[[], None] | None = None) -> "DashboardSession":
        """
        Session wired to the service layer for an owner context.

        Must be used inside an application context; service calls run
        against the current app's database session.
        """
        from .notification_feed import get_feed
        from .services import notification_service, preferences_service
        from .services.tenant_service import require_owner

        company_id = require_owner(ctx)

        def fetch_latest_unread():
            notification = notification_service.latest_unread(ctx)
            return NotificationEvent.from_notification(notification) if notification else None

        return cls(
            company_id,
            feed=get_feed(),
            fetch_latest_unread=fetch_latest_unread,
            mark_read=lambda notification_id: notification_service.mark_read(ctx, notification_id),
            play_sound=play_sound,
            sound_enabled=preferences_service.is_sound_enabled(ctx.user_id),
        )

    @property
    def connected(self) -> bool:
        return self._subscription is not None and not self._subscription.closed

    @property
    def audio_unlocked(self) -> bool:
        return self._audio_unlocked

    def connect(self) -> NotificationEvent | None:
        """
        (Re)attach to the feed. Any previous subscription is detached first,
        so a session never holds more than one.
        """
        if self._closed:
            raise RuntimeError("Dashboard session is closed")

        self._detach()
        # Subscribe before polling so inserts made in between are queued
        self._subscription = self._feed.subscribe(self.company_id)

        latest = self._fetch_latest_unread()
        if latest is not None:
            self._consider(latest, from_poll=True)
        return self.popup

    def pump(self, timeout: float = 0) -> list[NotificationEvent]:
        """
        Process queued live events; waits up to `timeout` seconds for the first
        one. Returns the events that were surfaced as the popup.
        """
        if not self.connected:
            return []

        surfaced = []
        event = self._subscription.get(timeout=timeout)
        while event is not None:
            if self.handle_event(event):
                surfaced.append(event)
            event = self._subscription.get(timeout=0)
        return surfaced

    def handle_event(self, event: NotificationEvent) -> bool:
        """Apply one live event; True when it became the visible popup."""
        return self._consider(event, from_poll=False)

    def _consider(self, event: NotificationEvent, *, from_poll: bool) -> bool:
        if event.company_id != self.company_id:
            return False
        if event.type != TYPE_NEW_ORDER or event.is_read:
            return False
        if event.notification_id in self._acknowledged:
            return False
        if self.popup is not None and self.popup.notification_id == event.notification_id:
            return False
        # Polled rows may resurface an older unread notification; live duplicates never do
        if not from_poll and event.notification_id in self._seen:
            return False

        self._seen.add(event.notification_id)
        if self.popup is not None and event.sort_key <= self.popup.sort_key:
            return False

        self.popup = event
        self._alert()
        return True

    def _alert(self) -> None:
        if not self.sound_enabled or self._play_sound is None:
            return
        if not self._audio_unlocked:
            logger.debug("Audio locked; skipping sound for company %s", self.company_id)
            return
        try:
            self._play_sound()
        except Exception:
            logger.warning("Notification sound failed to play", exc_info=True)
            return
        self.sounds_played += 1

    def unlock_audio(self) -> None:
        """Record the first user gesture that allows audio playback."""
        self._audio_unlocked = True

    def set_sound_enabled(self, enabled: bool) -> None:
        self.sound_enabled = bool(enabled)

    def acknowledge(self, action: str = ACTION_OK) -> str | None:
        """
        Dismiss the popup and mark its notification read.

        Returns the page to navigate to for VIEW_ORDER. If marking read fails
        the popup stays visible and the error propagates.
        """
        if action not in (ACTION_OK, ACTION_VIEW_ORDER):
            raise ValidationError("action must be OK or VIEW_ORDER", details={"action": action})
        if self.popup is None:
            return None

        current = self.popup
        self._mark_read(current.notification_id)
        self._acknowledged.add(current.notification_id)
        self.popup = None

        if action == ACTION_VIEW_ORDER:
            return ORDERS_PAGE_PATH
        return None

    def _detach(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    def close(self) -> None:
        """End of the dashboard session: drop the subscription and audio state."""
        self._detach()
        self._audio_unlocked = False
        self.popup = None
        self._closed = True
