"""
In-process change feed for notification inserts.

Push-only, filtered by company. Delivery is at-least-once and may be out of
order across publishers; consumers deduplicate by notification id. Each
subscriber owns a bounded queue; when it overflows the oldest event is dropped
and the subscriber is expected to recover through the unread poll it runs on
every (re)connect.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass, asdict
from datetime import datetime

from flask import current_app

from .time_utils import parse_iso_datetime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationEvent:
    notification_id: int
    company_id: int
    order_id: int
    type: str
    is_read: bool
    created_at: str

    @classmethod
    def from_notification(cls, notification) -> "NotificationEvent":
        data = notification.to_dict()
        return cls(
            notification_id=data["id"],
            company_id=data["company_id"],
            order_id=data["order_id"],
            type=data["type"],
            is_read=data["is_read"],
            created_at=data["created_at"],
        )

    @property
    def sort_key(self) -> tuple[datetime, int]:
        created = parse_iso_datetime(self.created_at) if self.created_at else None
        return (created or datetime.min, self.notification_id)

    def to_dict(self) -> dict:
        return asdict(self)


class Subscription:
    """A single consumer's view of the feed for one company."""

    def __init__(self, feed: "NotificationFeed", company_id: int, maxsize: int):
        self.company_id = company_id
        self._feed = feed
        self._queue: queue.Queue[NotificationEvent] = queue.Queue(maxsize=maxsize)
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def _deliver(self, event: NotificationEvent) -> None:
        if self.closed:
            return
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            try:
                dropped = self._queue.get_nowait()
                logger.warning(
                    "Notification feed queue full for company %s; dropped event %s",
                    self.company_id, dropped.notification_id,
                )
            except queue.Empty:
                pass
            self._queue.put_nowait(event)

    def get(self, timeout: float | None = None) -> NotificationEvent | None:
        """Next event, or None on timeout or once the subscription is closed."""
        if self.closed:
            return None
        try:
            if timeout is not None and timeout <= 0:
                return self._queue.get_nowait()
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> list[NotificationEvent]:
        events = []
        while True:
            event = self.get(timeout=0)
            if event is None:
                return events
            events.append(event)

    def close(self) -> None:
        if self.closed:
            return
        self._closed.set()
        self._feed.unsubscribe(self)


class NotificationFeed:
    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._lock = threading.Lock()
        self._subscribers: dict[int, set[Subscription]] = {}

    def init_app(self, app) -> None:
        self.queue_size = app.config.get("NOTIFICATION_FEED_QUEUE_SIZE", self.queue_size)
        app.extensions["notification_feed"] = self

    def subscribe(self, company_id: int) -> Subscription:
        subscription = Subscription(self, company_id, self.queue_size)
        with self._lock:
            self._subscribers.setdefault(company_id, set()).add(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subs = self._subscribers.get(subscription.company_id)
            if subs is None:
                return
            subs.discard(subscription)
            if not subs:
                del self._subscribers[subscription.company_id]
        if not subscription.closed:
            subscription.close()

    def publish(self, event: NotificationEvent) -> int:
        """Deliver to every subscriber of the event's company; returns the fan-out count."""
        with self._lock:
            targets = list(self._subscribers.get(event.company_id, ()))
        for subscription in targets:
            subscription._deliver(event)
        return len(targets)

    def subscriber_count(self, company_id: int | None = None) -> int:
        with self._lock:
            if company_id is not None:
                return len(self._subscribers.get(company_id, ()))
            return sum(len(s) for s in self._subscribers.values())


def get_feed() -> NotificationFeed:
    return current_app.extensions["notification_feed"]
