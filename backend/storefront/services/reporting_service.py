# Overview: Service-layer operations for reporting; read-only dashboard aggregates.

from __future__ import annotations

import math
from datetime import date, datetime, timedelta

from sqlalchemy import func

from ..errors import ValidationError
from ..extensions import db
from ..models import Category, CustomerProfile, Order, Product
from ..models.orders import (
    OPEN_STATUSES,
    STATUS_APPROVED,
    STATUS_CANCELLED,
)
from .session_service import SessionContext
from .tenant_service import require_owner
from storefront.time_utils import day_start, days_range, to_utc_z, trailing_days, utcnow


WINDOW_TODAY = "today"
WINDOW_WEEK = "week"
WINDOW_MONTH = "month"
WINDOW_ALL = "all"

# Trailing days covered by each window, today included
WINDOW_DAYS = {
    WINDOW_TODAY: 1,
    WINDOW_WEEK: 7,
    WINDOW_MONTH: 30,
    WINDOW_ALL: None,
}

# The per-day series stays bounded when the window is unbounded
ALL_TIME_SERIES_DAYS = 14

RECENT_ORDERS_LIMIT = 5


def _coerce_cents(value) -> int:
    """Missing, non-numeric or non-finite totals count as zero."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return int(number)


def window_range(window: str, now: datetime | None = None) -> tuple[datetime | None, datetime]:
    """
    Half-open [start, end) range for a window; start is None for "all".

    Days are UTC calendar days; end is the start of tomorrow.
    """
    if window not in WINDOW_DAYS:
        raise ValidationError(
            "window must be one of: today, week, month, all",
            details={"window": window},
        )
    now = now or utcnow()
    today_start = day_start(now)
    end = today_start + timedelta(days=1)

    days = WINDOW_DAYS[window]
    if days is None:
        return None, end
    return today_start - timedelta(days=days - 1), end


def _series_days(window: str, now: datetime) -> list[date]:
    return trailing_days(WINDOW_DAYS[window] or ALL_TIME_SERIES_DAYS, now)


def _approved_series(company_id: int, days: list[date]) -> list[dict]:
    start, end = days_range(days)

    rows = (
        db.session.query(Order.created_at, Order.total_cents)
        .filter(
            Order.company_id == company_id,
            Order.status == STATUS_APPROVED,
            Order.created_at >= start,
            Order.created_at < end,
        )
        .all()
    )

    buckets = {day: 0 for day in days}
    for created_at, total_cents in rows:
        day = created_at.date()
        if day in buckets:
            buckets[day] += _coerce_cents(total_cents)

    return [{"date": day.isoformat(), "approved_cents": buckets[day]} for day in days]


def _status_summary(company_id: int, start: datetime | None, end: datetime) -> dict:
    query = (
        db.session.query(Order.status, Order.total_cents)
        .filter(Order.company_id == company_id, Order.created_at < end)
    )
    if start is not None:
        query = query.filter(Order.created_at >= start)

    summary = {"approved_cents": 0, "pending_cents": 0, "cancelled_cents": 0, "total_cents": 0}
    for status, total_cents in query.all():
        cents = _coerce_cents(total_cents)
        if status == STATUS_APPROVED:
            summary["approved_cents"] += cents
        elif status in OPEN_STATUSES:
            summary["pending_cents"] += cents
        elif status == STATUS_CANCELLED:
            summary["cancelled_cents"] += cents
        summary["total_cents"] += cents

    total = summary["total_cents"]

    def pct(part: int) -> float:
        if total <= 0:
            return 0.0
        return round(part * 100.0 / total, 1)

    summary["approved_pct"] = pct(summary["approved_cents"])
    summary["pending_pct"] = pct(summary["pending_cents"])
    summary["cancelled_pct"] = pct(summary["cancelled_cents"])
    return summary


def _recent_orders(company_id: int) -> list[dict]:
    rows = (
        db.session.query(Order, CustomerProfile.name, CustomerProfile.phone)
        .outerjoin(CustomerProfile, CustomerProfile.user_id == Order.customer_user_id)
        .filter(Order.company_id == company_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(RECENT_ORDERS_LIMIT)
        .all()
    )
    return [
        {
            "id": order.id,
            "status": order.status,
            "total_cents": _coerce_cents(order.total_cents),
            "created_at": to_utc_z(order.created_at),
            "customer_user_id": order.customer_user_id,
            "customer_name": name,
            "customer_phone": phone,
        }
        for order, name, phone in rows
    ]


def dashboard_metrics(ctx: SessionContext, window: str = WINDOW_ALL, now: datetime | None = None) -> dict:
    """
    Owner dashboard numbers for one window.

    Counters (products, categories, orders, customers) are all-time; money
    figures and the series follow the window. Never mutates anything.
    """
    company_id = require_owner(ctx)
    now = now or utcnow()
    start, end = window_range(window, now)

    active_products = (
        db.session.query(func.count(Product.id))
        .filter(Product.company_id == company_id, Product.is_active.is_(True))
        .scalar()
    ) or 0
    categories = (
        db.session.query(func.count(Category.id))
        .filter(Category.company_id == company_id)
        .scalar()
    ) or 0
    orders = (
        db.session.query(func.count(Order.id))
        .filter(Order.company_id == company_id)
        .scalar()
    ) or 0
    open_orders = (
        db.session.query(func.count(Order.id))
        .filter(Order.company_id == company_id, Order.status.in_(list(OPEN_STATUSES)))
        .scalar()
    ) or 0
    customers = (
        db.session.query(func.count(func.distinct(Order.customer_user_id)))
        .filter(Order.company_id == company_id, Order.customer_user_id.isnot(None))
        .scalar()
    ) or 0

    summary = _status_summary(company_id, start, end)

    return {
        "window": window,
        "start": to_utc_z(start) if start else None,
        "end": to_utc_z(end),
        "active_products": int(active_products),
        "categories": int(categories),
        "orders": int(orders),
        "open_orders": int(open_orders),
        "customers": int(customers),
        "approved_cents": summary["approved_cents"],
        "series": _approved_series(company_id, _series_days(window, now)),
        "status_summary": summary,
        "recent_orders": _recent_orders(company_id),
    }
