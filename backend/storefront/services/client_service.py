"""
Client Contact Registry

Owners see one client list built from two sources that are never merged in
storage:
- LoggedInCustomer: an authenticated shopper (CustomerProfile, keyed by user
  id) who ordered at least once from the company. The profile is shared by
  every company the shopper buys from.
- ManualContact: a contact row typed in by the owner, scoped to the company.

Both are exposed through the ClientView projection. Writes are routed by
origin: creates only ever produce manual contacts, and edits of a logged-in
customer go through a single conditioned UPDATE that only matches customers
who ordered from the caller's company.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select, update

from ..errors import AuthorizationError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Contact, CustomerProfile, Order, User
from ..validation import only_digits, parse_int, require_text
from .concurrency import conditioned_update, run_atomic
from .security_service import log_security_event
from .session_service import SessionContext
from .tenant_service import require_owner
from storefront.time_utils import to_utc_z, utcnow


ORIGIN_LOGGED_IN = "logged_in"
ORIGIN_MANUAL = "manual"
VALID_ORIGINS = (ORIGIN_LOGGED_IN, ORIGIN_MANUAL)

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 255


@dataclass(frozen=True)
class ClientView:
    """Read-only projection shared by both client sources."""
    origin: str
    key: int
    name: str | None
    phone: str | None
    last_activity_at: datetime | None

    @property
    def is_logged_in(self) -> bool:
        return self.origin == ORIGIN_LOGGED_IN

    def matches(self, query: str) -> bool:
        needle = query.strip().lower()
        if not needle:
            return True
        if needle in (self.name or "").lower():
            return True
        digits = only_digits(needle)
        return bool(digits) and digits in (self.phone or "")

    def to_dict(self) -> dict:
        return {
            "origin": self.origin,
            "key": self.key,
            "name": self.name,
            "phone": self.phone,
            "last_activity_at": to_utc_z(self.last_activity_at) if self.last_activity_at else None,
        }


@dataclass(frozen=True)
class LoggedInCustomer(ClientView):
    email: str | None = None
    order_count: int = 0

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["email"] = self.email
        data["order_count"] = self.order_count
        return data


@dataclass(frozen=True)
class ManualContact(ClientView):
    pass


def _logged_in_customers(company_id: int) -> list[LoggedInCustomer]:
    stats = (
        db.session.query(
            Order.customer_user_id.label("user_id"),
            func.max(Order.created_at).label("last_order_at"),
            func.count(Order.id).label("order_count"),
        )
        .filter(Order.company_id == company_id, Order.customer_user_id.isnot(None))
        .group_by(Order.customer_user_id)
        .subquery()
    )
    rows = (
        db.session.query(
            stats.c.user_id,
            stats.c.last_order_at,
            stats.c.order_count,
            CustomerProfile.name,
            CustomerProfile.phone,
            User.email,
        )
        .join(User, User.id == stats.c.user_id)
        .outerjoin(CustomerProfile, CustomerProfile.user_id == stats.c.user_id)
        .all()
    )
    return [
        LoggedInCustomer(
            origin=ORIGIN_LOGGED_IN,
            key=row.user_id,
            name=row.name,
            phone=row.phone,
            last_activity_at=row.last_order_at,
            email=row.email,
            order_count=int(row.order_count or 0),
        )
        for row in rows
    ]


def _manual_contacts(company_id: int) -> list[ManualContact]:
    contacts = db.session.query(Contact).filter(Contact.company_id == company_id).all()
    return [
        ManualContact(
            origin=ORIGIN_MANUAL,
            key=c.id,
            name=c.name,
            phone=c.phone,
            last_activity_at=c.created_at,
        )
        for c in contacts
    ]


def _recency_key(view: ClientView):
    # Most recent first; ties broken deterministically by origin then key
    stamp = view.last_activity_at or datetime.min
    return (stamp, view.origin, view.key)


def list_clients(ctx: SessionContext, query: str | None = None) -> list[ClientView]:
    company_id = require_owner(ctx)
    views: list[ClientView] = [*_logged_in_customers(company_id), *_manual_contacts(company_id)]
    if query:
        views = [v for v in views if v.matches(query)]
    views.sort(key=_recency_key, reverse=True)
    return views


def _clean_contact_fields(name, phone) -> tuple[str, str | None]:
    clean_name = require_text("name", name, min_length=MIN_NAME_LENGTH, max_length=MAX_NAME_LENGTH)
    clean_phone = only_digits(phone) or None
    return clean_name, clean_phone


def _get_manual_contact(company_id: int, contact_id: int) -> Contact:
    contact = db.session.get(Contact, contact_id)
    if not contact or contact.company_id != company_id:
        raise NotFoundError("Client not found")
    return contact


def create_contact(ctx: SessionContext, name, phone=None) -> ManualContact:
    """Add a manual contact. Never touches customer profiles."""
    company_id = require_owner(ctx)
    clean_name, clean_phone = _clean_contact_fields(name, phone)

    def _op():
        now = utcnow()
        contact = Contact(
            company_id=company_id,
            name=clean_name,
            phone=clean_phone,
            created_at=now,
            updated_at=now,
        )
        db.session.add(contact)
        db.session.commit()
        return contact

    contact = run_atomic(_op)
    return ManualContact(
        origin=ORIGIN_MANUAL,
        key=contact.id,
        name=contact.name,
        phone=contact.phone,
        last_activity_at=contact.created_at,
    )


def delete_contact(ctx: SessionContext, contact_id: int) -> None:
    company_id = require_owner(ctx)

    def _op():
        contact = _get_manual_contact(company_id, contact_id)
        db.session.delete(contact)
        db.session.commit()

    run_atomic(_op)


def _update_manual(company_id: int, contact_id: int, name: str, phone: str | None) -> ClientView:
    def _op():
        contact = _get_manual_contact(company_id, contact_id)
        contact.name = name
        contact.phone = phone
        contact.updated_at = utcnow()
        db.session.commit()
        return contact

    contact = run_atomic(_op)
    return ManualContact(
        origin=ORIGIN_MANUAL,
        key=contact.id,
        name=contact.name,
        phone=contact.phone,
        last_activity_at=contact.created_at,
    )


def _update_logged_in(ctx: SessionContext, company_id: int, user_id: int, name: str, phone: str | None) -> ClientView:
    ordered_here = (
        select(Order.customer_user_id)
        .where(Order.company_id == company_id, Order.customer_user_id.isnot(None))
    )

    def _op():
        rows = conditioned_update(
            update(CustomerProfile)
            .where(CustomerProfile.user_id == user_id, CustomerProfile.user_id.in_(ordered_here))
            .values(name=name, phone=phone, updated_at=utcnow())
        )
        if rows != 1:
            db.session.rollback()
            return False
        db.session.commit()
        return True

    if not run_atomic(_op):
        log_security_event(
            user_id=ctx.user_id,
            event_type="CUSTOMER_PROFILE_UPDATE_DENIED",
            success=False,
            resource=f"customer_profile:{user_id}",
            action="update",
            reason="Customer has no orders with this company",
            company_id=company_id,
        )
        raise AuthorizationError("You cannot edit this customer")

    profile = db.session.get(CustomerProfile, user_id)
    db.session.refresh(profile)
    last_order_at = (
        db.session.query(func.max(Order.created_at))
        .filter(Order.company_id == company_id, Order.customer_user_id == user_id)
        .scalar()
    )
    return LoggedInCustomer(
        origin=ORIGIN_LOGGED_IN,
        key=user_id,
        name=profile.name,
        phone=profile.phone,
        last_activity_at=last_order_at,
        email=profile.user.email if profile.user else None,
    )


def update_client(ctx: SessionContext, origin: str, key, name, phone=None) -> ClientView:
    """
    Edit a client row through the source it came from.

    Editing a logged-in customer that did not order from the caller's company
    (or does not exist) affects zero rows and raises AuthorizationError.
    """
    company_id = require_owner(ctx)
    if origin not in VALID_ORIGINS:
        raise ValidationError("origin must be logged_in or manual", details={"origin": origin})
    key = parse_int(key, "key")
    clean_name, clean_phone = _clean_contact_fields(name, phone)

    if origin == ORIGIN_MANUAL:
        return _update_manual(company_id, key, clean_name, clean_phone)
    return _update_logged_in(ctx, company_id, key, clean_name, clean_phone)
