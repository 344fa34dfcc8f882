"""
Order lifecycle engine.

DRAFT -> SUBMITTED -> APPROVED
DRAFT -> CANCELLED, SUBMITTED -> CANCELLED
APPROVED and CANCELLED are terminal; approved orders are never reversed.

Every status change is a conditioned UPDATE (compare-and-set on the current
status), so two requests racing on the same order produce exactly one
winner; the loser gets InvalidTransitionError. Stock only moves on
SUBMITTED -> APPROVED, through a compare-and-set on the observed stock value.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import case, func, update

from ..errors import (
    AuthorizationError,
    ConcurrencyError,
    InvalidTransitionError,
    NotFoundError,
    StockError,
    ValidationError,
)
from ..extensions import db
from ..models import Order, OrderLine, Product, User, CustomerProfile
from ..models.orders import (
    STATUS_APPROVED,
    STATUS_CANCELLED,
    STATUS_DRAFT,
    STATUS_SUBMITTED,
    TERMINAL_STATUSES,
)
from ..stock import StockLevel
from ..validation import MAX_QUANTITY, parse_int, parse_quantity
from . import notification_service
from .concurrency import begin_immediate, conditioned_update, lock_for_update, run_atomic
from .session_service import SessionContext
from .tenant_service import get_company, get_company_order, require_owner
from storefront.time_utils import utcnow


ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    STATUS_DRAFT: frozenset({STATUS_SUBMITTED, STATUS_CANCELLED}),
    STATUS_SUBMITTED: frozenset({STATUS_APPROVED, STATUS_CANCELLED}),
    STATUS_APPROVED: frozenset(),
    STATUS_CANCELLED: frozenset(),
}

MAX_PAGE_SIZE = 100


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def require_transition(current: str, target: str) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Cannot change order from {current} to {target}",
            details={"status": current, "target": target},
        )


def _normalize_items(items) -> dict[int, int]:
    """Merge (product_id, quantity) pairs or dicts into product_id -> quantity."""
    if not items:
        raise ValidationError("Cart is empty. Choose at least one item.")

    quantities: dict[int, int] = {}
    for item in items:
        if isinstance(item, dict):
            product_id, quantity = item.get("product_id"), item.get("quantity")
        else:
            try:
                product_id, quantity = item
            except (TypeError, ValueError):
                raise ValidationError("Each item needs a product_id and a quantity")
        product_id = parse_int(product_id, "product_id")
        quantities[product_id] = quantities.get(product_id, 0) + parse_quantity(quantity)
        if quantities[product_id] > MAX_QUANTITY:
            raise ValidationError(
                f"quantity cannot exceed {MAX_QUANTITY}",
                details={"product_id": product_id, "max_quantity": MAX_QUANTITY},
            )
    return quantities


def _load_products(company_id: int, quantities: dict[int, int]) -> dict[int, Product]:
    products = db.session.query(Product).filter(Product.id.in_(list(quantities))).all()
    by_id = {p.id: p for p in products}

    missing = sorted(pid for pid in quantities if pid not in by_id)
    if missing:
        raise NotFoundError("Product not found", details={"product_ids": missing})

    foreign = sorted(p.id for p in products if p.company_id != company_id)
    if foreign:
        raise ValidationError(
            "Products must belong to the ordering company",
            details={"product_ids": foreign},
        )

    inactive = sorted(p.id for p in products if not p.is_active)
    if inactive:
        raise ValidationError(
            "Some products are no longer available",
            details={"product_ids": inactive},
        )
    return by_id


def _check_stock(quantities: dict[int, int], products: dict[int, Product]) -> None:
    """Soft availability check at submission time; nothing is reserved."""
    insufficient = []
    for product_id, quantity in quantities.items():
        product = products[product_id]
        level = product.stock_level
        if not level.allows(quantity):
            insufficient.append({
                "product_id": product_id,
                "name": product.name,
                "requested_quantity": quantity,
                "availability": level.availability.value,
                "available": level.limit,
            })

    if insufficient:
        raise StockError("Insufficient stock", details={"items": insufficient})


def create_order(
    company_id: int,
    customer_user_id: int | None,
    items,
    *,
    submit: bool = True,
) -> Order:
    """
    Create an order from a cart.

    Prices are snapshotted from the products, subtotals and the total are
    computed here (client totals are never trusted), and order, lines and the
    NEW_ORDER notification are committed as one unit. Nothing is persisted
    when any check fails.
    """
    if not submit and customer_user_id is None:
        # Only the customer who owns a draft can submit it later
        raise ValidationError("Log in to save a draft order")

    def _op():
        company = get_company(company_id)
        if customer_user_id is not None and db.session.get(User, customer_user_id) is None:
            raise NotFoundError("Customer not found")

        quantities = _normalize_items(items)
        products = _load_products(company.id, quantities)
        _check_stock(quantities, products)

        now = utcnow()
        lines = []
        for product_id, quantity in quantities.items():
            unit_price_cents = products[product_id].price_cents
            lines.append(OrderLine(
                product_id=product_id,
                quantity=quantity,
                unit_price_cents=unit_price_cents,
                subtotal_cents=unit_price_cents * quantity,
                created_at=now,
            ))

        order = Order(
            company_id=company.id,
            customer_user_id=customer_user_id,
            status=STATUS_SUBMITTED if submit else STATUS_DRAFT,
            total_cents=sum(line.subtotal_cents for line in lines),
            created_at=now,
            updated_at=now,
            submitted_at=now if submit else None,
        )
        db.session.add(order)
        db.session.flush()

        for line in lines:
            line.order_id = order.id
            db.session.add(line)

        notification = None
        if submit:
            notification = notification_service.create_new_order_notification(order)

        db.session.commit()
        return order, notification

    order, notification = run_atomic(_op)
    if notification is not None:
        notification_service.publish(notification)
    return order


def _raise_lost_race(order_id: int, target: str):
    db.session.rollback()
    current = db.session.query(Order.status).filter(Order.id == order_id).scalar()
    raise InvalidTransitionError(
        f"Order is already {current}",
        details={"status": current, "target": target},
    )


def submit_order(ctx: SessionContext, order_id: int) -> Order:
    """Send a DRAFT order to the owner (customer who created it only)."""
    if ctx is None:
        raise AuthorizationError("Authentication required")

    def _op():
        begin_immediate()
        order = db.session.query(Order).filter(Order.id == order_id).first()
        if not order or order.customer_user_id != ctx.user_id:
            raise NotFoundError("Order not found")
        require_transition(order.status, STATUS_SUBMITTED)

        quantities: dict[int, int] = {}
        for line in order.lines:
            quantities[line.product_id] = quantities.get(line.product_id, 0) + line.quantity
        products = _load_products(order.company_id, quantities)
        _check_stock(quantities, products)

        now = utcnow()
        rows = conditioned_update(
            update(Order)
            .where(Order.id == order_id, Order.status == STATUS_DRAFT)
            .values(
                status=STATUS_SUBMITTED,
                submitted_at=now,
                updated_at=now,
                version_id=Order.version_id + 1,
            )
        )
        if rows != 1:
            _raise_lost_race(order_id, STATUS_SUBMITTED)

        notification = notification_service.create_new_order_notification(order)
        db.session.commit()
        return notification

    notification = run_atomic(_op)
    notification_service.publish(notification)
    return db.session.get(Order, order_id)


def approve_order(ctx: SessionContext, order_id: int) -> Order:
    """
    Owner approval: SUBMITTED -> APPROVED and commit stock.

    Each limited product's stock is decremented by the ordered quantity,
    floored at zero, through a compare-and-set on the stock value read inside
    the transaction. A lost compare-and-set rolls back the whole approval
    with ConcurrencyError. Unlimited stock is left untouched.
    """
    company_id = require_owner(ctx)

    def _op():
        begin_immediate()
        order = get_company_order(ctx, company_id, order_id, query=lock_for_update(db.session.query(Order)))
        require_transition(order.status, STATUS_APPROVED)

        now = utcnow()
        rows = conditioned_update(
            update(Order)
            .where(Order.id == order_id, Order.status == STATUS_SUBMITTED)
            .values(
                status=STATUS_APPROVED,
                approved_at=now,
                updated_at=now,
                decided_by_user_id=ctx.user_id,
                version_id=Order.version_id + 1,
            )
        )
        if rows != 1:
            _raise_lost_race(order_id, STATUS_APPROVED)

        quantities: dict[int, int] = {}
        for product_id, quantity in (
            db.session.query(OrderLine.product_id, OrderLine.quantity)
            .filter(OrderLine.order_id == order_id)
            .all()
        ):
            quantities[product_id] = quantities.get(product_id, 0) + quantity

        for product_id in sorted(quantities):
            stock = db.session.query(Product.stock).filter(Product.id == product_id).scalar()
            if stock is None:
                raise NotFoundError("Product not found", details={"product_id": product_id})

            level = StockLevel.from_raw(stock)
            if level.is_unlimited:
                continue

            rows = conditioned_update(
                update(Product)
                .where(Product.id == product_id, Product.stock == stock)
                .values(
                    stock=level.after_decrement(stock, quantities[product_id]),
                    updated_at=now,
                    version_id=Product.version_id + 1,
                )
            )
            if rows != 1:
                raise ConcurrencyError(
                    "Stock changed while approving the order",
                    details={"product_id": product_id},
                )

        db.session.commit()

    run_atomic(_op)
    current_app.logger.info("Order %s approved by user %s", order_id, ctx.user_id)
    return db.session.get(Order, order_id)


def cancel_order(ctx: SessionContext, order_id: int) -> Order:
    """
    Owner rejection: DRAFT/SUBMITTED -> CANCELLED. Never touches stock.

    Approved orders cannot be cancelled here; reversing an approval is a
    separate concern that does not exist yet.
    """
    company_id = require_owner(ctx)

    def _op():
        begin_immediate()
        order = get_company_order(ctx, company_id, order_id, query=lock_for_update(db.session.query(Order)))
        observed = order.status
        require_transition(observed, STATUS_CANCELLED)

        now = utcnow()
        rows = conditioned_update(
            update(Order)
            .where(Order.id == order_id, Order.status == observed)
            .values(
                status=STATUS_CANCELLED,
                cancelled_at=now,
                updated_at=now,
                decided_by_user_id=ctx.user_id,
                version_id=Order.version_id + 1,
            )
        )
        if rows != 1:
            _raise_lost_race(order_id, STATUS_CANCELLED)
        db.session.commit()

    run_atomic(_op)
    current_app.logger.info("Order %s cancelled by user %s", order_id, ctx.user_id)
    return db.session.get(Order, order_id)


def list_orders(ctx: SessionContext, page: int = 1, per_page: int | None = None) -> dict:
    """
    Company orders: open (DRAFT/SUBMITTED) first, then finalized; newest
    first within each group.
    """
    company_id = require_owner(ctx)

    per_page = max(1, min(per_page or current_app.config.get("ORDERS_PAGE_SIZE", 10), MAX_PAGE_SIZE))
    page = max(page or 1, 1)

    total = (
        db.session.query(func.count(Order.id))
        .filter(Order.company_id == company_id)
        .scalar()
    ) or 0
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    finalized_rank = case((Order.status.in_(list(TERMINAL_STATUSES)), 1), else_=0)
    rows = (
        db.session.query(Order, CustomerProfile.name)
        .outerjoin(CustomerProfile, CustomerProfile.user_id == Order.customer_user_id)
        .filter(Order.company_id == company_id)
        .order_by(finalized_rank.asc(), Order.created_at.desc(), Order.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )

    items = []
    for order, customer_name in rows:
        data = order.to_dict()
        data["customer_name"] = customer_name
        items.append(data)

    return {
        "items": items,
        "count": len(items),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def lines_with_product_names(order_id: int) -> list[dict]:
    rows = (
        db.session.query(OrderLine, Product.name)
        .join(Product, Product.id == OrderLine.product_id)
        .filter(OrderLine.order_id == order_id)
        .order_by(OrderLine.created_at.asc(), OrderLine.id.asc())
        .all()
    )
    lines = []
    for line, product_name in rows:
        data = line.to_dict()
        data["product_name"] = product_name
        lines.append(data)
    return lines


def get_order_lines(ctx: SessionContext, order_id: int) -> list[dict]:
    company_id = require_owner(ctx)
    get_company_order(ctx, company_id, order_id)
    return lines_with_product_names(order_id)


def get_order(ctx: SessionContext, order_id: int) -> dict:
    company_id = require_owner(ctx)
    order = get_company_order(ctx, company_id, order_id)
    return {
        "order": order.to_dict(),
        "lines": lines_with_product_names(order_id),
    }
