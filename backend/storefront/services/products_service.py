# backend/storefront/services/products_service.py
"""
Products Service (tenant-scoped)

- list_products only returns the caller's company products
- category_id must reference a category of the same company
- delete is explicit and refused once order lines reference the product;
  deactivating (is_active=False) is the soft delete that keeps history intact
"""
from __future__ import annotations

from ..errors import ConflictError, ValidationError
from ..extensions import db
from ..models import OrderLine, Product
from ..stock import UNLIMITED_STOCK
from ..validation import (
    MAX_PRICE_CENTS,
    ModelValidationPolicy,
    parse_int,
    parse_price_cents,
    require_text,
    validate_payload,
)
from .concurrency import run_atomic
from .session_service import SessionContext
from .tenant_service import get_company_category, get_company_product, require_owner
from storefront.time_utils import utcnow

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 255

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "price_cents", "stock", "is_active", "category_id", "image_url"},
    required_on_create={"name", "price_cents"},
)


def _prepare_payload(payload: dict | None) -> dict:
    """
    Map client-facing fields onto columns: `price` (decimal amount) becomes
    price_cents, a null stock means unlimited and negative stock collapses to
    the unlimited sentinel.
    """
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    data = dict(payload)

    if "name" in data:
        data["name"] = require_text("name", data["name"], min_length=MIN_NAME_LENGTH, max_length=MAX_NAME_LENGTH)

    if "price" in data:
        if "price_cents" in data:
            raise ValidationError("Send either price or price_cents, not both")
        data["price_cents"] = parse_price_cents(data.pop("price"))
    elif "price_cents" in data:
        cents = parse_int(data["price_cents"], "price_cents")
        if cents < 0:
            raise ValidationError("price must be >= 0")
        if cents > MAX_PRICE_CENTS:
            raise ValidationError(f"price cannot exceed {MAX_PRICE_CENTS / 100:,.2f}")
        data["price_cents"] = cents

    if "stock" in data:
        if data["stock"] is None:
            data["stock"] = UNLIMITED_STOCK
        else:
            stock = parse_int(data["stock"], "stock")
            data["stock"] = UNLIMITED_STOCK if stock < 0 else stock

    if data.get("description") == "":
        data["description"] = None
    return data


def _apply_patch(ctx: SessionContext, company_id: int, product: Product, patch: dict) -> None:
    if patch.get("category_id") is not None:
        get_company_category(ctx, company_id, patch["category_id"])
    for key, value in patch.items():
        setattr(product, key, value)


def list_products(
    ctx: SessionContext,
    *,
    category_id: int | None = None,
    include_inactive: bool = True,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Company product listing, by name. Paginated when `page` is given
    (default 20 per page, max 100).
    """
    company_id = require_owner(ctx)

    base_query = db.session.query(Product).filter(Product.company_id == company_id)
    if category_id is not None:
        base_query = base_query.filter(Product.category_id == category_id)
    if not include_inactive:
        base_query = base_query.filter(Product.is_active.is_(True))
    base_query = base_query.order_by(Product.name.asc(), Product.id.asc())

    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = max(1, min(per_page or 20, 100))
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_product(ctx: SessionContext, product_id: int) -> Product:
    company_id = require_owner(ctx)
    return get_company_product(ctx, company_id, product_id)


def create_product(ctx: SessionContext, payload: dict) -> Product:
    company_id = require_owner(ctx)
    patch = validate_payload(
        model=Product,
        payload=_prepare_payload(payload),
        policy=PRODUCT_POLICY,
        partial=False,
    )
    patch.setdefault("stock", 0)
    patch.setdefault("is_active", True)

    def _op():
        now = utcnow()
        product = Product(company_id=company_id, created_at=now, updated_at=now)
        _apply_patch(ctx, company_id, product, patch)
        db.session.add(product)
        db.session.commit()
        return product

    return run_atomic(_op)


def update_product(ctx: SessionContext, product_id: int, payload: dict) -> Product:
    """
    Partial update. Past order lines are unaffected: they carry their own
    price snapshot.
    """
    company_id = require_owner(ctx)
    patch = validate_payload(
        model=Product,
        payload=_prepare_payload(payload),
        policy=PRODUCT_POLICY,
        partial=True,
    )

    def _op():
        product = get_company_product(ctx, company_id, product_id)
        _apply_patch(ctx, company_id, product, patch)
        product.updated_at = utcnow()
        db.session.commit()
        return product

    return run_atomic(_op)


def set_active(ctx: SessionContext, product_id: int, is_active: bool) -> Product:
    if not isinstance(is_active, bool):
        raise ValidationError("is_active must be true or false")
    return update_product(ctx, product_id, {"is_active": is_active})


def delete_product(ctx: SessionContext, product_id: int) -> None:
    company_id = require_owner(ctx)

    def _op():
        product = get_company_product(ctx, company_id, product_id)
        referenced = (
            db.session.query(OrderLine.id)
            .filter(OrderLine.product_id == product.id)
            .first()
        )
        if referenced:
            raise ConflictError("Product appears in orders. Deactivate it instead.")
        db.session.delete(product)
        db.session.commit()

    run_atomic(_op)
