from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError
from ..extensions import db
from ..models import Category, Product
from ..validation import require_slug, require_text
from .concurrency import run_atomic
from .session_service import SessionContext
from .tenant_service import get_company_category, require_owner


MAX_NAME_LENGTH = 120


def list_categories(ctx: SessionContext) -> list[Category]:
    company_id = require_owner(ctx)
    return (
        db.session.query(Category)
        .filter(Category.company_id == company_id)
        .order_by(Category.name.asc(), Category.id.asc())
        .all()
    )


def _ensure_slug_free(company_id: int, slug: str, exclude_id: int | None = None) -> None:
    q = db.session.query(Category.id).filter(Category.company_id == company_id, Category.slug == slug)
    if exclude_id is not None:
        q = q.filter(Category.id != exclude_id)
    if q.first():
        raise ConflictError("A category with this slug already exists", details={"slug": slug})


def _commit_category(category: Category) -> Category:
    def _op():
        db.session.add(category)
        db.session.commit()
        return category

    try:
        return run_atomic(_op)
    except IntegrityError:
        raise ConflictError("A category with this slug already exists", details={"slug": category.slug})


def create_category(ctx: SessionContext, name, slug=None) -> Category:
    """Create a category; the slug is derived from the name when omitted."""
    company_id = require_owner(ctx)
    clean_name = require_text("name", name, max_length=MAX_NAME_LENGTH)
    clean_slug = require_slug(slug, fallback=clean_name)
    _ensure_slug_free(company_id, clean_slug)
    return _commit_category(Category(company_id=company_id, name=clean_name, slug=clean_slug))


def update_category(ctx: SessionContext, category_id: int, name=None, slug=None) -> Category:
    company_id = require_owner(ctx)
    category = get_company_category(ctx, company_id, category_id)

    clean_name = require_text("name", name, max_length=MAX_NAME_LENGTH) if name is not None else None
    clean_slug = require_slug(slug) if slug is not None else None
    # Slug lookup runs before the row is dirty (autoflush)
    if clean_slug is not None:
        _ensure_slug_free(company_id, clean_slug, exclude_id=category.id)

    if clean_name is not None:
        category.name = clean_name
    if clean_slug is not None:
        category.slug = clean_slug
    return _commit_category(category)


def delete_category(ctx: SessionContext, category_id: int) -> None:
    """Refused while any product still points at the category."""
    company_id = require_owner(ctx)
    category = get_company_category(ctx, company_id, category_id)

    in_use = (
        db.session.query(Product.id)
        .filter(Product.category_id == category.id)
        .count()
    )
    if in_use:
        raise ConflictError(
            "Category has products. Move or delete them first.",
            details={"product_count": in_use},
        )

    def _op():
        db.session.delete(category)
        db.session.commit()

    run_atomic(_op)
