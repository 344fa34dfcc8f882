from __future__ import annotations

from ..extensions import db
from ..models import Category, Product
from .tenant_service import get_company_by_slug


def public_catalog(slug: str) -> dict:
    """
    Read path of the public catalog page: company profile, categories and
    active products. Inactive products are hidden here only; order history
    keeps referencing them.
    """
    company = get_company_by_slug(slug)

    categories = (
        db.session.query(Category)
        .filter(Category.company_id == company.id)
        .order_by(Category.name.asc(), Category.id.asc())
        .all()
    )
    products = (
        db.session.query(Product)
        .filter(Product.company_id == company.id, Product.is_active.is_(True))
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )

    return {
        "company": company.to_public_dict(),
        "categories": [c.to_dict() for c in categories],
        "products": [p.to_dict() for p in products],
    }
