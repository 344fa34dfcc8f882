"""
Multi-Tenant Service: Tenant Validation and Scoping Helpers

Centralizes the ownership checks every owner-facing service performs before
touching company data. Authorization is enforced here, at the data-access
boundary, not only in the routes.

SECURITY INVARIANTS:
1. Owner operations resolve the company from the database, never from input
2. Records of another company are reported as not found (existence hidden)
3. Cross-tenant access attempts are logged as security events
"""

from ..errors import AuthorizationError, NotFoundError
from ..extensions import db
from ..models import Company, Order, Product, Category
from .security_service import log_security_event
from .session_service import SessionContext


def require_owner(ctx: SessionContext | None) -> int:
    """
    Return the id of the company owned by the caller.

    Raises AuthorizationError for anonymous or non-owner callers and
    NotFoundError when the owner has not configured a company yet.
    """
    if ctx is None:
        raise AuthorizationError("Authentication required")

    if not ctx.is_owner:
        log_security_event(
            user_id=ctx.user_id,
            event_type="OWNER_REQUIRED",
            success=False,
            reason="Caller is not a company owner",
        )
        raise AuthorizationError("Only the company owner can perform this action")

    company_id = (
        db.session.query(Company.id)
        .filter(Company.owner_user_id == ctx.user_id)
        .scalar()
    )
    if company_id is None:
        raise NotFoundError("Company not configured. Set up your company first.")

    if ctx.company_id is not None and ctx.company_id != company_id:
        log_security_event(
            user_id=ctx.user_id,
            event_type="TENANT_CONTEXT_MISMATCH",
            success=False,
            reason=f"Session company {ctx.company_id} != owned company {company_id}",
            company_id=company_id,
        )
        raise AuthorizationError("Session tenant does not match the owned company")

    return company_id


def get_company(company_id: int) -> Company:
    company = db.session.get(Company, company_id)
    if not company:
        raise NotFoundError("Company not found")
    return company


def get_company_by_slug(slug: str) -> Company:
    company = db.session.query(Company).filter_by(slug=(slug or "").strip().lower()).first()
    if not company:
        raise NotFoundError("Catalog not found", details={"slug": slug})
    return company


def _log_cross_tenant_attempt(ctx: SessionContext, company_id: int, reason: str) -> None:
    log_security_event(
        user_id=ctx.user_id,
        event_type="CROSS_TENANT_ACCESS_DENIED",
        success=False,
        reason=reason,
        company_id=company_id,
    )


def get_company_order(ctx: SessionContext, company_id: int, order_id: int, query=None) -> Order:
    """
    Fetch an order that must belong to company_id.

    `query` lets callers pass a pre-built (e.g. locked) query over Order.
    """
    q = query if query is not None else db.session.query(Order)
    order = q.filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError("Order not found")
    if order.company_id != company_id:
        _log_cross_tenant_attempt(ctx, company_id, f"Order {order_id} belongs to company {order.company_id}")
        raise NotFoundError("Order not found")
    return order


def get_company_product(ctx: SessionContext, company_id: int, product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFoundError("Product not found")
    if product.company_id != company_id:
        _log_cross_tenant_attempt(ctx, company_id, f"Product {product_id} belongs to company {product.company_id}")
        raise NotFoundError("Product not found")
    return product


def get_company_category(ctx: SessionContext, company_id: int, category_id: int) -> Category:
    category = db.session.get(Category, category_id)
    if not category:
        raise NotFoundError("Category not found")
    if category.company_id != company_id:
        _log_cross_tenant_attempt(ctx, company_id, f"Category {category_id} belongs to company {category.company_id}")
        raise NotFoundError("Category not found")
    return category
