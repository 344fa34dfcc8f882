# Overview: Service-layer operations for the owner's company profile.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..errors import AuthorizationError, ConflictError, NotFoundError
from ..extensions import db
from ..models import Company
from ..validation import normalize_whatsapp, require_slug, require_text
from .concurrency import run_atomic
from .session_service import SessionContext
from storefront.time_utils import utcnow


MIN_NAME_LENGTH = 2


def _require_owner_role(ctx: SessionContext | None) -> SessionContext:
    # The company may not exist yet, so tenant_service.require_owner cannot be used here
    if ctx is None:
        raise AuthorizationError("Authentication required")
    if not ctx.is_owner:
        raise AuthorizationError("Only company owners can manage a company")
    return ctx


def get_my_company(ctx: SessionContext) -> Company:
    ctx = _require_owner_role(ctx)
    company = db.session.query(Company).filter_by(owner_user_id=ctx.user_id).first()
    if not company:
        raise NotFoundError("Company not configured. Set up your company first.")
    return company


def save_company(ctx: SessionContext, *, name, slug=None, whatsapp) -> tuple[Company, bool]:
    """
    Create or update the owner's single company.

    Returns (company, created). The slug is normalized (lowercase, hyphens)
    and must stay globally unique.
    """
    ctx = _require_owner_role(ctx)
    clean_name = require_text("name", name, min_length=MIN_NAME_LENGTH, max_length=255)
    clean_slug = require_slug(slug, fallback=clean_name)
    clean_whatsapp = normalize_whatsapp(whatsapp)

    taken = (
        db.session.query(Company.id)
        .filter(Company.slug == clean_slug, Company.owner_user_id != ctx.user_id)
        .first()
    )
    if taken:
        raise ConflictError("This slug is already in use. Choose another one.", details={"slug": clean_slug})

    def _op():
        company = db.session.query(Company).filter_by(owner_user_id=ctx.user_id).first()
        created = company is None
        if created:
            company = Company(owner_user_id=ctx.user_id)
            db.session.add(company)
        company.name = clean_name
        company.slug = clean_slug
        company.whatsapp = clean_whatsapp
        company.updated_at = utcnow()
        db.session.commit()
        return company, created

    try:
        return run_atomic(_op)
    except IntegrityError:
        raise ConflictError("This slug is already in use. Choose another one.", details={"slug": clean_slug})
