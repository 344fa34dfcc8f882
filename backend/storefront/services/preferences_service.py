from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..errors import AuthorizationError, ValidationError
from ..extensions import db
from ..models import OwnerPreference
from .concurrency import run_atomic
from .session_service import SessionContext
from storefront.time_utils import utcnow


DEFAULT_PREFERENCES = {"notification_sound": False}


def _require_owner_ctx(ctx: SessionContext | None) -> SessionContext:
    if ctx is None:
        raise AuthorizationError("Authentication required")
    if not ctx.is_owner:
        raise AuthorizationError("Preferences are only available to company owners")
    return ctx


def get_preferences(ctx: SessionContext) -> dict:
    """Stored preferences for the owner, or defaults when never saved."""
    ctx = _require_owner_ctx(ctx)
    pref = db.session.query(OwnerPreference).filter_by(user_id=ctx.user_id).first()
    if not pref:
        return {"user_id": ctx.user_id, **DEFAULT_PREFERENCES, "updated_at": None}
    return pref.to_dict()


def is_sound_enabled(user_id: int) -> bool:
    value = (
        db.session.query(OwnerPreference.notification_sound)
        .filter(OwnerPreference.user_id == user_id)
        .scalar()
    )
    return bool(value)


def set_notification_sound(ctx: SessionContext, enabled) -> dict:
    """
    Upsert the notification sound preference.

    Idempotent: saving the same value twice leaves one row with that value.
    A concurrent first save that wins the unique insert is resolved by
    updating the row it created.
    """
    ctx = _require_owner_ctx(ctx)
    if not isinstance(enabled, bool):
        raise ValidationError("notification_sound must be true or false")

    def _upsert():
        pref = db.session.query(OwnerPreference).filter_by(user_id=ctx.user_id).first()
        if pref is None:
            pref = OwnerPreference(user_id=ctx.user_id)
            db.session.add(pref)
        pref.notification_sound = enabled
        pref.updated_at = utcnow()
        db.session.commit()
        return pref

    try:
        pref = run_atomic(_upsert)
    except IntegrityError:
        pref = run_atomic(_upsert)
    return pref.to_dict()
