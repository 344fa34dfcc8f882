from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z, utcnow


class OwnerPreference(db.Model):
    """Per-owner dashboard preferences (one row per user)."""
    __tablename__ = "owner_preferences"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True, index=True)
    notification_sound = db.Column(db.Boolean, nullable=False, default=False)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "notification_sound": self.notification_sound,
            "updated_at": to_utc_z(self.updated_at),
        }
