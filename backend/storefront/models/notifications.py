from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z, utcnow

TYPE_NEW_ORDER = "NEW_ORDER"


class Notification(db.Model):
    """
    Company-scoped signal consumed by the owner's dashboard session.

    Written exactly once when an order enters SUBMITTED. The only mutation
    after that is marking it read on owner acknowledgment.
    """
    __tablename__ = "notifications"
    __table_args__ = (
        db.UniqueConstraint("order_id", "type", name="uq_notifications_order_type"),
        db.Index("ix_notifications_company_unread", "company_id", "type", "is_read", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    type = db.Column(db.String(32), nullable=False, default=TYPE_NEW_ORDER)

    is_read = db.Column(db.Boolean, nullable=False, default=False)
    read_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    order = db.relationship("Order", backref=db.backref("notifications", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "order_id": self.order_id,
            "type": self.type,
            "is_read": self.is_read,
            "read_at": to_utc_z(self.read_at) if self.read_at else None,
            "created_at": to_utc_z(self.created_at),
        }
