from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z, utcnow

STATUS_DRAFT = "DRAFT"
STATUS_SUBMITTED = "SUBMITTED"
STATUS_APPROVED = "APPROVED"
STATUS_CANCELLED = "CANCELLED"

TERMINAL_STATUSES = frozenset({STATUS_APPROVED, STATUS_CANCELLED})
OPEN_STATUSES = frozenset({STATUS_DRAFT, STATUS_SUBMITTED})


class Order(db.Model):
    """
    Customer order placed through a company's public catalog.

    DRAFT: cart not yet sent. SUBMITTED: sent to the owner through the
    messaging handoff. APPROVED: owner confirmed and stock committed.
    CANCELLED: owner rejected. APPROVED and CANCELLED are terminal.

    total_cents is denormalized from the lines and computed server-side.
    Status only changes through order_service conditioned updates.
    """
    __tablename__ = "orders"
    __table_args__ = (
        # Composite index for the dashboard listing (company, status, recency)
        db.Index("ix_orders_company_status_created", "company_id", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    customer_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    status = db.Column(db.String(16), nullable=False, default=STATUS_DRAFT, index=True)
    total_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    submitted_at = db.Column(db.DateTime(timezone=True), nullable=True)
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    decided_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    company = db.relationship("Company", backref=db.backref("orders", lazy=True))
    customer = db.relationship("User", foreign_keys=[customer_user_id])
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "customer_user_id": self.customer_user_id,
            "status": self.status,
            "is_terminal": self.is_terminal,
            "total_cents": self.total_cents,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "submitted_at": to_utc_z(self.submitted_at) if self.submitted_at else None,
            "approved_at": to_utc_z(self.approved_at) if self.approved_at else None,
            "cancelled_at": to_utc_z(self.cancelled_at) if self.cancelled_at else None,
            "decided_by_user_id": self.decided_by_user_id,
            "version_id": self.version_id,
        }


class OrderLine(db.Model):
    """
    Line item on an order.

    unit_price_cents is a snapshot of the product price at order time and is
    never re-read from the product. subtotal_cents is stored redundantly.
    """
    __tablename__ = "order_lines"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_lines_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    subtotal_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    order = db.relationship("Order", backref=db.backref("lines", lazy=True, order_by="OrderLine.id"))
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "subtotal_cents": self.subtotal_cents,
            "created_at": to_utc_z(self.created_at),
        }
