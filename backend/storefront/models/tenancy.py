from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z, utcnow


class Company(db.Model):
    """
    Multi-tenant root: every storefront is a Company.

    The slug is the public catalog address (/c/<slug>). External links depend
    on it, so it stays globally unique even though owners can edit it.
    One owner owns zero-or-one company (unique owner_user_id).
    """
    __tablename__ = "companies"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    owner_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True, index=True)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(120), nullable=False, unique=True, index=True)

    # Contact channel (WhatsApp number, digits only)
    whatsapp = db.Column(db.String(32), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    owner = db.relationship("User", backref=db.backref("company", uselist=False, lazy=True))

    def __repr__(self) -> str:
        return f"<Company id={self.id} slug={self.slug!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_user_id": self.owner_user_id,
            "name": self.name,
            "slug": self.slug,
            "whatsapp": self.whatsapp,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

    def to_public_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "whatsapp": self.whatsapp,
        }


class Category(db.Model):
    """Product grouping; slug is unique within a company."""
    __tablename__ = "categories"
    __table_args__ = (
        db.UniqueConstraint("company_id", "slug", name="uq_categories_company_slug"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    slug = db.Column(db.String(120), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    company = db.relationship("Company", backref=db.backref("categories", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "name": self.name,
            "slug": self.slug,
            "created_at": to_utc_z(self.created_at),
        }
