# Overview: Pytest coverage for company, category, product, image and preference services.

import io

import pytest
from werkzeug.datastructures import FileStorage

from storefront.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from storefront.models import Category, OwnerPreference, Product
from storefront.services import (
    catalog_service,
    category_service,
    company_service,
    preferences_service,
    products_service,
    storage_service,
)
from storefront.services.session_service import context_for_user
from storefront.stock import UNLIMITED_STOCK
from storefront.validation import MAX_PRICE_CENTS


class TestCompanyService:
    """One company per owner, globally unique slug."""

    def test_create_then_update(self, db_session, owner_a):
        ctx = context_for_user(owner_a)

        company, created = company_service.save_company(ctx, name="Acme Tires", whatsapp="+55 11 99999-0000")
        assert created is True
        assert company.slug == "acme-tires"
        assert company.whatsapp == "5511999990000"

        company, created = company_service.save_company(
            ctx, name="Acme Tires", slug="Acme Pneus", whatsapp="5511999990000"
        )
        assert created is False
        assert company.slug == "acme-pneus"

    def test_missing_company(self, db_session, owner_a):
        with pytest.raises(NotFoundError):
            company_service.get_my_company(context_for_user(owner_a))

    def test_slug_taken_by_other_owner(self, db_session, company_a, owner_b):
        with pytest.raises(ConflictError):
            company_service.save_company(
                context_for_user(owner_b), name="Other", slug="acme", whatsapp="5521988887777"
            )

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"name": "A", "whatsapp": "5511999990000"},
            {"name": "Acme", "whatsapp": "12345"},
            {"name": "Acme", "slug": "!!", "whatsapp": "5511999990000"},
        ],
    )
    def test_invalid_input(self, db_session, owner_a, kwargs):
        with pytest.raises(ValidationError):
            company_service.save_company(context_for_user(owner_a), **kwargs)

    def test_customer_cannot_own_company(self, db_session, customer_ctx):
        with pytest.raises(AuthorizationError):
            company_service.save_company(customer_ctx, name="Shop", whatsapp="5511999990000")


class TestCategoryService:
    def test_crud(self, db_session, owner_ctx):
        category = category_service.create_category(owner_ctx, "Rims & Wheels")
        assert category.slug == "rims-wheels"

        category = category_service.update_category(owner_ctx, category.id, name="Wheels", slug="wheels")
        assert (category.name, category.slug) == ("Wheels", "wheels")

        assert [c.id for c in category_service.list_categories(owner_ctx)] == [category.id]
        category_service.delete_category(owner_ctx, category.id)
        assert category_service.list_categories(owner_ctx) == []

    def test_duplicate_slug(self, db_session, owner_ctx, category_a):
        with pytest.raises(ConflictError):
            category_service.create_category(owner_ctx, "Tires")

    def test_duplicate_slug_on_update(self, db_session, owner_ctx, category_a):
        other = category_service.create_category(owner_ctx, "Wheels")

        with pytest.raises(ConflictError):
            category_service.update_category(owner_ctx, other.id, name="Renamed", slug="tires")

        db_session.expire_all()
        unchanged = db_session.get(Category, other.id)
        assert (unchanged.name, unchanged.slug) == ("Wheels", "wheels")
        # Session is still usable after the conflict
        assert category_service.update_category(owner_ctx, other.id, slug="rims").slug == "rims"

    def test_same_slug_other_company_allowed(self, db_session, owner_b_ctx, category_a):
        assert category_service.create_category(owner_b_ctx, "Tires").slug == "tires"

    def test_delete_in_use(self, db_session, owner_ctx, category_a, product_a):
        with pytest.raises(ConflictError) as exc:
            category_service.delete_category(owner_ctx, category_a.id)
        assert exc.value.details == {"product_count": 1}

    def test_other_company_category_hidden(self, db_session, owner_b_ctx, category_a):
        with pytest.raises(NotFoundError):
            category_service.update_category(owner_b_ctx, category_a.id, name="Stolen")


class TestProductsService:
    def test_create_with_decimal_price(self, db_session, owner_ctx, category_a):
        product = products_service.create_product(
            owner_ctx, {"name": "Valve", "price": "12,50", "stock": 4, "category_id": category_a.id}
        )
        assert product.price_cents == 1250
        assert product.stock == 4
        assert product.is_active is True

    def test_defaults_to_unavailable_stock(self, db_session, owner_ctx):
        product = products_service.create_product(owner_ctx, {"name": "Cap", "price_cents": 100})
        assert product.stock == 0
        assert product.stock_level.is_unavailable

    @pytest.mark.parametrize("stock", [None, -1, -50])
    def test_unlimited_stock_normalized(self, db_session, owner_ctx, stock):
        product = products_service.create_product(owner_ctx, {"name": "Service", "price_cents": 100, "stock": stock})
        assert product.stock == UNLIMITED_STOCK

    @pytest.mark.parametrize(
        "payload",
        [
            {"price_cents": 100},
            {"name": "Valve", "price": "-1"},
            {"name": "Valve", "price": "abc"},
            {"name": "Valve", "price": "1", "price_cents": 100},
            {"name": "Valve", "price_cents": 100, "company_id": 2},
            {"name": "Valve", "price_cents": 100, "stock": 1.5},
            {"name": "A", "price": "1.00"},
            {"name": "   ", "price": "1.00"},
            {"name": "Valve", "price_cents": MAX_PRICE_CENTS + 1},
            {"name": "Valve", "price_cents": 100, "stock": 2**63},
        ],
    )
    def test_invalid_payload(self, db_session, owner_ctx, payload):
        with pytest.raises(ValidationError):
            products_service.create_product(owner_ctx, payload)

    def test_foreign_category_rejected(self, db_session, owner_b_ctx, category_a):
        with pytest.raises(NotFoundError):
            products_service.create_product(
                owner_b_ctx, {"name": "Valve", "price_cents": 100, "category_id": category_a.id}
            )

    def test_update_and_deactivate(self, db_session, owner_ctx, product_a):
        product = products_service.update_product(owner_ctx, product_a.id, {"price": 15, "stock": 7})
        assert (product.price_cents, product.stock) == (1500, 7)

        product = products_service.set_active(owner_ctx, product_a.id, False)
        assert product.is_active is False

    def test_listing(self, db_session, owner_ctx, product_a, sold_out_product, unlimited_product, product_b):
        listing = products_service.list_products(owner_ctx)
        assert listing["count"] == 3

        products_service.set_active(owner_ctx, sold_out_product.id, False)
        active = products_service.list_products(owner_ctx, include_inactive=False)
        assert sold_out_product.id not in [p["id"] for p in active["items"]]

        paged = products_service.list_products(owner_ctx, page=1, per_page=2)
        assert paged["count"] == 2
        assert paged["pagination"]["has_next"] is True

    def test_short_name_rejected_on_update(self, db_session, owner_ctx, product_a):
        with pytest.raises(ValidationError):
            products_service.update_product(owner_ctx, product_a.id, {"name": "T"})

        db_session.expire_all()
        assert db_session.get(Product, product_a.id).name == "Tire 175/70"

    def test_name_is_trimmed(self, db_session, owner_ctx):
        product = products_service.create_product(owner_ctx, {"name": "  Cap  ", "price_cents": 100})
        assert product.name == "Cap"

    @pytest.mark.parametrize("per_page,expected", [(-1, 1), (0, 20), (500, 100)])
    def test_page_size_bounds(self, db_session, owner_ctx, product_a, sold_out_product, per_page, expected):
        paged = products_service.list_products(owner_ctx, page=1, per_page=per_page)

        assert paged["pagination"]["per_page"] == expected
        assert paged["count"] == min(expected, 2)
        assert paged["pagination"]["total_pages"] == (2 if expected == 1 else 1)

    def test_other_company_product_hidden(self, db_session, owner_ctx, product_b):
        with pytest.raises(NotFoundError):
            products_service.get_product(owner_ctx, product_b.id)
        with pytest.raises(NotFoundError):
            products_service.update_product(owner_ctx, product_b.id, {"price_cents": 1})

    def test_delete_unreferenced(self, db_session, owner_ctx, unlimited_product):
        product_id = unlimited_product.id
        products_service.delete_product(owner_ctx, product_id)
        assert db_session.get(Product, product_id) is None

    def test_delete_referenced_refused(self, db_session, owner_ctx, submitted_order, product_a):
        with pytest.raises(ConflictError):
            products_service.delete_product(owner_ctx, product_a.id)


class TestPublicCatalog:
    def test_only_active_products(self, db_session, company_a, product_a, sold_out_product, product_b):
        sold_out_product.is_active = False
        db_session.commit()

        catalog = catalog_service.public_catalog("acme")

        assert catalog["company"]["slug"] == "acme"
        assert "owner_user_id" not in catalog["company"]
        assert [p["id"] for p in catalog["products"]] == [product_a.id]
        assert catalog["categories"][0]["slug"] == "tires"

    def test_unknown_slug(self, db_session):
        with pytest.raises(NotFoundError):
            catalog_service.public_catalog("nope")


class TestProductImages:
    def _file(self, name, content=b"\x89PNG fake image"):
        return FileStorage(stream=io.BytesIO(content), filename=name, content_type="image/png")

    def test_store_and_url(self, app, db_session, company_a):
        url = storage_service.save_product_image(company_a.id, "Tire 175/70", self._file("photo.PNG"))

        assert url.startswith(f"/assets/{company_a.id}/")
        assert url.endswith("-tire-17570.png")

    @pytest.mark.parametrize(
        "name,content",
        [("photo.exe", b"data"), ("photo.png", b""), ("photo.png", b"x" * 2048)],
    )
    def test_rejected_uploads(self, app, db_session, company_a, name, content):
        with pytest.raises(ValidationError):
            storage_service.save_product_image(company_a.id, "Tire", self._file(name, content))

    def test_missing_file(self, app, db_session, company_a):
        with pytest.raises(ValidationError):
            storage_service.save_product_image(company_a.id, "Tire", None)


class TestPreferences:
    def test_defaults(self, db_session, owner_ctx):
        prefs = preferences_service.get_preferences(owner_ctx)
        assert prefs["notification_sound"] is False
        assert prefs["updated_at"] is None

    def test_upsert_is_idempotent(self, db_session, owner_ctx, owner_a):
        preferences_service.set_notification_sound(owner_ctx, True)
        preferences_service.set_notification_sound(owner_ctx, True)

        assert db_session.query(OwnerPreference).filter_by(user_id=owner_a.id).count() == 1
        assert preferences_service.get_preferences(owner_ctx)["notification_sound"] is True
        assert preferences_service.is_sound_enabled(owner_a.id) is True

        preferences_service.set_notification_sound(owner_ctx, False)
        assert preferences_service.is_sound_enabled(owner_a.id) is False

    def test_non_bool_rejected(self, db_session, owner_ctx):
        with pytest.raises(ValidationError):
            preferences_service.set_notification_sound(owner_ctx, "yes")

    def test_customer_rejected(self, db_session, customer_ctx):
        with pytest.raises(AuthorizationError):
            preferences_service.get_preferences(customer_ctx)
