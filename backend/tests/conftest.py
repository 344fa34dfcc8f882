"""
Pytest fixtures for storefront backend tests.

Provides the test application (in-memory SQLite), two tenants with their
owners, a logged-in customer, a small catalog covering every stock state,
and helpers for authenticated HTTP calls.
"""

import pytest

from storefront import create_app
from storefront.extensions import db
from storefront.models import Company, Category, Product
from storefront.models.auth import ROLE_OWNER, ROLE_CUSTOMER
from storefront.services import order_service
from storefront.services.auth_service import register_user
from storefront.services.session_service import context_for_user
from storefront.stock import UNLIMITED_STOCK


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    upload_folder = tmp_path_factory.mktemp("uploads")
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'UPLOAD_FOLDER': str(upload_folder),
        'MAX_IMAGE_BYTES': 1024,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def owner_a(db_session):
    """Owner of company A (Acme)."""
    return register_user(email="owner@acme.local", password=PASSWORD, role=ROLE_OWNER)


@pytest.fixture(scope='function')
def owner_b(db_session):
    """Owner of company B (Beta)."""
    return register_user(email="owner@beta.local", password=PASSWORD, role=ROLE_OWNER)


@pytest.fixture(scope='function')
def company_a(db_session, owner_a):
    company = Company(owner_user_id=owner_a.id, name="Acme", slug="acme", whatsapp="5511999990000")
    db_session.add(company)
    db_session.commit()
    return company


@pytest.fixture(scope='function')
def company_b(db_session, owner_b):
    company = Company(owner_user_id=owner_b.id, name="Beta", slug="beta", whatsapp="5521988887777")
    db_session.add(company)
    db_session.commit()
    return company


@pytest.fixture(scope='function')
def owner_ctx(company_a, owner_a):
    """SessionContext of owner A (company already configured)."""
    return context_for_user(owner_a)


@pytest.fixture(scope='function')
def owner_b_ctx(company_b, owner_b):
    return context_for_user(owner_b)


@pytest.fixture(scope='function')
def customer(db_session):
    """Logged-in shopper with a shared profile."""
    return register_user(
        email="maria@example.com",
        password=PASSWORD,
        role=ROLE_CUSTOMER,
        name="Maria Silva",
        phone="(11) 98888-7777",
    )


@pytest.fixture(scope='function')
def customer_ctx(customer):
    return context_for_user(customer)


@pytest.fixture(scope='function')
def category_a(db_session, company_a):
    category = Category(company_id=company_a.id, name="Tires", slug="tires")
    db_session.add(category)
    db_session.commit()
    return category


def _product(db_session, company, name, price_cents, stock, **kwargs):
    product = Product(
        company_id=company.id,
        name=name,
        price_cents=price_cents,
        stock=stock,
        is_active=kwargs.pop("is_active", True),
        **kwargs,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_a(db_session, company_a, category_a):
    """Limited stock: 3 units at R$ 10,00."""
    return _product(db_session, company_a, "Tire 175/70", 1000, 3, category_id=category_a.id)


@pytest.fixture(scope='function')
def sold_out_product(db_session, company_a):
    return _product(db_session, company_a, "Tire 185/65", 2500, 0)


@pytest.fixture(scope='function')
def unlimited_product(db_session, company_a):
    return _product(db_session, company_a, "Wheel alignment", 8000, UNLIMITED_STOCK)


@pytest.fixture(scope='function')
def product_b(db_session, company_b):
    """Product of the other tenant."""
    return _product(db_session, company_b, "Beta Widget", 2000, 10)


@pytest.fixture(scope='function')
def submitted_order(company_a, customer, product_a):
    """SUBMITTED order from the customer: 2 x product_a (R$ 20,00)."""
    return order_service.create_order(
        company_a.id, customer.id, [{"product_id": product_a.id, "quantity": 2}]
    )


def create_order(company, items, customer=None, submit=True):
    """Helper to place an order through the service layer."""
    return order_service.create_order(
        company.id,
        customer.id if customer is not None else None,
        items,
        submit=submit,
    )


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
