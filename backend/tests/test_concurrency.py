# Overview: Pytest coverage for concurrent order transitions against a file-backed database.

"""
Concurrency Tests

Two requests racing on the same order must produce exactly one winner; the
loser gets InvalidTransitionError and stock is decremented once. Approvals of
different orders for the same product serialize and both apply.

These run against a file-backed SQLite database in a separate application
so every thread gets its own connection.
"""

import threading

import pytest

from storefront import create_app
from storefront.errors import StorefrontError, InvalidTransitionError
from storefront.extensions import db
from storefront.models import Company, Order, Product
from storefront.models.auth import ROLE_OWNER
from storefront.models.orders import STATUS_APPROVED, STATUS_CANCELLED
from storefront.services import order_service
from storefront.services.auth_service import register_user
from storefront.services.session_service import context_for_user


@pytest.fixture
def race_app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'race.sqlite3'}",
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'UPLOAD_FOLDER': str(tmp_path / 'uploads'),
    })
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def race_data(race_app):
    """Owner context, a product with 10 units and two SUBMITTED orders (2 and 3 units)."""
    with race_app.app_context():
        owner = register_user(email="owner@race.local", password="Password123!", role=ROLE_OWNER)
        company = Company(owner_user_id=owner.id, name="Race", slug="race", whatsapp="5511999990000")
        db.session.add(company)
        db.session.commit()

        product = Product(company_id=company.id, name="Widget", price_cents=500, stock=10, is_active=True)
        db.session.add(product)
        db.session.commit()

        first = order_service.create_order(company.id, None, [{"product_id": product.id, "quantity": 2}])
        second = order_service.create_order(company.id, None, [{"product_id": product.id, "quantity": 3}])

        data = {
            "ctx": context_for_user(owner),
            "product_id": product.id,
            "order_ids": (first.id, second.id),
        }
        db.session.remove()
    return data


def _run_concurrently(app, calls):
    """Run each (func, args) in its own thread and app context; collect outcomes."""
    barrier = threading.Barrier(len(calls))
    outcomes = [None] * len(calls)

    def worker(index, func, args):
        with app.app_context():
            barrier.wait()
            try:
                outcomes[index] = func(*args).status
            except StorefrontError as e:
                outcomes[index] = e
            finally:
                db.session.remove()

    threads = [
        threading.Thread(target=worker, args=(i, func, args))
        for i, (func, args) in enumerate(calls)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return outcomes


class TestConcurrentTransitions:
    """Exactly one winner per order."""

    def test_double_approval_single_winner(self, race_app, race_data):
        ctx = race_data["ctx"]
        order_id = race_data["order_ids"][0]

        outcomes = _run_concurrently(race_app, [
            (order_service.approve_order, (ctx, order_id)),
            (order_service.approve_order, (ctx, order_id)),
        ])

        winners = [o for o in outcomes if o == STATUS_APPROVED]
        losers = [o for o in outcomes if isinstance(o, InvalidTransitionError)]
        assert len(winners) == 1
        assert len(losers) == 1

        with race_app.app_context():
            assert db.session.get(Product, race_data["product_id"]).stock == 8

    def test_approve_and_cancel_race(self, race_app, race_data):
        ctx = race_data["ctx"]
        order_id = race_data["order_ids"][0]

        outcomes = _run_concurrently(race_app, [
            (order_service.approve_order, (ctx, order_id)),
            (order_service.cancel_order, (ctx, order_id)),
        ])

        assert len([o for o in outcomes if isinstance(o, InvalidTransitionError)]) == 1

        with race_app.app_context():
            order = db.session.get(Order, order_id)
            stock = db.session.get(Product, race_data["product_id"]).stock
            assert order.status in (STATUS_APPROVED, STATUS_CANCELLED)
            if order.status == STATUS_APPROVED:
                assert stock == 8
            else:
                assert stock == 10

    def test_approvals_of_different_orders_both_apply(self, race_app, race_data):
        ctx = race_data["ctx"]
        first, second = race_data["order_ids"]

        outcomes = _run_concurrently(race_app, [
            (order_service.approve_order, (ctx, first)),
            (order_service.approve_order, (ctx, second)),
        ])

        assert outcomes == [STATUS_APPROVED, STATUS_APPROVED]
        with race_app.app_context():
            assert db.session.get(Product, race_data["product_id"]).stock == 5
