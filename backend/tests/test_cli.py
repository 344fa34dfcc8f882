# Overview: Pytest coverage for the storefront CLI bootstrap commands.

from storefront.cli import DEMO_OWNER_EMAIL
from storefront.models import Company, Product, User


class TestSeedDemo:
    def test_seed_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()

        first = runner.invoke(args=['storefront', 'seed-demo'])
        assert first.exit_code == 0, first.output
        assert 'Demo catalog ready (3 new products)' in first.output

        second = runner.invoke(args=['storefront', 'seed-demo'])
        assert second.exit_code == 0, second.output
        assert 'already exists' in second.output

        db_session.expire_all()
        assert db_session.query(User).filter_by(email=DEMO_OWNER_EMAIL).count() == 1
        assert db_session.query(Company).filter_by(slug='acme').count() == 1
        assert db_session.query(Product).count() == 3


class TestCreateOwner:
    def test_create_owner(self, app, db_session):
        result = app.test_cli_runner().invoke(
            args=['storefront', 'create-owner', '--email', 'boss@example.com', '--password', 'Password123!']
        )
        assert result.exit_code == 0, result.output
        assert db_session.query(User).filter_by(email='boss@example.com').one().role == 'OWNER'

    def test_weak_password_reported(self, app, db_session):
        result = app.test_cli_runner().invoke(
            args=['storefront', 'create-owner', '--email', 'boss@example.com', '--password', 'short']
        )
        assert result.exit_code != 0
        assert db_session.query(User).count() == 0
