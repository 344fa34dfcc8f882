# Overview: Flask CLI commands for bootstrap and demo data.

# backend/storefront/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# - python -m flask storefront init-db [--drop --yes]
#   Create all tables (DEV: prefer `flask db upgrade` once migrations exist).
# - python -m flask storefront create-owner --email owner@example.com --password "Password123!"
#   Create an OWNER account (prompts if options are omitted).
# - python -m flask storefront seed-demo
#   Idempotent demo storefront: owner, company "Acme" (slug acme), categories, products.

import click
from flask.cli import with_appcontext

from .errors import StorefrontError
from .extensions import db
from .models import Category, Company, Product, User
from .models.auth import ROLE_OWNER
from .services.auth_service import register_user
from .stock import UNLIMITED_STOCK


DEMO_OWNER_EMAIL = "owner@acme.local"
DEMO_PASSWORD = "Password123!"


@click.group('storefront')
def storefront_group():
    """Storefront bootstrap commands."""


@storefront_group.command('init-db')
@click.option('--drop', is_flag=True, help='Drop all tables first (DELETES ALL DATA)')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def init_db(drop, yes):
    """Create the schema from the models."""
    if drop:
        if not yes:
            click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)
        click.echo("DELETE  Dropping all tables...")
        db.drop_all()
    db.create_all()
    click.echo("PASS Database schema ready")


@storefront_group.command('create-owner')
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_owner(email, password):
    """Create a company owner account."""
    try:
        user = register_user(email=email, password=password, role=ROLE_OWNER)
    except StorefrontError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Created owner {user.email} (ID: {user.id})")


@storefront_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """
    Create a demo storefront you can browse at /api/catalog/acme.

    Safe to run repeatedly; existing rows are reused.
    """
    owner = db.session.query(User).filter_by(email=DEMO_OWNER_EMAIL).first()
    if not owner:
        owner = register_user(email=DEMO_OWNER_EMAIL, password=DEMO_PASSWORD, role=ROLE_OWNER)
        click.echo(f"PASS Created owner {owner.email}")
    else:
        click.echo(f"WARN  Owner {owner.email} already exists, reusing")

    company = db.session.query(Company).filter_by(owner_user_id=owner.id).first()
    if not company:
        company = Company(owner_user_id=owner.id, name="Acme", slug="acme", whatsapp="5511999990000")
        db.session.add(company)
        db.session.commit()
        click.echo(f"PASS Created company {company.name} (slug: {company.slug})")

    categories = {}
    for name, slug in (("Tires", "tires"), ("Services", "services")):
        category = db.session.query(Category).filter_by(company_id=company.id, slug=slug).first()
        if not category:
            category = Category(company_id=company.id, name=name, slug=slug)
            db.session.add(category)
        categories[slug] = category
    db.session.commit()

    demo_products = [
        ("Tire 175/70 R14", "tires", 32990, 3),
        ("Tire 185/65 R15", "tires", 38990, 0),
        ("Wheel alignment", "services", 8000, UNLIMITED_STOCK),
    ]
    created = 0
    for name, category_slug, price_cents, stock in demo_products:
        exists = db.session.query(Product.id).filter_by(company_id=company.id, name=name).first()
        if exists:
            continue
        db.session.add(Product(
            company_id=company.id,
            category_id=categories[category_slug].id,
            name=name,
            price_cents=price_cents,
            stock=stock,
            is_active=True,
        ))
        created += 1
    db.session.commit()

    click.echo(f"PASS Demo catalog ready ({created} new products)")
    click.echo(f"\nOwner login: {DEMO_OWNER_EMAIL} / {DEMO_PASSWORD}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(storefront_group)
