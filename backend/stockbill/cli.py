# Overview: Flask CLI command groups for bootstrap, user management and demo data.

# backend/stockbill/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to stockbill (PowerShell: $env:FLASK_APP="stockbill").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (use `flask db upgrade` for migrations).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
# - python -m flask users create --name "Admin User" --email admin@example.com --password "Password123!" --role admin
#
# Demo data:
# - python -m flask seed demo [--invoices 5]
#   Admin/staff users, the sample catalog, and optional demo invoices.

import random

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import Product, User
from .schemas import CreateInvoicePayload
from .services.auth_service import create_user, PasswordValidationError
from .services.providers import catalog_ledger, invoice_compiler
from .validation import ConflictError, InsufficientStockError, ValidationError

DEMO_PASSWORD = "Password123!"

DEMO_USERS = [
    ("Admin User", "admin@example.com", "admin"),
    ("Staff User", "staff@example.com", "staff"),
]

DEMO_PRODUCTS = [
    {
        "name": "Laptop HP Pavilion",
        "category": "Electronics",
        "price_inr": 45000,
        "stock": 15,
        "low_stock_threshold": 5,
        "description": "HP Pavilion 15-inch laptop with Intel i5 processor",
    },
    {
        "name": "Samsung Galaxy S24",
        "category": "Electronics",
        "price_inr": 75000,
        "stock": 3,
        "low_stock_threshold": 10,
        "description": "Samsung Galaxy S24 smartphone with 256GB storage",
    },
    {
        "name": "Office Chair Ergonomic",
        "category": "Furniture",
        "price_inr": 8500,
        "stock": 25,
        "low_stock_threshold": 8,
        "description": "Ergonomic office chair with lumbar support",
    },
    {
        "name": "Wireless Mouse Logitech",
        "category": "Electronics",
        "price_inr": 1500,
        "stock": 50,
        "low_stock_threshold": 15,
        "description": "Logitech wireless mouse with USB receiver",
    },
    {
        "name": "Desk Lamp LED",
        "category": "Furniture",
        "price_inr": 2500,
        "stock": 20,
        "low_stock_threshold": 10,
        "description": "LED desk lamp with adjustable brightness",
    },
]

DEMO_CUSTOMERS = ["Asha Verma", "Rohan Mehta", "Priya Nair", "Kabir Singh", "Meera Iyer"]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        return
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with role and active status."""
    users = db.session.query(User).order_by(User.id.asc()).all()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*72)
    click.echo(f"{'ID':<5} {'Name':<24} {'Email':<30} {'Role':<7} {'Active'}")
    click.echo("="*72)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.name:<24} {user.email:<30} {user.role:<7} {active_str}")
    click.echo("="*72 + "\n")


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Login email')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(["admin", "staff"]), default="staff", show_default=True)
@with_appcontext
def create_user_cli(name, email, password, role):
    """Create a user account."""
    try:
        user = create_user(
            db.session,
            name=name,
            email=email,
            password=password,
            role=role,
            bcrypt_rounds=current_app.config["BCRYPT_ROUNDS"],
        )
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {e}")
        return
    except (ConflictError, ValidationError) as e:
        click.echo(f"FAIL {e}")
        return

    click.echo(f"PASS Created user: {user.email} (ID: {user.id}) with role '{user.role}'")


@click.group('seed')
def seed_group():
    """Demo data commands."""


@seed_group.command('demo')
@click.option('--invoices', 'invoice_count', default=0, show_default=True, help='Demo invoices to create')
@click.option('--seed', 'random_seed', default=None, type=int, help='Random seed for reproducible invoices')
@with_appcontext
def seed_demo(invoice_count, random_seed):
    """
    Insert demo users and the sample catalog (idempotent), then optionally
    create invoices through the regular invoice path.
    """
    db.create_all()

    admin = None
    for name, email, role in DEMO_USERS:
        existing = db.session.query(User).filter_by(email=email).first()
        if existing:
            click.echo(f"WARN  User '{email}' already exists, skipping...")
            user = existing
        else:
            user = create_user(
                db.session,
                name=name,
                email=email,
                password=DEMO_PASSWORD,
                role=role,
                bcrypt_rounds=current_app.config["BCRYPT_ROUNDS"],
            )
            click.echo(f"PASS Created user: {email} with role '{role}'")
        if role == "admin":
            admin = user

    catalog = catalog_ledger()
    if db.session.query(Product).count() == 0:
        for patch in DEMO_PRODUCTS:
            catalog.create(dict(patch), created_by_user_id=admin.id)
        click.echo(f"PASS Created {len(DEMO_PRODUCTS)} sample products")
    else:
        click.echo("WARN  Products already exist, skipping sample catalog")

    rng = random.Random(random_seed)
    compiler = invoice_compiler()
    created = 0
    for _ in range(invoice_count):
        in_stock = db.session.query(Product).filter(Product.stock > 0).all()
        if not in_stock:
            click.echo("WARN  No stock left for demo invoices")
            break
        picks = rng.sample(in_stock, k=min(len(in_stock), rng.randint(1, 3)))
        payload = CreateInvoicePayload.from_json({
            "customer_name": rng.choice(DEMO_CUSTOMERS),
            "items": [
                {"product_id": p.id, "quantity": rng.randint(1, min(p.stock, 3))}
                for p in picks
            ],
        })
        try:
            invoice = compiler.create_invoice(payload, created_by_user_id=admin.id)
        except InsufficientStockError as e:
            click.echo(f"WARN  Skipped invoice: {e}")
            continue
        created += 1
        click.echo(f"PASS Created invoice {invoice.invoice_number} total Rs {invoice.total_inr}")

    click.echo("\n" + "="*60)
    click.echo("DONE Demo data ready")
    click.echo("="*60)
    click.echo(f"Invoices created: {created}")
    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    for _, email, role in DEMO_USERS:
        click.echo(f"   {role:<6} -> {email:<20} / {DEMO_PASSWORD}")
    click.echo("")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(seed_group)
