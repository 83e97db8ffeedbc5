# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/smart_inventory/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed
#   Idempotent demo data: admin + staff users, a category and a few products.
#
# Users:
# - python -m flask users list
# - python -m flask users create --username jdoe --email jdoe@shop.local --full-name "J Doe" --role SalesStaff
#   Create a user (prompts if options are omitted).
#
# Alerts:
# - python -m flask alerts list [--all]

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Category, Product, User, UserRole
from .services import alert_service, auth_service, products_service
from .validation import ConflictError, ValidationError

DEFAULT_PASSWORD = "Admin@123"

DEMO_PRODUCTS = [
    {"code": "USB-C-1M", "name": "USB-C Cable 1m", "price_cents": 899, "stock_quantity": 120, "min_stock_level": 20},
    {"code": "MOUSE-WL", "name": "Wireless Mouse", "price_cents": 2499, "stock_quantity": 35, "min_stock_level": 10},
    {"code": "KB-MECH", "name": "Mechanical Keyboard", "price_cents": 7999, "stock_quantity": 8, "min_stock_level": 5},
    {"code": "HDMI-2M", "name": "HDMI Cable 2m", "price_cents": 1299, "stock_quantity": 4, "min_stock_level": 10},
]


@click.group('system')
def system_group():
    """Database bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create missing tables."""
    db.create_all()
    click.echo("PASS Tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system seed' for demo data.")


def _ensure_user(username: str, email: str, full_name: str, role: UserRole) -> User:
    user = db.session.query(User).filter_by(username=username).first()
    if user:
        click.echo(f"PASS Using existing user: {username}")
        return user
    user = auth_service.create_user(
        username=username,
        email=email,
        full_name=full_name,
        password=DEFAULT_PASSWORD,
        role=role,
    )
    click.echo(f"PASS Created user: {username} ({role.value})")
    return user


@system_group.command('seed')
@with_appcontext
def seed():
    """
    Create demo users, a category and products. Safe to run repeatedly.

    Users admin and staff share the password Admin@123.
    SECURITY: Change passwords immediately outside development!
    """
    db.create_all()

    _ensure_user("admin", "admin@smartinventory.local", "System Administrator", UserRole.ADMIN)
    _ensure_user("staff", "staff@smartinventory.local", "Sales Staff", UserRole.SALES_STAFF)

    category = db.session.query(Category).filter_by(name="Accessories").first()
    if category is None:
        category = Category(name="Accessories", description="Cables and peripherals")
        db.session.add(category)
        db.session.commit()
        click.echo("PASS Created category: Accessories")

    for demo in DEMO_PRODUCTS:
        if db.session.query(Product.id).filter_by(code=demo["code"]).first():
            continue
        product = products_service.create_product({**demo, "category_id": category.id})
        click.echo(f"PASS Created product: {product.code} (stock {product.stock_quantity})")

    click.echo("PASS Seed complete.")


@click.group('users')
def users_group():
    """User management commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', prompt=True, help='Email address')
@click.option('--full-name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice([r.value for r in UserRole]), default=UserRole.SALES_STAFF.value, show_default=True)
@with_appcontext
def create_user_cli(username, email, full_name, password, role):
    """Create a staff account. Passwords need 8+ characters with a letter and a digit."""
    try:
        user = auth_service.create_user(
            username=username,
            email=email,
            full_name=full_name,
            password=password,
            role=role,
        )
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    click.echo(f"PASS Created user {user.username} (ID: {user.id}, role: {user.role})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = auth_service.list_users()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<32} {'Role':<12} {'Active'}")
    click.echo("=" * 80)
    for user in users:
        click.echo(f"{user.id:<5} {user.username:<20} {user.email:<32} {user.role:<12} {'yes' if user.is_active else 'no'}")
    click.echo("=" * 80 + "\n")


@click.group('alerts')
def alerts_group():
    """Stock alert inspection."""


@alerts_group.command('list')
@click.option('--all', 'show_all', is_flag=True, help='Include resolved alerts')
@with_appcontext
def list_alerts_cli(show_all):
    alerts = alert_service.list_alerts(unresolved_only=not show_all)
    if not alerts:
        click.echo("No alerts.")
        return
    for alert in alerts:
        state = "resolved" if alert.is_resolved else "open"
        click.echo(f"[{alert.id}] {alert.alert_type:<10} {state:<8} {alert.message}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(alerts_group)
