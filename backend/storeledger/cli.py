# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/storeledger/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-permissions
#   Create or refresh the permission catalog (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
#   List all users.
# - python -m flask users create --name "Ana" --email ana@example.com --password "Password123!" [--admin]
#   Create a user (prompts if options are omitted).
#
# Stores:
# - python -m flask stores create --name "Main Store" --owner-email ana@example.com
#   Create a store owned by an existing user.
# - python -m flask stores grant --store-id 1 --email bob@example.com --permission expenses.view --permission expenses.create
#   Add a member to a store and grant permissions.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Store, User
from .permissions import get_all_permission_codes
from .services import auth_service, store_service
from .validation import LedgerError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-permissions')
@with_appcontext
def init_permissions():
    """Create missing permissions and refresh names of existing ones."""
    created = store_service.ensure_permission_catalog()
    db.session.commit()
    click.echo(f"PASS Permission catalog ready ({created} created, {len(get_all_permission_codes())} total)")


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

    store_service.ensure_permission_catalog()
    db.session.commit()
    click.echo("PASS Database reset complete")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<25} {'Email':<35} {'Active':<8} {'Admin'}")
    click.echo("="*80)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        admin_str = "Yes" if user.is_admin else "No"
        click.echo(f"{user.id:<5} {user.name:<25} {user.email:<35} {active_str:<8} {admin_str}")

    click.echo("="*80 + "\n")


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Login email (unique)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--admin', 'is_admin', is_flag=True, help='Platform admin (bypasses store permissions)')
@with_appcontext
def create_user_cli(name, email, password, is_admin):
    """Create a user."""
    try:
        user = auth_service.create_user(name, email, password, is_admin=is_admin)
    except LedgerError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user {user.email} (ID: {user.id})")


@click.group('stores')
def stores_group():
    """Store and membership commands."""


@stores_group.command('create')
@click.option('--name', required=True, help='Store name')
@click.option('--owner-email', required=True, help='Email of the owning user')
@with_appcontext
def create_store_cli(name, owner_email):
    """Create a store owned by an existing user."""
    owner = auth_service.get_user_by_email(owner_email)
    if owner is None:
        raise click.ClickException(f"User not found: {owner_email}")
    try:
        store = store_service.create_store(name, owner)
    except LedgerError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created store {store.name} (ID: {store.id}) owned by {owner.email}")


@stores_group.command('grant')
@click.option('--store-id', required=True, type=int, help='Store ID')
@click.option('--email', required=True, help='Member email')
@click.option('--permission', 'permissions', multiple=True, help='Permission code (repeatable)')
@with_appcontext
def grant_cli(store_id, email, permissions):
    """Add a member to a store and grant permissions."""
    store = db.session.query(Store).filter_by(id=store_id).first()
    if store is None:
        raise click.ClickException(f"Store not found: {store_id}")
    user = auth_service.get_user_by_email(email)
    if user is None:
        raise click.ClickException(f"User not found: {email}")
    try:
        codes = store_service.add_member(store, user, list(permissions))
    except LedgerError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS {user.email} in store {store.id}: {', '.join(codes) or '(no permissions)'}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(stores_group)
