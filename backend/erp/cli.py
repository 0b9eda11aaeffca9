# Overview: Flask CLI command groups for bootstrap, users, and document numbering.

# backend/erp/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system cleanup-sessions
#   Delete session tokens that expired or were revoked more than 30 days ago.
#
# Users:
# - python -m flask users list
# - python -m flask users create --name "Admin" --email admin@erp.local --password "Password123!" --role Admin
#
# Document numbering:
# - python -m flask documents next-number bills
#   Preview the next number for a document type (nothing is reserved).
# - python -m flask documents sequences
#   Show the stored per-type counters.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import DocumentSequence, User
from .services import session_service
from .services.auth_service import register_user
from .services.document_writer import next_number
from .services.purchase_service import BILLS, PAYMENTS_MADE, PURCHASE_ORDERS, VENDOR_CREDITS
from .services.sales_service import DELIVERY_CHALLANS, INVOICES, PAYMENTS_RECEIVED, SALES_ORDERS
from .services.transfer_service import TRANSFER_ORDERS
from .validation import ConflictError, ValidationError

DOCUMENT_KINDS = {
    kind.key: kind
    for kind in (
        BILLS, PURCHASE_ORDERS, PAYMENTS_MADE, VENDOR_CREDITS,
        SALES_ORDERS, INVOICES, DELIVERY_CHALLANS, PAYMENTS_RECEIVED,
        TRANSFER_ORDERS,
    )
}


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet. Existing data is untouched."""
    db.create_all()
    click.echo("PASS Database tables created")


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

    click.echo("PASS Database reset complete.")


@system_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions():
    """Delete expired/revoked session tokens older than 30 days."""
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"PASS Deleted {deleted} session token(s)")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    users = db.session.query(User).order_by(User.id).all()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 90)
    click.echo(f"{'ID':<5} {'Name':<20} {'Email':<30} {'Phone':<14} {'Role':<10} {'Status'}")
    click.echo("=" * 90)
    for user in users:
        click.echo(
            f"{user.id:<5} {user.name:<20} {user.email or '-':<30} {user.phone or '-':<14} "
            f"{user.role:<10} {user.status}"
        )
    click.echo("=" * 90 + "\n")


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', default='Staff', show_default=True, help='Role')
@with_appcontext
def create_user_cli(name, email, password, role):
    """
    Create a staff user.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = register_user(name=name, email=email, password=password, role=role)
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created user: {user.name} ({user.email}) with role '{user.role}'")
    click.echo("SECURITY Password securely hashed with bcrypt")


@click.group('documents')
def documents_group():
    """Document numbering commands."""


@documents_group.command('next-number')
@click.argument('kind', type=click.Choice(sorted(DOCUMENT_KINDS)))
@with_appcontext
def next_number_cli(kind):
    """Print the next number for KIND without reserving it."""
    organization_id = current_app.config["ORGANIZATION_ID"]
    click.echo(next_number(DOCUMENT_KINDS[kind], organization_id=organization_id))


@documents_group.command('sequences')
@with_appcontext
def list_sequences():
    rows = (
        db.session.query(DocumentSequence)
        .order_by(DocumentSequence.organization_id, DocumentSequence.document_type)
        .all()
    )
    if not rows:
        click.echo("No sequences allocated yet.")
        return

    click.echo(f"{'Organization':<38} {'Document type':<22} {'Next'}")
    for row in rows:
        click.echo(f"{row.organization_id:<38} {row.document_type:<22} {row.next_number}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(documents_group)
