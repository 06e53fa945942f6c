# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/homebake/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--bakery "Bakery Name"] [--email owner@homebake.local]
#   Idempotent bootstrap: creates the bakery and its owner account.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list [--bakery-id 1]
#   List users with role and active status.
# - python -m flask users create --bakery-id 1 --name "Ada" --email ada@homebake.local --password "Password123" --role manager
#   Create a user directly (prompts if options are omitted).
#
# Invites:
# - python -m flask invites create --role sales_rep [--owner-email owner@homebake.local]
#   Issue a QR invite link and print it.
#
# Push notifications:
# - python -m flask push generate-vapid
#   Print a fresh VAPID key pair for VAPID_PUBLIC_KEY / VAPID_PRIVATE_KEY.
#
# Maintenance:
# - python -m flask maintenance cleanup [--session-retention-days 30]
#   Remove expired staff presence, old activities, expired invites and stale session tokens.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Bakery, User
from .services.auth_service import create_user, register_bakery, normalize_email, PasswordValidationError
from .services import activity_service, invite_service, presence_service, session_service
from .validation import ROLES, STAFF_ROLES


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--bakery', 'bakery_name', default='HomeBake', help='Bakery name')
@click.option('--name', default='Owner', help='Owner display name')
@click.option('--email', default='owner@homebake.local', help='Owner email')
@click.option('--password', default='Password123', help='Owner password')
@with_appcontext
def init_system(bakery_name, name, email, password):
    """
    Initialize a bakery and its owner account.

    Safe to run repeatedly: an existing owner email is left untouched.
    Tables are created if they do not exist yet.

    SECURITY: Change the default password immediately in production!
    """
    click.echo("START Initializing HomeBake...")
    db.create_all()

    existing = db.session.query(User).filter_by(email=normalize_email(email)).first()
    if existing:
        bakery = db.session.get(Bakery, existing.bakery_id)
        click.echo(f"PASS Using existing bakery: {bakery.name} (ID: {bakery.id})")
        click.echo(f"WARN  User '{existing.email}' already exists, skipping...")
        return

    try:
        bakery, owner = register_bakery(bakery_name=bakery_name, name=name, email=email, password=password)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        raise SystemExit(1)
    except ValueError as e:
        click.echo(f"FAIL Failed to initialize: {str(e)}")
        raise SystemExit(1)

    click.echo(f"PASS Created bakery: {bakery.name} (ID: {bakery.id})")
    click.echo(f"PASS Created owner: {owner.name} ({owner.email})")
    click.echo("\n" + "="*60)
    click.echo("DONE HomeBake Initialized Successfully!")
    click.echo("="*60)
    click.echo("\nSECURITY: change the owner password in production.")
    click.echo("Invite staff with: python -m flask invites create --role sales_rep")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@click.option('--bakery-id', type=int, help='Filter by bakery ID')
@with_appcontext
def list_users(bakery_id):
    """List all users with their roles."""
    query = db.session.query(User)
    if bakery_id:
        query = query.filter_by(bakery_id=bakery_id)

    users = query.order_by(User.bakery_id, User.id).all()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Bakery':<7} {'Name':<20} {'Email':<32} {'Active':<8} {'Role'}")
    click.echo("="*90)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.bakery_id:<7} {user.name:<20} {user.email:<32} {active_str:<8} {user.role or 'none'}")
    click.echo("="*90 + "\n")


@users_group.command('create')
@click.option('--bakery-id', type=int, help='Bakery ID (uses the first bakery if not specified)')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), prompt=True, help='Role')
@with_appcontext
def create_user_cli(bakery_id, name, email, password, role):
    """
    Create a user without an invite.

    Password requirements: 8+ chars with at least one letter and one digit.
    """
    bakery = db.session.get(Bakery, bakery_id) if bakery_id else db.session.query(Bakery).order_by(Bakery.id).first()
    if not bakery:
        click.echo("FAIL No bakery found. Run 'python -m flask system init' first.")
        return

    try:
        user = create_user(bakery_id=bakery.id, name=name, email=email, password=password, role=role)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, at least one letter and one digit")
        return
    except ValueError as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")
        return

    click.echo(f"PASS Created user: {user.name} ({user.email}) with role '{role}'")
    click.echo(f"     Bakery: {bakery.name} (ID: {bakery.id})")


@click.group('invites')
def invites_group():
    """QR staff invite commands."""


@invites_group.command('create')
@click.option('--role', type=click.Choice(list(STAFF_ROLES)), required=True, help='Role granted by the invite')
@click.option('--owner-email', help='Issuing owner (defaults to the first owner)')
@with_appcontext
def create_invite_cli(role, owner_email):
    """Issue a single-use invite and print its signup URL."""
    query = db.session.query(User).filter_by(role="owner", is_active=True)
    if owner_email:
        query = query.filter_by(email=normalize_email(owner_email))
    owner = query.order_by(User.id).first()
    if not owner:
        click.echo("FAIL No active owner found.")
        return

    invite = invite_service.create_invite(owner=owner, role=role)
    click.echo(f"PASS Invite for '{role}' expires at {invite.to_dict()['expires_at']}")
    click.echo(f"     {invite_service.invite_url(invite.token)}")


@click.group('push')
def push_group():
    """Web Push configuration commands."""


@push_group.command('generate-vapid')
def generate_vapid():
    """Print a new VAPID key pair (base64url, as browsers and pywebpush expect)."""
    from cryptography.hazmat.primitives import serialization
    from py_vapid import Vapid01
    from py_vapid.utils import b64urlencode

    vapid = Vapid01()
    vapid.generate_keys()
    public_raw = vapid.public_key.public_bytes(
        serialization.Encoding.X962,
        serialization.PublicFormat.UncompressedPoint,
    )
    private_raw = vapid.private_key.private_numbers().private_value.to_bytes(32, "big")

    click.echo(f"VAPID_PUBLIC_KEY={b64urlencode(public_raw)}")
    click.echo(f"VAPID_PRIVATE_KEY={b64urlencode(private_raw)}")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup')
@click.option('--session-retention-days', type=int, default=30, show_default=True,
              help='Keep expired/revoked session tokens this long')
@with_appcontext
def cleanup(session_retention_days):
    """Delete expired presence rows, old activities, expired invites and stale sessions."""
    presence = presence_service.cleanup_expired()
    activities = activity_service.cleanup_old_activities()
    invites = invite_service.cleanup_expired_invites()
    sessions = session_service.cleanup_expired_sessions(retention_days=session_retention_days)
    click.echo(f"PASS Removed {presence} presence rows, {activities} activities, "
               f"{invites} invites, {sessions} session tokens")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(invites_group)
    app.cli.add_command(push_group)
    app.cli.add_command(maintenance_group)
