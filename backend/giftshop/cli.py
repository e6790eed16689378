# Overview: Flask CLI command groups for admin bootstrap and maintenance.

# backend/giftshop/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Database:
# - python -m flask db upgrade
#   Apply migrations (Flask-Migrate).
#
# Admin accounts:
# - python -m flask admins create --username pinkbearsadmin --password "..."
#   Create an admin (prompts for the password if omitted).
# - python -m flask admins list
#   List admin usernames and active session counts.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --retention-days 30
#   Delete expired/revoked admin sessions older than the retention window.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Admin, AdminSession
from .services import auth_service, session_service
from .services.auth_service import PasswordValidationError
from .time_utils import utcnow


@click.group('admins')
def admins_group():
    """Admin account commands."""


@admins_group.command('create')
@click.option('--username', prompt=True, help='Admin username (unique)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Admin password')
@with_appcontext
def create_admin_cli(username, password):
    try:
        admin = auth_service.create_admin(username, password)
    except PasswordValidationError as e:
        raise click.ClickException(f"Password validation failed: {e}")
    except ValueError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created admin: {admin.username} (ID: {admin.id})")


@admins_group.command('list')
@with_appcontext
def list_admins_cli():
    admins = db.session.query(Admin).order_by(Admin.id.asc()).all()
    if not admins:
        click.echo("No admins found.")
        return

    now = utcnow()
    click.echo(f"{'ID':<5} {'Username':<30} {'Active sessions'}")
    for admin in admins:
        active = db.session.query(AdminSession).filter(
            AdminSession.admin_id == admin.id,
            AdminSession.is_revoked.is_(False),
            AdminSession.expires_at >= now,
        ).count()
        click.echo(f"{admin.id:<5} {admin.username:<30} {active}")


@click.group('maintenance')
def maintenance_group():
    """Housekeeping commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--retention-days', default=30, show_default=True, type=int)
@with_appcontext
def cleanup_sessions_cli(retention_days):
    deleted = session_service.cleanup_expired_sessions(retention_days=retention_days)
    click.echo(f"PASS Deleted {deleted} admin session(s)")


def register_commands(app):
    app.cli.add_command(admins_group)
    app.cli.add_command(maintenance_group)
