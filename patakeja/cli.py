import json

import click
from flask.cli import AppGroup

from .models import User, UserRole, db
from .services.notifications import send_availability_checks
from .services.payments import reconcile_pending_payments, send_expiry_reminders

payments_cli = AppGroup("payments", help="Contact-payment jobs.")
notifications_cli = AppGroup("notifications", help="Landlord notification jobs.")
users_cli = AppGroup("users", help="User administration.")


@payments_cli.command("reconcile")
def reconcile_command():
    """Re-check stale pending payments with M-Pesa."""
    click.echo(json.dumps(reconcile_pending_payments()))


@payments_cli.command("send-reminders")
def send_reminders_command():
    """Email payers whose contact access is about to expire."""
    click.echo(json.dumps(send_expiry_reminders()))


@notifications_cli.command("availability-check")
def availability_check_command():
    """Ask landlords whether their listings are still available."""
    click.echo(json.dumps(send_availability_checks()))


@users_cli.command("make-admin")
@click.argument("email")
@click.option("--password", help="Set (or reset) the password as well.")
def make_admin_command(email, password):
    """Ensure EMAIL exists, is active and holds the admin role."""
    email = email.strip().lower()
    user = User.query.filter_by(email=email).first()
    if user is None:
        if not password:
            raise click.UsageError("--password is required when creating a new user")
        user = User(email=email)
        db.session.add(user)
    if password:
        user.set_password(password)
    user.is_active = True
    if not user.has_role("admin"):
        user.roles.append(UserRole(role="admin"))
    db.session.commit()
    click.echo(f"Admin ensured: {email}")


def register_cli(app):
    for group in (payments_cli, notifications_cli, users_cli):
        app.cli.add_command(group)
