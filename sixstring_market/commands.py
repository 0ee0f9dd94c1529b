# commands.py
import click
from flask.cli import with_appcontext

from .db import db
from .errors import MarketError
from .models import User, UserRole
from .services.user_service import create_admin_svc


@click.group(name="market")
def market_cli():
    """SixString Market maintenance commands."""


@market_cli.command("init-db")
@with_appcontext
def init_db_command():
    """Creates the database tables."""
    db.create_all()
    click.echo("Initialized the database.")


@market_cli.command("create-admin")
@with_appcontext
@click.option("--username", prompt=True, help="Admin username.")
@click.option("--email", prompt=True, help="Admin email.")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True, help="Admin password.")
def create_admin_command(username, email, password):
    """Provision an administrator account (or promote an existing user)."""
    existing = User.query.filter_by(username=username).first()
    if existing:
        if existing.role != UserRole.ADMIN:
            existing.role = UserRole.ADMIN
            db.session.commit()
            click.echo(f"Promoted '{username}' to admin.")
        else:
            click.echo(f"User '{username}' is already an admin.")
        return
    try:
        admin = create_admin_svc(None, username, password, email)
    except MarketError as e:
        raise click.ClickException(e.message) from e
    click.echo(f"Created admin '{admin.username}' (id {admin.id}).")


def init_app(app):
    """Register CLI commands with the Flask app."""
    app.cli.add_command(market_cli)
