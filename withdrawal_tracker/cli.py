import click
from flask.cli import with_appcontext

from withdrawal_tracker.extensions import db
from withdrawal_tracker.models.enums import Region, UserRole
from withdrawal_tracker.services.auth_service import register_user
from withdrawal_tracker.utils.exceptions import ServiceError


@click.command("create-user")
@click.option("--email", required=True)
@click.option("--password", required=True, prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--full-name", required=True)
@click.option("--role", required=True, type=click.Choice(UserRole.ALL))
@click.option("--region", "regional_assignment", type=click.Choice(Region.ALL), default=None)
@click.option("--create-tables", is_flag=True, help="Create missing tables first.")
@with_appcontext
def create_user_command(email, password, full_name, role, regional_assignment, create_tables):
    """Create a staff account, e.g. the first administrator."""
    if create_tables:
        db.create_all()
    try:
        user = register_user(email, password, full_name, role, regional_assignment=regional_assignment)
    except ServiceError as e:
        raise click.ClickException(e.message)
    click.echo(click.style(f"Created {user.role} {user.email} ({user.id})", fg="green"))
