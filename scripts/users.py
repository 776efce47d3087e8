"""CLI to create users and run the daily usage rollover against MongoDB."""

import sys
from datetime import date
from pathlib import Path

import click

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from water_tracker.services import (  # noqa: E402  # pylint: disable=wrong-import-position
    accounts,
    database,
    rollover,
)
from water_tracker.services.errors import (  # noqa: E402  # pylint: disable=wrong-import-position
    WaterTrackerError,
)


@click.group()
def cli() -> None:
    """Manage water usage tracker users."""
    database.get_client()
    database.ensure_indexes()
    accounts.ensure_admin_exists()


@cli.command("create-user")
@click.option("--username", prompt="Username", help="Login name for the user")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Login password",
)
def create_user(username: str, password: str) -> None:
    """Register a user and print their usage API key."""
    try:
        user = accounts.register(username, password)
    except WaterTrackerError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(
        "\nUser created. Store this API key securely; "
        "it is the only credential for reporting usage.\n"
    )
    click.echo(f"User   : {user.username}")
    click.echo(f"API key: {user.api_key}\n")


@cli.command("rollover")
@click.option(
    "--date",
    "day",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Date of the new open entries (defaults to today)",
)
def run_rollover(day) -> None:
    """Archive every user's open usage entry and start a zero entry."""
    today: date | None = day.date() if day else None
    report = rollover.run_rollover(today)

    click.echo(
        f"Rollover for {report.day}: {report.users_processed} processed, "
        f"{report.users_failed} failed"
    )
    for error in report.errors:
        click.echo(f"  {error}", err=True)

    if not report.success:
        sys.exit(1)


if __name__ == "__main__":
    cli()  # pylint: disable=no-value-for-parameter
