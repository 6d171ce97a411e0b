"""Schema migration commands for the account store (``users``, ``access_tokens``)."""

from typing import TYPE_CHECKING

import typer
from loguru import logger

if TYPE_CHECKING:
    from alembic.config import Config

db_app = typer.Typer()

ALEMBIC_CONFIG = "alembic.ini"


def _alembic_config() -> "Config":
    from alembic.config import Config

    return Config(ALEMBIC_CONFIG)


@db_app.command()
def upgrade(
    revision: str = typer.Argument("head", help="Target revision"),
) -> None:
    """Apply account schema migrations up to the target revision."""
    from alembic import command

    logger.info(f"Migrating account schema up to {revision}")
    command.upgrade(_alembic_config(), revision)
    typer.echo(f"Account schema at {revision}")


@db_app.command()
def downgrade(
    revision: str = typer.Argument("-1", help="Target revision"),
) -> None:
    """Roll the account schema back to the target revision."""
    from alembic import command

    logger.info(f"Rolling account schema back to {revision}")
    command.downgrade(_alembic_config(), revision)
    typer.echo(f"Account schema rolled back to {revision}")


@db_app.command()
def current() -> None:
    """Show the account schema's current revision."""
    from alembic import command

    command.current(_alembic_config(), verbose=True)
