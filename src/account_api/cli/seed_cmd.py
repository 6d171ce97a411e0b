"""CLI command that seeds the default admin account.

Idempotent: when an account with the configured admin email already
exists nothing is changed. The account is taken from the
``SEED_ADMIN_*`` settings and defaults to ``admin@example.com`` with
password ``AdminPassword123``, which should be changed after first login.
"""

import asyncio

import typer


def seed() -> None:
    """Create the default admin account if it does not exist yet."""
    asyncio.run(_seed())


async def _seed() -> None:
    from account_api.core.config import get_settings
    from account_api.core.database import dispose_engine, get_session_factory, init_engine
    from account_api.core.errors import AccountError
    from account_api.services.account_service import seed_admin

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)

    try:
        factory = get_session_factory()
        async with factory() as session:
            user, created = await seed_admin(session, settings)
    except AccountError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1) from e
    finally:
        await dispose_engine()

    if created:
        typer.echo(f"Admin user created: {user.email}")
        typer.echo("Remember to change the default password after first login.")
    else:
        typer.echo(f"Admin user '{user.email}' already exists, nothing to do")
