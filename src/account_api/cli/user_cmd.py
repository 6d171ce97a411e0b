"""User management CLI commands for local operators."""

import asyncio

import typer

from account_api.models.user import UserRole

user_app = typer.Typer()


@user_app.command("create")
def create_user(
    first_name: str = typer.Option(..., prompt=True, help="First name"),
    last_name: str = typer.Option(..., prompt=True, help="Last name"),
    email: str = typer.Option(..., prompt=True, help="Email address"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True, help="Password"),
    role: UserRole = typer.Option(UserRole.USER, prompt=True, help="User role (admin/user)"),
) -> None:
    """Create a new user interactively."""
    asyncio.run(_create_user(first_name, last_name, email, password, role))


async def _create_user(first_name: str, last_name: str, email: str, password: str, role: UserRole) -> None:
    """Async implementation of user creation."""
    from pydantic import ValidationError

    from account_api.core.config import get_settings
    from account_api.core.database import dispose_engine, get_session_factory, init_engine
    from account_api.core.errors import AccountError, ValidationFailedError
    from account_api.schemas.auth import CreateAdminRequest
    from account_api.services.account_service import provision

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)

    try:
        request = CreateAdminRequest(first_name=first_name, last_name=last_name, email=email, password=password)
        factory = get_session_factory()
        async with factory() as session:
            user = await provision(session, request, role, settings)
            typer.echo(f"User '{user.email}' created with role '{user.role}'")
    except ValidationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    except ValidationFailedError as e:
        for field, messages in e.errors.items():
            for message in messages:
                typer.echo(f"Error: {field}: {message}", err=True)
        raise typer.Exit(code=1) from e
    except AccountError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1) from e
    finally:
        await dispose_engine()


@user_app.command("list")
def list_users(
    role: UserRole | None = typer.Option(None, "--role", help="Only list users with this role"),
) -> None:
    """List all users."""
    asyncio.run(_list_users(role))


async def _list_users(role: UserRole | None) -> None:
    """Async implementation of user listing."""
    from account_api.core.config import get_settings
    from account_api.core.database import dispose_engine, get_session_factory, init_engine
    from account_api.repositories.user_repository import UserRepository

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)

    try:
        factory = get_session_factory()
        async with factory() as session:
            users = await UserRepository(session).list_all(role=role.value if role else None)
            typer.echo(f"{'Name':<30} {'Email':<35} {'Role':<6} {'Last login':<20}")
            typer.echo("-" * 94)
            for user in users:
                last_login = f"{user.last_login:%Y-%m-%d %H:%M:%S}" if user.last_login else "never"
                typer.echo(f"{user.full_name:<30} {user.email:<35} {user.role:<6} {last_login:<20}")
            typer.echo(f"\nTotal: {len(users)}")
    finally:
        await dispose_engine()


@user_app.command("set-role")
def set_role(
    email: str = typer.Argument(..., help="Email of the account to change"),
    role: UserRole = typer.Argument(..., help="New role (admin/user)"),
) -> None:
    """Change the role of an existing user."""
    asyncio.run(_set_role(email, role))


async def _set_role(email: str, role: UserRole) -> None:
    """Async implementation of role assignment."""
    from account_api.core.config import get_settings
    from account_api.core.database import dispose_engine, get_session_factory, init_engine
    from account_api.core.errors import AccountError
    from account_api.services.account_service import assign_role

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)

    try:
        factory = get_session_factory()
        async with factory() as session:
            user = await assign_role(session, email, role)
            typer.echo(f"User '{user.email}' now has role '{user.role}'")
    except AccountError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1) from e
    finally:
        await dispose_engine()
