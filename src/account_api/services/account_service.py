"""Account service: registration, login, profile self-service and user administration.

Every operation receives the request's session and, where one exists, the
authenticated actor. Permission checks go through
:func:`account_api.services.authorization.authorize`; a denial becomes a
:class:`~account_api.core.errors.ForbiddenError`. Each operation commits its
own transaction, and store connectivity failures surface as
:class:`~account_api.core.errors.TransientStoreError`.
"""

import functools
import uuid
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime, timedelta
from typing import Any, ParamSpec, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from account_api.core.config import Settings
from account_api.core.database import store_errors
from account_api.core.errors import (
    ForbiddenError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationFailedError,
)
from account_api.core.security import hash_password, password_needs_rehash, verify_password
from account_api.lib.exporter import SUPPORTED_FORMATS, ExportResult, export_users
from account_api.models.base import utcnow
from account_api.models.user import User, UserRole
from account_api.repositories.user_repository import EMAIL_TAKEN_MESSAGE, UserQuery, UserRepository
from account_api.schemas.auth import CreateAdminRequest, RegisterRequest
from account_api.schemas.user import (
    ProfileUpdateRequest,
    SearchRequest,
    Statistics,
    StatisticsResponse,
    StatisticsTimeframe,
    UserActivity,
    UserUpdateRequest,
)
from account_api.services import formatter, token_service
from account_api.services.authorization import Action, Intent, authorize

P = ParamSpec("P")
T = TypeVar("T")

SEARCH_MIN_LENGTH = 2
CURRENT_PASSWORD_INCORRECT = "Current password is incorrect"

_PROFILE_FIELDS = ("first_name", "last_name", "email")


def _store_operation(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
    """Run a service operation with store failures translated to TransientStoreError."""

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        session = args[0]
        async with store_errors(session):  # type: ignore[arg-type]
            return await func(*args, **kwargs)

    return wrapper


def _ensure(actor: User | None, intent: Intent) -> None:
    """Raise ForbiddenError unless ``actor`` may perform ``intent``."""
    decision = authorize(actor, intent)
    if not decision:
        actor_id = actor.id if actor is not None else None
        logger.warning(f"Denied {intent.action} for actor {actor_id}: {decision.reason}")
        raise ForbiddenError(decision.reason)


def _check_new_password(
    password: str,
    confirmation: str | None,
    *,
    min_length: int,
    field: str,
    errors: dict[str, list[str]],
) -> None:
    """Collect length and confirmation problems for a new password into ``errors``."""
    if len(password) < min_length:
        errors.setdefault(field, []).append(f"The {field.replace('_', ' ')} must be at least {min_length} characters.")
    if confirmation is not None and confirmation != password:
        errors.setdefault(field, []).append(f"The {field.replace('_', ' ')} confirmation does not match.")


async def _check_email_available(
    repo: UserRepository,
    email: str,
    errors: dict[str, list[str]],
    *,
    exclude_id: uuid.UUID | None = None,
) -> None:
    if await repo.email_taken(email, exclude_id=exclude_id):
        errors.setdefault("email", []).append(EMAIL_TAKEN_MESSAGE)


async def _get_or_404(repo: UserRepository, user_id: uuid.UUID) -> User:
    user = await repo.get(user_id)
    if user is None:
        raise NotFoundError
    return user


async def _create_account(
    session: AsyncSession,
    request: RegisterRequest | CreateAdminRequest,
    role: UserRole,
    settings: Settings,
) -> User:
    errors: dict[str, list[str]] = {}
    _check_new_password(
        request.password,
        request.password_confirmation,
        min_length=settings.password_min_length,
        field="password",
        errors=errors,
    )
    repo = UserRepository(session)
    await _check_email_available(repo, request.email, errors)
    if errors:
        raise ValidationFailedError(errors)

    return await repo.add(
        User(
            first_name=request.first_name,
            last_name=request.last_name,
            email=request.email,
            password_hash=hash_password(request.password),
            role=role.value,
        )
    )


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


@_store_operation
async def register(session: AsyncSession, request: RegisterRequest, settings: Settings) -> tuple[User, str]:
    """Create an account and issue its first token.

    Registration is not a login: ``first_login``/``last_login`` stay unset.

    Args:
        session: The database session.
        request: Registration data; ``role`` defaults to ``user``.
        settings: Application settings.

    Returns:
        The new user and the plaintext bearer token.

    Raises:
        ValidationFailedError: If the password is too short or unconfirmed,
            or the email is already registered.
    """
    user = await _create_account(session, request, request.role or UserRole.USER, settings)
    token = await token_service.issue(session, user.id, nbytes=settings.token_bytes)
    await session.commit()
    logger.info(f"Registered user {user.id} with role {user.role}")
    return user, token


@_store_operation
async def login(session: AsyncSession, email: str, password: str, settings: Settings) -> tuple[User, str]:
    """Verify credentials, stamp login times and rotate the user's tokens.

    Every token the user held before this call is revoked and exactly one new
    token is issued, in the same transaction.

    Args:
        session: The database session.
        email: The account email (exact match).
        password: The plaintext password.
        settings: Application settings.

    Returns:
        The user and the new plaintext bearer token.

    Raises:
        InvalidCredentialsError: For an unknown email or a wrong password alike.
    """
    repo = UserRepository(session)
    user = await repo.get_by_email(email)
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Rejected login attempt with invalid credentials")
        raise InvalidCredentialsError

    user.record_login(utcnow())
    if password_needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)

    revoked = await token_service.revoke_all(session, user.id)
    token = await token_service.issue(session, user.id, nbytes=settings.token_bytes)
    await session.commit()
    logger.info(f"User {user.id} logged in ({revoked} previous token(s) revoked)")
    return user, token


@_store_operation
async def logout(session: AsyncSession, token: str) -> None:
    """Revoke the presented token. A token that is already gone is not an error."""
    revoked = await token_service.revoke(session, token)
    await session.commit()
    if revoked:
        logger.info("Token revoked on logout")


@_store_operation
async def create_admin(
    session: AsyncSession,
    actor: User | None,
    request: CreateAdminRequest,
    settings: Settings,
) -> User:
    """Create another admin account (admin only). No token is issued."""
    _ensure(actor, Intent.of(Action.CREATE_ADMIN))
    user = await _create_account(session, request, UserRole.ADMIN, settings)
    await session.commit()
    logger.info(f"Admin {actor.id} created admin account {user.id}")  # type: ignore[union-attr]
    return user


# ---------------------------------------------------------------------------
# Profile self-service
# ---------------------------------------------------------------------------


def view_self(actor: User | None) -> User:
    _ensure(actor, Intent.of(Action.VIEW_SELF))
    return actor  # type: ignore[return-value]


@_store_operation
async def update_own_profile(
    session: AsyncSession,
    actor: User | None,
    request: ProfileUpdateRequest,
    settings: Settings,
) -> User:
    """Update the actor's own name/email and optionally their password.

    Raises:
        ValidationFailedError: Bad or taken email, missing current password,
            or an unacceptable new password.
        InvalidCredentialsError: The current password does not verify.
    """
    _ensure(actor, Intent.of(Action.UPDATE_SELF))
    user: User = actor  # type: ignore[assignment]
    fields = request.model_dump(exclude_unset=True, exclude_none=True)
    repo = UserRepository(session)

    errors: dict[str, list[str]] = {}
    new_password = fields.get("new_password")
    if new_password is not None:
        if not fields.get("current_password"):
            errors.setdefault("current_password", []).append(
                "The current password field is required when new password is present."
            )
        _check_new_password(
            new_password,
            fields.get("new_password_confirmation"),
            min_length=settings.password_min_length,
            field="new_password",
            errors=errors,
        )
    if "email" in fields and fields["email"] != user.email:
        await _check_email_available(repo, fields["email"], errors, exclude_id=user.id)
    if errors:
        raise ValidationFailedError(errors)

    if new_password is not None:
        if not verify_password(fields["current_password"], user.password_hash):
            raise InvalidCredentialsError(CURRENT_PASSWORD_INCORRECT, status_code=422)
        user.password_hash = hash_password(new_password)

    for field in _PROFILE_FIELDS:
        if field in fields:
            setattr(user, field, fields[field])

    await repo.flush()
    await session.commit()
    logger.info(f"User {user.id} updated own profile{' and password' if new_password is not None else ''}")
    return user


@_store_operation
async def change_password(
    session: AsyncSession,
    actor: User | None,
    current_password: str,
    new_password: str,
    settings: Settings,
    new_password_confirmation: str | None = None,
) -> None:
    """Replace the actor's password after verifying the current one.

    Raises:
        ValidationFailedError: The new password is too short or unconfirmed.
        InvalidCredentialsError: The current password does not verify.
    """
    _ensure(actor, Intent.of(Action.CHANGE_OWN_PASSWORD))
    user: User = actor  # type: ignore[assignment]

    errors: dict[str, list[str]] = {}
    _check_new_password(
        new_password,
        new_password_confirmation,
        min_length=settings.password_min_length,
        field="new_password",
        errors=errors,
    )
    if errors:
        raise ValidationFailedError(errors)

    if not verify_password(current_password, user.password_hash):
        raise InvalidCredentialsError(CURRENT_PASSWORD_INCORRECT, status_code=422)

    user.password_hash = hash_password(new_password)
    await session.commit()
    logger.info(f"User {user.id} changed password")


# ---------------------------------------------------------------------------
# Single-user administration
# ---------------------------------------------------------------------------


@_store_operation
async def view_user(session: AsyncSession, actor: User | None, target_id: uuid.UUID) -> User:
    """Return a user by id. Only the user themselves or an admin may view it.

    Raises:
        NotFoundError: No such user.
        ForbiddenError: A non-admin asked for someone else.
    """
    target = await _get_or_404(UserRepository(session), target_id)
    _ensure(actor, Intent.on(Action.VIEW_OTHER, target_id))
    return target


@_store_operation
async def update_user(
    session: AsyncSession,
    actor: User | None,
    target_id: uuid.UUID,
    request: UserUpdateRequest,
    settings: Settings,
) -> User:
    """Partially update a user by id.

    Names and email are applied for the user themselves or an admin. ``role``
    is applied only when the actor may change the target's role (an admin on
    another account) and is otherwise dropped. ``password`` is applied only
    for an admin resetting another account's password and is otherwise
    dropped.

    Raises:
        NotFoundError: No such user.
        ForbiddenError: A non-admin targeted someone else.
        ValidationFailedError: Email taken or reset password unacceptable.
    """
    repo = UserRepository(session)
    target = await _get_or_404(repo, target_id)
    _ensure(actor, Intent.on(Action.UPDATE_OTHER, target_id))

    fields = request.model_dump(exclude_unset=True, exclude_none=True)
    changes: dict[str, Any] = {field: fields[field] for field in _PROFILE_FIELDS if field in fields}
    errors: dict[str, list[str]] = {}
    reset_password: str | None = None

    if "role" in fields:
        if authorize(actor, Intent.on(Action.CHANGE_OTHER_ROLE, target_id)):
            changes["role"] = UserRole(fields["role"]).value
        else:
            logger.debug(f"Dropped role field in update of {target_id} by {actor.id}")  # type: ignore[union-attr]

    if "password" in fields:
        if authorize(actor, Intent.on(Action.RESET_OTHER_PASSWORD, target_id)):
            _check_new_password(
                fields["password"],
                fields.get("password_confirmation"),
                min_length=settings.password_min_length,
                field="password",
                errors=errors,
            )
            reset_password = fields["password"]
        else:
            logger.debug(f"Dropped password field in update of {target_id} by {actor.id}")  # type: ignore[union-attr]

    if "email" in changes and changes["email"] != target.email:
        await _check_email_available(repo, changes["email"], errors, exclude_id=target.id)
    if errors:
        raise ValidationFailedError(errors)

    if reset_password is not None:
        changes["password_hash"] = hash_password(reset_password)
    for field, value in changes.items():
        setattr(target, field, value)

    await repo.flush()
    await session.commit()
    logger.info(f"User {target.id} updated by {actor.id}: {sorted(changes)}")  # type: ignore[union-attr]
    return target


@_store_operation
async def delete_user(session: AsyncSession, actor: User | None, target_id: uuid.UUID) -> User:
    """Delete a user (admin only, never oneself), revoking their tokens first.

    Returns:
        The deleted user, detached from the session.

    Raises:
        ForbiddenError: Not an admin, or the admin targeted themselves.
        NotFoundError: No such user.
    """
    _ensure(actor, Intent.on(Action.DELETE_OTHER, target_id))
    repo = UserRepository(session)
    target = await _get_or_404(repo, target_id)

    revoked = await token_service.revoke_all(session, target.id)
    await repo.delete(target)
    await session.commit()
    logger.info(f"User {target_id} deleted by {actor.id} ({revoked} token(s) revoked)")  # type: ignore[union-attr]
    return target


@_store_operation
async def change_role(session: AsyncSession, actor: User | None, target_id: uuid.UUID, role: UserRole) -> User:
    """Set another user's role (admin only, never one's own).

    Raises:
        ForbiddenError: Not an admin, or the admin targeted themselves.
        NotFoundError: No such user.
    """
    _ensure(actor, Intent.on(Action.CHANGE_OTHER_ROLE, target_id))
    target = await _get_or_404(UserRepository(session), target_id)
    previous = target.role
    target.role = UserRole(role).value
    await session.commit()
    logger.info(f"User {target.id} role changed {previous} -> {target.role} by {actor.id}")  # type: ignore[union-attr]
    return target


# ---------------------------------------------------------------------------
# Bulk administration and reporting
# ---------------------------------------------------------------------------


@_store_operation
async def bulk_change_role(
    session: AsyncSession,
    actor: User | None,
    user_ids: Iterable[uuid.UUID],
    role: UserRole,
) -> int:
    """Set ``role`` on many users at once.

    The whole request is refused if it includes the actor. Unknown ids are
    skipped, not rolled back.

    Returns:
        The number of users actually updated.
    """
    ids = list(dict.fromkeys(user_ids))
    _ensure(actor, Intent.bulk_role_update(ids))
    if not ids:
        raise ValidationFailedError.for_field("user_ids", "The user ids field is required.")

    updated = await UserRepository(session).set_role_for(ids, UserRole(role).value)
    await session.commit()
    logger.info(f"Bulk role update to {role} by {actor.id}: {updated} of {len(ids)} updated")  # type: ignore[union-attr]
    return updated


@_store_operation
async def list_users(
    session: AsyncSession,
    actor: User | None,
    *,
    role: UserRole | None = None,
    search: str | None = None,
    page: int = 1,
    per_page: int = 10,
) -> tuple[list[User], int]:
    """List users (admin only), optionally filtered by role and free text.

    Returns:
        Tuple of (users on the requested page, total matches).
    """
    _ensure(actor, Intent.of(Action.LIST_USERS))
    errors: dict[str, list[str]] = {}
    if page < 1:
        errors["page"] = ["The page must be at least 1."]
    if per_page < 1:
        errors["per_page"] = ["The per page must be at least 1."]
    if errors:
        raise ValidationFailedError(errors)

    query = UserQuery(
        role=UserRole(role).value if role else None,
        search=search or None,
        page=page,
        per_page=per_page,
    )
    return await UserRepository(session).query(query)


@_store_operation
async def search(
    session: AsyncSession,
    actor: User | None,
    request: SearchRequest,
    settings: Settings,
) -> tuple[list[User], int]:
    """Search users by name, email or full name (admin only).

    Raises:
        ValidationFailedError: The search term is shorter than two characters.
    """
    _ensure(actor, Intent.of(Action.SEARCH))
    term = request.search.strip()
    if len(term) < SEARCH_MIN_LENGTH:
        raise ValidationFailedError.for_field(
            "search", f"The search must be at least {SEARCH_MIN_LENGTH} characters."
        )

    query = UserQuery(
        role=request.role.value if request.role else None,
        search=term,
        match_full_name=True,
        sort_by=request.sort_by,
        sort_order=request.sort_order,
        page=request.page,
        per_page=settings.search_page_size,
    )
    return await UserRepository(session).query(query)


def _percentage(count: int, total: int) -> float:
    return round(count / total * 100, 2) if total > 0 else 0


@_store_operation
async def statistics(
    session: AsyncSession,
    actor: User | None,
    settings: Settings,
    now: datetime | None = None,
) -> StatisticsResponse:
    """Aggregate account counts (admin only). Percentages are 0 when there are no users."""
    _ensure(actor, Intent.of(Action.VIEW_STATISTICS))
    now = now or utcnow()
    repo = UserRepository(session)

    total = await repo.count()
    admins = await repo.count(role=UserRole.ADMIN.value)
    users = await repo.count(role=UserRole.USER.value)
    recent = await repo.count(created_since=now - timedelta(days=settings.stats_recent_days))
    active = await repo.count(active_since=now - timedelta(days=settings.stats_active_days))

    return StatisticsResponse(
        statistics=Statistics(
            total_users=total,
            admin_count=admins,
            user_count=users,
            recent_users=recent,
            active_users=active,
            admin_percentage=_percentage(admins, total),
            active_percentage=_percentage(active, total),
        ),
        timeframe=StatisticsTimeframe(
            recent_days=settings.stats_recent_days,
            active_days=settings.stats_active_days,
        ),
    )


@_store_operation
async def activity(
    session: AsyncSession,
    actor: User | None,
    settings: Settings,
    now: datetime | None = None,
) -> list[UserActivity]:
    """Most recently active users (admin only), never-logged-in users last."""
    _ensure(actor, Intent.of(Action.VIEW_ACTIVITY))
    now = now or utcnow()
    users = await UserRepository(session).most_recently_active(settings.activity_limit)
    return [formatter.to_activity(user, now) for user in users]


@_store_operation
async def export(
    session: AsyncSession,
    actor: User | None,
    output_format: str = "json",
    role: UserRole | None = None,
    now: datetime | None = None,
) -> ExportResult:
    """Export every user (admin only) as JSON or CSV, without password hashes.

    Raises:
        ValidationFailedError: The format is neither ``json`` nor ``csv``.
    """
    _ensure(actor, Intent.of(Action.EXPORT))
    output_format = output_format.lower()
    if output_format not in SUPPORTED_FORMATS:
        raise ValidationFailedError.for_field("format", f"The format must be one of: {', '.join(SUPPORTED_FORMATS)}.")

    users = await UserRepository(session).list_all(role=UserRole(role).value if role else None)
    records = [formatter.to_record(user).model_dump() for user in users]
    result = export_users(records, output_format, exported_at=now or utcnow())
    logger.info(f"Exported {result.record_count} user(s) as {output_format} for {actor.id}")  # type: ignore[union-attr]
    return result


# ---------------------------------------------------------------------------
# Operator provisioning (CLI only, no request actor)
# ---------------------------------------------------------------------------


@_store_operation
async def provision(session: AsyncSession, request: CreateAdminRequest, role: UserRole, settings: Settings) -> User:
    """Create an account with any role on behalf of a local operator.

    Applies the same password and email rules as registration but issues no
    token. Only reachable from the command line.
    """
    user = await _create_account(session, request, role, settings)
    await session.commit()
    logger.info(f"Provisioned {user.role} account {user.id}")
    return user


@_store_operation
async def assign_role(session: AsyncSession, email: str, role: UserRole) -> User:
    """Set the role of the account with ``email`` on behalf of a local operator.

    Raises:
        NotFoundError: No account has that email.
    """
    user = await UserRepository(session).get_by_email(email)
    if user is None:
        raise NotFoundError
    user.role = UserRole(role).value
    await session.commit()
    logger.info(f"Operator set role of {user.id} to {user.role}")
    return user


async def seed_admin(session: AsyncSession, settings: Settings) -> tuple[User, bool]:
    """Create the configured default admin unless an account with its email exists.

    Returns:
        Tuple of (the admin account, whether it was created by this call).
    """
    async with store_errors(session):
        existing = await UserRepository(session).get_by_email(settings.seed_admin_email)
    if existing is not None:
        logger.info(f"Seed admin {settings.seed_admin_email} already exists, skipping")
        return existing, False
    request = CreateAdminRequest(
        first_name=settings.seed_admin_first_name,
        last_name=settings.seed_admin_last_name,
        email=settings.seed_admin_email,
        password=settings.seed_admin_password,
    )
    return await provision(session, request, UserRole.ADMIN, settings), True
