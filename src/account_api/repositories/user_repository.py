"""User store: persistence and the fixed set of user queries the service needs."""

import enum
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import ColumnElement, Select, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from account_api.core.errors import ValidationFailedError
from account_api.models.base import utcnow
from account_api.models.user import User

EMAIL_TAKEN_MESSAGE = "The email has already been taken."


class SortField(enum.StrEnum):
    NAME = "name"
    EMAIL = "email"
    CREATED_AT = "created_at"
    LAST_LOGIN = "last_login"


class SortOrder(enum.StrEnum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class UserQuery:
    """Filter, sort and pagination parameters for :meth:`UserRepository.query`.

    ``search`` is a case-insensitive substring matched against first name,
    last name and email; with ``match_full_name`` it is also matched against
    ``"first last"``.
    """

    role: str | None = None
    search: str | None = None
    match_full_name: bool = False
    sort_by: SortField = SortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC
    page: int = 1
    per_page: int = 10


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _search_clause(term: str, *, match_full_name: bool) -> ColumnElement[bool]:
    pattern = _like_pattern(term)
    clauses = [
        User.first_name.ilike(pattern, escape="\\"),
        User.last_name.ilike(pattern, escape="\\"),
        User.email.ilike(pattern, escape="\\"),
    ]
    if match_full_name:
        clauses.append((User.first_name + " " + User.last_name).ilike(pattern, escape="\\"))
    return or_(*clauses)


def _order_by(stmt: Select, sort_by: SortField, sort_order: SortOrder) -> Select:
    def direction(column: ColumnElement) -> ColumnElement:
        return column.asc() if sort_order == SortOrder.ASC else column.desc()

    match sort_by:
        case SortField.NAME:
            stmt = stmt.order_by(direction(User.first_name), direction(User.last_name))
        case SortField.EMAIL:
            stmt = stmt.order_by(direction(User.email))
        case SortField.LAST_LOGIN:
            stmt = stmt.order_by(direction(User.last_login).nulls_last())
        case _:
            stmt = stmt.order_by(direction(User.created_at))
    # Stable pagination when the sort key ties
    return stmt.order_by(User.id)


class UserRepository:
    """Async user store bound to one session.

    Methods flush but never commit; the calling service owns the transaction.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, user_id: uuid.UUID) -> User | None:
        return await self.session.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def email_taken(self, email: str, *, exclude_id: uuid.UUID | None = None) -> bool:
        """Return True if another user already holds ``email``."""
        stmt = select(User.id).where(User.email == email)
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        result = await self.session.execute(stmt.limit(1))
        return result.scalar_one_or_none() is not None

    async def add(self, user: User) -> User:
        """Insert a user; a unique-constraint race on email becomes a validation error."""
        self.session.add(user)
        await self.flush()
        await self.session.refresh(user)
        return user

    async def flush(self) -> None:
        """Flush pending changes, translating an email collision into a validation error."""
        try:
            await self.session.flush()
        except IntegrityError as exc:
            await self.session.rollback()
            if "email" in str(exc.orig).lower():
                raise ValidationFailedError.for_field("email", EMAIL_TAKEN_MESSAGE) from exc
            raise

    async def delete(self, user: User) -> None:
        await self.session.delete(user)
        await self.session.flush()

    async def query(self, params: UserQuery) -> tuple[list[User], int]:
        """Return one page of users matching ``params`` and the total match count."""
        stmt = select(User)
        count_stmt = select(func.count(User.id))

        if params.role:
            stmt = stmt.where(User.role == params.role)
            count_stmt = count_stmt.where(User.role == params.role)

        if params.search:
            clause = _search_clause(params.search, match_full_name=params.match_full_name)
            stmt = stmt.where(clause)
            count_stmt = count_stmt.where(clause)

        total = (await self.session.execute(count_stmt)).scalar_one()

        offset = (params.page - 1) * params.per_page
        stmt = _order_by(stmt, params.sort_by, params.sort_order).offset(offset).limit(params.per_page)
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def list_all(self, *, role: str | None = None) -> list[User]:
        """Return every user (optionally of one role), oldest first."""
        stmt = select(User).order_by(User.created_at, User.id)
        if role:
            stmt = stmt.where(User.role == role)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def set_role_for(self, user_ids: Sequence[uuid.UUID], role: str) -> int:
        """Set ``role`` on every existing user in ``user_ids``; return rows updated."""
        if not user_ids:
            return 0
        stmt = (
            update(User)
            .where(User.id.in_(list(user_ids)))
            .values(role=role, updated_at=utcnow())
            .returning(User.id)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return len(result.scalars().all())

    async def count(
        self,
        *,
        role: str | None = None,
        created_since: datetime | None = None,
        active_since: datetime | None = None,
    ) -> int:
        stmt = select(func.count(User.id))
        if role is not None:
            stmt = stmt.where(User.role == role)
        if created_since is not None:
            stmt = stmt.where(User.created_at >= created_since)
        if active_since is not None:
            stmt = stmt.where(User.last_login >= active_since)
        return (await self.session.execute(stmt)).scalar_one()

    async def most_recently_active(self, limit: int) -> list[User]:
        """Users ordered by last login, newest first; never-logged-in users last."""
        stmt = select(User).order_by(User.last_login.desc().nulls_last(), User.created_at.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
