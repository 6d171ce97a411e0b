"""Token store: persisted digests of issued bearer tokens."""

import uuid
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from account_api.models.access_token import AccessToken


class TokenRepository:
    """Async token store bound to one session. Flushes, never commits."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(self, user_id: uuid.UUID, token_hash: str, *, name: str = "auth_token") -> AccessToken:
        token = AccessToken(user_id=user_id, token_hash=token_hash, name=name)
        self.session.add(token)
        await self.session.flush()
        return token

    async def find_by_hash(self, token_hash: str) -> AccessToken | None:
        """Return the token row with its owning user eagerly loaded."""
        result = await self.session.execute(
            select(AccessToken).options(joinedload(AccessToken.user)).where(AccessToken.token_hash == token_hash)
        )
        return result.scalar_one_or_none()

    async def touch(self, token: AccessToken, when: datetime) -> None:
        token.last_used_at = when
        await self.session.flush()

    async def delete_by_hash(self, token_hash: str) -> int:
        result = await self.session.execute(delete(AccessToken).where(AccessToken.token_hash == token_hash))
        return result.rowcount or 0

    async def delete_for_user(self, user_id: uuid.UUID) -> int:
        result = await self.session.execute(delete(AccessToken).where(AccessToken.user_id == user_id))
        return result.rowcount or 0
