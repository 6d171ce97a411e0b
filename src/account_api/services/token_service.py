"""Bearer token issuance, revocation and resolution.

Tokens are opaque random strings. Only a SHA-256 digest is stored, so the
plaintext returned by :func:`issue` cannot be recovered later.  Issue and
revoke only flush: the caller commits, which lets login revoke and re-issue
inside one transaction.
"""

import uuid

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from account_api.core.security import generate_token, hash_token
from account_api.models.base import utcnow
from account_api.models.user import User
from account_api.repositories.token_repository import TokenRepository


async def issue(session: AsyncSession, user_id: uuid.UUID, *, nbytes: int = 40, name: str = "auth_token") -> str:
    """Create and persist a new token for ``user_id``.

    Args:
        session: The database session.
        user_id: Owner of the token.
        nbytes: Bytes of randomness in the token.
        name: Label stored alongside the token.

    Returns:
        The plaintext token. This is the only time it is available.
    """
    plaintext = generate_token(nbytes)
    await TokenRepository(session).add(user_id, hash_token(plaintext), name=name)
    logger.debug(f"Issued token for user {user_id}")
    return plaintext


async def revoke(session: AsyncSession, token: str) -> bool:
    """Delete a single token by its plaintext value. Returns False if it was already gone."""
    removed = await TokenRepository(session).delete_by_hash(hash_token(token))
    return removed > 0


async def revoke_all(session: AsyncSession, user_id: uuid.UUID) -> int:
    """Delete every token owned by ``user_id``. Returns the number removed."""
    removed = await TokenRepository(session).delete_for_user(user_id)
    if removed:
        logger.debug(f"Revoked {removed} token(s) for user {user_id}")
    return removed


async def resolve(session: AsyncSession, token: str) -> User | None:
    """Return the owner of a live token, or None if the token is unknown or revoked.

    Records the time of use on the token row.
    """
    if not token:
        return None
    repo = TokenRepository(session)
    record = await repo.find_by_hash(hash_token(token))
    if record is None:
        return None
    await repo.touch(record, utcnow())
    await session.commit()
    return record.user
