"""FastAPI dependency injection for database sessions, settings and the request actor.

The bearer token is resolved once per request into an explicit ``User``
that routers pass to the account service; nothing reads a global
"current user".
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from account_api.core.config import Settings, get_settings
from account_api.core.database import get_session_factory, store_errors
from account_api.models.user import User
from account_api.services import token_service

bearer_scheme = HTTPBearer(auto_error=False)

UNAUTHENTICATED_DETAIL = "Unauthenticated."


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Yield an async database session with per-request lifecycle."""
    factory = get_session_factory()
    async with factory() as session:
        yield session


async def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str:
    """Extract the bearer token from the Authorization header.

    Raises:
        HTTPException: 401 if the header is missing or not a bearer credential.
    """
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=UNAUTHENTICATED_DETAIL,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


async def get_current_user(
    request: Request,
    token: Annotated[str, Depends(get_bearer_token)],
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> User:
    """Resolve the bearer token to its owning user.

    Args:
        request: The incoming request; the resolved user id is stored on its state.
        token: The bearer token.
        session: The database session.

    Returns:
        The authenticated User model instance.

    Raises:
        HTTPException: 401 if the token is unknown or has been revoked.
    """
    async with store_errors(session):
        user = await token_service.resolve(session, token)
    if user is None:
        logger.debug("Rejected request with unknown or revoked bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=UNAUTHENTICATED_DETAIL,
            headers={"WWW-Authenticate": "Bearer"},
        )
    request.state.user_id = user.id
    return user


SessionDep = Annotated[AsyncSession, Depends(get_async_session)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
CurrentUser = Annotated[User, Depends(get_current_user)]
BearerToken = Annotated[str, Depends(get_bearer_token)]
