"""Root API router and middleware registration."""

from fastapi import APIRouter, FastAPI

from account_api.api.middleware import (
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    setup_cors,
)
from account_api.core.config import Settings


def create_router(settings: Settings) -> APIRouter:
    """Create the root API router with all sub-routers included.

    Args:
        settings: Application settings.

    Returns:
        Configured API router mounted at ``settings.api_prefix``.
    """
    from account_api.api.v1.auth import router as auth_router
    from account_api.api.v1.profile import profile_router
    from account_api.api.v1.users import users_router

    root_router = APIRouter(prefix=settings.api_prefix)
    root_router.include_router(auth_router)
    root_router.include_router(profile_router)
    root_router.include_router(users_router)

    return root_router


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware on the FastAPI app.

    Args:
        app: The FastAPI application.
        settings: Application settings.
    """
    setup_cors(app, settings)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_minute=settings.rate_limit_per_minute,
        trusted_proxy_headers=settings.trusted_proxy_header_list,
    )
    # Added last so it is outermost and also logs rate-limited requests.
    app.add_middleware(RequestLoggingMiddleware)
