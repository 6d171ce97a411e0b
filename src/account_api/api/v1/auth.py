"""Authentication API endpoints.

POST /register, POST /login, POST /logout, GET /user-profile,
POST /create-admin, GET /health.
"""

from fastapi import APIRouter, status

from account_api.core.dependencies import BearerToken, CurrentUser, SessionDep, SettingsDep
from account_api.schemas.auth import AuthResponse, CreateAdminRequest, LoginRequest, RegisterRequest
from account_api.schemas.common import MessageResponse
from account_api.schemas.user import UserEnvelope, UserSummaryResponse
from account_api.services import account_service, formatter

router = APIRouter(tags=["auth"])


@router.get("/health", status_code=200)
async def health_check() -> dict:
    """Health check endpoint (no authentication required)."""
    return {"status": "healthy"}


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest, session: SessionDep, settings: SettingsDep) -> AuthResponse:
    """Create an account and return it with a bearer token."""
    user, token = await account_service.register(session, request, settings)
    return AuthResponse(
        message="User registered successfully",
        user=formatter.to_view(user),
        access_token=token,
    )


@router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest, session: SessionDep, settings: SettingsDep) -> AuthResponse:
    """Authenticate by email and password; all earlier tokens of the user are revoked."""
    user, token = await account_service.login(session, request.email, request.password, settings)
    return AuthResponse(
        message="Login successful",
        user=formatter.to_view(user),
        access_token=token,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(_current_user: CurrentUser, token: BearerToken, session: SessionDep) -> MessageResponse:
    """Revoke the token used for this request."""
    await account_service.logout(session, token)
    return MessageResponse(message="Logged out successfully")


@router.get("/user-profile", response_model=UserEnvelope)
async def me(current_user: CurrentUser) -> UserEnvelope:
    """Get the currently authenticated user's profile."""
    return UserEnvelope(user=formatter.to_detail(account_service.view_self(current_user)))


@router.post("/create-admin", response_model=UserSummaryResponse, status_code=status.HTTP_201_CREATED)
async def create_admin(
    request: CreateAdminRequest,
    current_user: CurrentUser,
    session: SessionDep,
    settings: SettingsDep,
) -> UserSummaryResponse:
    """Create another admin account (admin only)."""
    user = await account_service.create_admin(session, current_user, request, settings)
    return UserSummaryResponse(message="Admin user created successfully", user=formatter.to_summary(user))
