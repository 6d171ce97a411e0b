"""Profile self-service endpoints: GET/PUT /profile, POST /change-password."""

from fastapi import APIRouter

from account_api.core.dependencies import CurrentUser, SessionDep, SettingsDep
from account_api.schemas.common import MessageResponse
from account_api.schemas.user import ChangePasswordRequest, ProfileUpdateRequest, UserEnvelope, UserUpdatedResponse
from account_api.services import account_service, formatter

profile_router = APIRouter(tags=["profile"])


@profile_router.get("/profile", response_model=UserEnvelope)
async def show_profile(current_user: CurrentUser) -> UserEnvelope:
    return UserEnvelope(user=formatter.to_detail(account_service.view_self(current_user)))


@profile_router.put("/profile", response_model=UserUpdatedResponse)
async def update_profile(
    request: ProfileUpdateRequest,
    current_user: CurrentUser,
    session: SessionDep,
    settings: SettingsDep,
) -> UserUpdatedResponse:
    """Update own name/email; include current_password to set new_password."""
    user = await account_service.update_own_profile(session, current_user, request, settings)
    return UserUpdatedResponse(message="Profile updated successfully", user=formatter.to_view(user))


@profile_router.post("/change-password", response_model=MessageResponse)
async def change_password(
    request: ChangePasswordRequest,
    current_user: CurrentUser,
    session: SessionDep,
    settings: SettingsDep,
) -> MessageResponse:
    await account_service.change_password(
        session,
        current_user,
        request.current_password,
        request.new_password,
        settings,
        new_password_confirmation=request.new_password_confirmation,
    )
    return MessageResponse(message="Password changed successfully")
