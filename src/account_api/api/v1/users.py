"""User administration endpoints.

Fixed paths (/users/statistics, /users/activity, /users/search,
/users/bulk-update-roles, /users/export) are registered before the
/users/{user_id} routes. Starlette matches routes in registration order,
so moving them below would make /users/{user_id} capture them.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Response

from account_api.core.dependencies import CurrentUser, SessionDep, SettingsDep
from account_api.models.user import UserRole
from account_api.schemas.common import ErrorResponse, PaginationMeta
from account_api.schemas.user import (
    ActivityResponse,
    BulkRoleUpdateRequest,
    BulkRoleUpdateResponse,
    ChangeRoleRequest,
    SearchParams,
    SearchRequest,
    SearchResponse,
    StatisticsResponse,
    UserDeletedResponse,
    UserEnvelope,
    UserListFilters,
    UserListResponse,
    UserSummaryResponse,
    UserUpdatedResponse,
    UserUpdateRequest,
)
from account_api.services import account_service, formatter

users_router = APIRouter(
    prefix="/users",
    tags=["users"],
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)


# ========== Fixed paths: must precede /users/{user_id} ==========


@users_router.get("/statistics", response_model=StatisticsResponse)
async def get_statistics(current_user: CurrentUser, session: SessionDep, settings: SettingsDep) -> StatisticsResponse:
    """Account totals, role split and recent/active counts (admin only)."""
    return await account_service.statistics(session, current_user, settings)


@users_router.get("/activity", response_model=ActivityResponse)
async def get_activity(current_user: CurrentUser, session: SessionDep, settings: SettingsDep) -> ActivityResponse:
    """Most recently active users (admin only)."""
    return ActivityResponse(users=await account_service.activity(session, current_user, settings))


@users_router.post("/search", response_model=SearchResponse)
async def search_users(
    request: SearchRequest,
    current_user: CurrentUser,
    session: SessionDep,
    settings: SettingsDep,
) -> SearchResponse:
    """Search by name, email or full name with sorting (admin only)."""
    users, total = await account_service.search(session, current_user, request, settings)
    return SearchResponse(
        search_results=[formatter.to_record(user) for user in users],
        pagination=PaginationMeta.build(
            total=total,
            page=request.page,
            per_page=settings.search_page_size,
            count=len(users),
        ),
        search_params=SearchParams(
            search_term=request.search,
            role_filter=request.role,
            sort_by=request.sort_by,
            sort_order=request.sort_order,
        ),
    )


@users_router.put("/bulk-update-roles", response_model=BulkRoleUpdateResponse)
async def bulk_update_roles(
    request: BulkRoleUpdateRequest,
    current_user: CurrentUser,
    session: SessionDep,
) -> BulkRoleUpdateResponse:
    """Set one role on many users; refused entirely if it includes the caller."""
    updated = await account_service.bulk_change_role(session, current_user, request.user_ids, request.role)
    return BulkRoleUpdateResponse(
        message=f"Successfully updated roles for {updated} users",
        updated_count=updated,
        new_role=request.role,
    )


@users_router.get("/export")
async def export_users(
    current_user: CurrentUser,
    session: SessionDep,
    output_format: Annotated[str, Query(alias="format")] = "json",
    role: UserRole | None = None,
) -> Response:
    """Download all users as JSON or CSV (admin only)."""
    result = await account_service.export(session, current_user, output_format, role)
    headers = {}
    if result.filename.endswith(".csv"):
        headers["Content-Disposition"] = f'attachment; filename="{result.filename}"'
    return Response(content=result.content, media_type=result.media_type, headers=headers)


@users_router.get("", response_model=UserListResponse)
async def list_users(
    current_user: CurrentUser,
    session: SessionDep,
    settings: SettingsDep,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int | None, Query(ge=1)] = None,
    role: UserRole | None = None,
    search: str | None = None,
) -> UserListResponse:
    """List users with optional role and free-text filters (admin only)."""
    size = min(per_page or settings.default_page_size, settings.max_page_size)
    users, total = await account_service.list_users(
        session,
        current_user,
        role=role,
        search=search,
        page=page,
        per_page=size,
    )
    return UserListResponse(
        users=[formatter.to_record(user) for user in users],
        pagination=PaginationMeta.build(total=total, page=page, per_page=size, count=len(users)),
        filters=UserListFilters(role=role, search=search),
    )


# ========== Parameterized paths: keep last ==========


@users_router.post("/{user_id}/change-role", response_model=UserSummaryResponse)
async def change_role(
    user_id: UUID,
    request: ChangeRoleRequest,
    current_user: CurrentUser,
    session: SessionDep,
) -> UserSummaryResponse:
    """Change another user's role (admin only, never your own)."""
    user = await account_service.change_role(session, current_user, user_id, request.role)
    return UserSummaryResponse(message="User role updated successfully", user=formatter.to_summary(user))


@users_router.put("/{user_id}", response_model=UserUpdatedResponse)
async def update_user(
    user_id: UUID,
    request: UserUpdateRequest,
    current_user: CurrentUser,
    session: SessionDep,
    settings: SettingsDep,
) -> UserUpdatedResponse:
    """Update a user. Admins may update anyone; users only themselves."""
    user = await account_service.update_user(session, current_user, user_id, request, settings)
    return UserUpdatedResponse(message="User updated successfully", user=formatter.to_view(user))


@users_router.delete("/{user_id}", response_model=UserDeletedResponse)
async def delete_user(user_id: UUID, current_user: CurrentUser, session: SessionDep) -> UserDeletedResponse:
    """Delete a user and revoke their tokens (admin only, never yourself)."""
    user = await account_service.delete_user(session, current_user, user_id)
    return UserDeletedResponse(message="User deleted successfully", deleted_user=formatter.to_summary(user))


@users_router.get("/{user_id}", response_model=UserEnvelope)
async def show_user(user_id: UUID, current_user: CurrentUser, session: SessionDep) -> UserEnvelope:
    """Get one user. Admins may view anyone; users only themselves."""
    user = await account_service.view_user(session, current_user, user_id)
    return UserEnvelope(user=formatter.to_detail(user))
