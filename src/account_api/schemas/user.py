"""User management Pydantic v2 schemas.

Response projections of a User (summary, view, detail, record, activity)
and the request bodies of the profile and administrative endpoints.
The password hash has no field in any response schema.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from account_api.models.user import UserRole
from account_api.repositories.user_repository import SortField, SortOrder
from account_api.schemas.common import PaginationMeta

# ---------------------------------------------------------------------------
# Projections
# ---------------------------------------------------------------------------


class UserSummary(BaseModel):
    """Minimal identification of an account."""

    id: UUID
    full_name: str
    email: str
    role: UserRole


class UserView(BaseModel):
    """Restricted projection returned after updates and by register/login."""

    id: UUID
    first_name: str
    last_name: str
    full_name: str
    email: str
    role: UserRole
    first_login: datetime | None = None
    last_login: datetime | None = None


class UserDetail(UserView):
    """Full projection: adds store timestamps and humanized durations."""

    created_at: datetime
    updated_at: datetime
    account_age: str
    last_active: str | None = None


class UserRecord(BaseModel):
    """Every stored field except the password hash, as used by listings and exports."""

    id: UUID
    first_name: str
    last_name: str
    email: str
    role: UserRole
    first_login: datetime | None = None
    last_login: datetime | None = None
    created_at: datetime
    updated_at: datetime


class UserActivity(BaseModel):
    """One row of the admin activity report."""

    id: UUID
    full_name: str
    email: str
    role: UserRole
    first_login: datetime | None = None
    last_login: datetime | None = None
    created_at: datetime
    days_since_last_login: int | None = None
    account_age_days: int


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class UserUpdateRequest(BaseModel):
    """Partial update of a user by id (all fields optional).

    ``role`` is only applied for admin actors; ``password`` only for an admin
    acting on a different account. Other actors have those fields dropped.
    """

    first_name: str | None = Field(default=None, min_length=1, max_length=255)
    last_name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = Field(default=None, max_length=255)
    role: UserRole | None = None
    password: str | None = None
    password_confirmation: str | None = None


class ProfileUpdateRequest(BaseModel):
    """Self-service profile update; a password change needs the current password."""

    first_name: str | None = Field(default=None, min_length=1, max_length=255)
    last_name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = Field(default=None, max_length=255)
    current_password: str | None = None
    new_password: str | None = None
    new_password_confirmation: str | None = None


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str
    new_password_confirmation: str | None = None


class ChangeRoleRequest(BaseModel):
    role: UserRole


class BulkRoleUpdateRequest(BaseModel):
    user_ids: list[UUID] = Field(min_length=1)
    role: UserRole


class SearchRequest(BaseModel):
    """Admin search. The term length is checked by the service."""

    search: str
    role: UserRole | None = None
    sort_by: SortField = SortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC
    page: int = Field(default=1, ge=1)


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


class UserEnvelope(BaseModel):
    user: UserDetail


class UserUpdatedResponse(BaseModel):
    message: str
    user: UserView


class UserSummaryResponse(BaseModel):
    message: str
    user: UserSummary


class UserDeletedResponse(BaseModel):
    message: str
    deleted_user: UserSummary


class UserListFilters(BaseModel):
    role: UserRole | None = None
    search: str | None = None


class UserListResponse(BaseModel):
    users: list[UserRecord]
    pagination: PaginationMeta
    filters: UserListFilters


class SearchParams(BaseModel):
    search_term: str
    role_filter: UserRole | None = None
    sort_by: SortField
    sort_order: SortOrder


class SearchResponse(BaseModel):
    search_results: list[UserRecord]
    pagination: PaginationMeta
    search_params: SearchParams


class BulkRoleUpdateResponse(BaseModel):
    message: str
    updated_count: int
    new_role: UserRole


class Statistics(BaseModel):
    total_users: int
    admin_count: int
    user_count: int
    recent_users: int
    active_users: int
    admin_percentage: float
    active_percentage: float


class StatisticsTimeframe(BaseModel):
    recent_days: int
    active_days: int


class StatisticsResponse(BaseModel):
    statistics: Statistics
    timeframe: StatisticsTimeframe


class ActivityResponse(BaseModel):
    users: list[UserActivity]
