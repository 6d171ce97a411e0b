"""Projection of User entities into their public response shapes."""

from datetime import datetime, timedelta

from account_api.models.base import ensure_utc, utcnow
from account_api.models.user import User
from account_api.schemas.user import UserActivity, UserDetail, UserRecord, UserSummary, UserView

_UNITS = (
    ("year", timedelta(days=365)),
    ("month", timedelta(days=30)),
    ("week", timedelta(weeks=1)),
    ("day", timedelta(days=1)),
    ("hour", timedelta(hours=1)),
    ("minute", timedelta(minutes=1)),
)


def humanize_duration(delta: timedelta) -> str:
    """Render a duration in its largest whole unit, e.g. ``"3 days"``."""
    delta = abs(delta)
    for name, size in _UNITS:
        count = int(delta / size)
        if count >= 1:
            return f"{count} {name}" + ("s" if count != 1 else "")
    seconds = int(delta.total_seconds())
    return f"{seconds} second" + ("s" if seconds != 1 else "")


def whole_days_between(start: datetime, end: datetime) -> int:
    """Whole days elapsed from ``start`` to ``end``, never negative."""
    return max(0, (ensure_utc(end) - ensure_utc(start)).days)  # type: ignore[operator]


def to_summary(user: User) -> UserSummary:
    return UserSummary(id=user.id, full_name=user.full_name, email=user.email, role=user.role)


def to_view(user: User) -> UserView:
    return UserView(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        full_name=user.full_name,
        email=user.email,
        role=user.role,
        first_login=ensure_utc(user.first_login),
        last_login=ensure_utc(user.last_login),
    )


def to_detail(user: User, now: datetime | None = None) -> UserDetail:
    """Full projection including account age and time since last activity."""
    now = now or utcnow()
    created_at = ensure_utc(user.created_at)
    last_login = ensure_utc(user.last_login)
    return UserDetail(
        **to_view(user).model_dump(),
        created_at=created_at,
        updated_at=ensure_utc(user.updated_at),
        account_age=humanize_duration(now - created_at),  # type: ignore[operator]
        last_active=humanize_duration(now - last_login) if last_login else None,
    )


def to_record(user: User) -> UserRecord:
    return UserRecord(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        role=user.role,
        first_login=ensure_utc(user.first_login),
        last_login=ensure_utc(user.last_login),
        created_at=ensure_utc(user.created_at),
        updated_at=ensure_utc(user.updated_at),
    )


def to_activity(user: User, now: datetime) -> UserActivity:
    return UserActivity(
        id=user.id,
        full_name=user.full_name,
        email=user.email,
        role=user.role,
        first_login=ensure_utc(user.first_login),
        last_login=ensure_utc(user.last_login),
        created_at=ensure_utc(user.created_at),
        days_since_last_login=whole_days_between(user.last_login, now) if user.last_login else None,
        account_age_days=whole_days_between(user.created_at, now),
    )
