"""ORM model registry: import all models so Alembic autogenerate discovers them."""

from account_api.models.access_token import AccessToken
from account_api.models.user import User, UserRole

__all__ = [
    "AccessToken",
    "User",
    "UserRole",
]
