"""Authorization decisions for account operations.

:func:`authorize` is a pure function of the acting user and an
:class:`Intent`. It never touches the store and never raises; callers turn a
denied :class:`Decision` into whatever failure their layer uses.

Role rules:

* No actor: everything is denied.
* Any actor may view and update their own profile and change their own
  password. Nobody may change their own role.
* ``user`` actors get nothing else.
* ``admin`` actors get every administrative intent, except deleting their own
  account, changing their own role (directly or as part of a bulk update) and
  resetting their own password without the current one.
"""

import enum
import uuid
from collections.abc import Iterable
from dataclasses import dataclass

from account_api.models.user import User

ADMIN_REQUIRED = "Access denied. Admin privileges required."
UNAUTHENTICATED = "Unauthenticated."


class Action(enum.StrEnum):
    VIEW_SELF = "view_self"
    VIEW_OTHER = "view_other"
    LIST_USERS = "list_users"
    UPDATE_SELF = "update_self"
    UPDATE_OTHER = "update_other"
    CHANGE_OWN_ROLE = "change_own_role"
    CHANGE_OTHER_ROLE = "change_other_role"
    DELETE_OTHER = "delete_other"
    CREATE_ADMIN = "create_admin"
    VIEW_STATISTICS = "view_statistics"
    VIEW_ACTIVITY = "view_activity"
    SEARCH = "search"
    BULK_ROLE_UPDATE = "bulk_role_update"
    EXPORT = "export"
    CHANGE_OWN_PASSWORD = "change_own_password"
    RESET_OTHER_PASSWORD = "reset_other_password"


_SELF_SERVICE = frozenset({Action.VIEW_SELF, Action.UPDATE_SELF, Action.CHANGE_OWN_PASSWORD})

_ADMIN_ONLY = frozenset(
    {
        Action.LIST_USERS,
        Action.CHANGE_OTHER_ROLE,
        Action.DELETE_OTHER,
        Action.CREATE_ADMIN,
        Action.VIEW_STATISTICS,
        Action.VIEW_ACTIVITY,
        Action.SEARCH,
        Action.BULK_ROLE_UPDATE,
        Action.EXPORT,
        Action.RESET_OTHER_PASSWORD,
    }
)

# Intents that name a single target account and collapse to a self intent
# when that account is the actor's own.
_SELF_EQUIVALENT = {
    Action.VIEW_OTHER: Action.VIEW_SELF,
    Action.UPDATE_OTHER: Action.UPDATE_SELF,
}

# Admin intents that are refused when aimed at the actor's own account.
_SELF_GUARDS = {
    Action.DELETE_OTHER: "Cannot delete your own account.",
    Action.CHANGE_OTHER_ROLE: "Cannot change your own role.",
    Action.RESET_OTHER_PASSWORD: "Use change-password to change your own password.",
}

_NON_ADMIN_OTHER = {
    Action.VIEW_OTHER: "Access denied. You can only view your own profile.",
    Action.UPDATE_OTHER: "Unauthorized to update this user",
}


@dataclass(frozen=True)
class Intent:
    """A named operation, with its target account(s) where it has any."""

    action: Action
    target_id: uuid.UUID | None = None
    target_ids: tuple[uuid.UUID, ...] = ()

    @classmethod
    def of(cls, action: Action) -> "Intent":
        return cls(action)

    @classmethod
    def on(cls, action: Action, target_id: uuid.UUID) -> "Intent":
        return cls(action, target_id=target_id)

    @classmethod
    def bulk_role_update(cls, target_ids: Iterable[uuid.UUID]) -> "Intent":
        return cls(Action.BULK_ROLE_UPDATE, target_ids=tuple(target_ids))


@dataclass(frozen=True)
class Decision:
    """Outcome of an authorization check. Truthy when allowed."""

    allowed: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def deny(reason: str) -> Decision:
    return Decision(False, reason)


def authorize(actor: User | None, intent: Intent) -> Decision:
    """Decide whether ``actor`` may perform ``intent``.

    Args:
        actor: The authenticated user, or None for an anonymous request.
        intent: The operation being attempted.

    Returns:
        ``ALLOW`` or a denied Decision carrying a user-facing reason.
    """
    if actor is None:
        return deny(UNAUTHENTICATED)

    action = intent.action
    if action in _SELF_EQUIVALENT and intent.target_id == actor.id:
        action = _SELF_EQUIVALENT[action]

    if action in _SELF_SERVICE:
        return ALLOW

    if action == Action.CHANGE_OWN_ROLE:
        return deny(_SELF_GUARDS[Action.CHANGE_OTHER_ROLE])

    is_admin = actor.is_admin

    if action in _NON_ADMIN_OTHER:
        return ALLOW if is_admin else deny(_NON_ADMIN_OTHER[action])

    if action not in _ADMIN_ONLY or not is_admin:
        return deny(ADMIN_REQUIRED)

    if action in _SELF_GUARDS and intent.target_id == actor.id:
        return deny(_SELF_GUARDS[action])

    if action == Action.BULK_ROLE_UPDATE and actor.id in intent.target_ids:
        return deny("Cannot change your own role in bulk update.")

    return ALLOW
