"""Role-based access policy.

Roles are a flat set: holding ``admin`` does not imply ``trainer`` or
``member``. Every check is a plain containment test against ``POLICY``.
"""

from enum import Enum
from typing import FrozenSet, Iterable

from fitnext.app.core.exceptions import AuthorizationError


class Role(str, Enum):
    MEMBER = "member"
    TRAINER = "trainer"
    ADMIN = "admin"


class Action(str, Enum):
    BOOK_OWN = "book_own"
    CANCEL_OWN = "cancel_own"
    VIEW_OWN_BOOKINGS = "view_own_bookings"
    BOOK_FOR_OTHERS = "book_for_others"
    CANCEL_FOR_OTHERS = "cancel_for_others"
    VIEW_ALL_BOOKINGS = "view_all_bookings"
    MANAGE_SESSIONS = "manage_sessions"
    MARK_ATTENDANCE = "mark_attendance"
    MANAGE_REFERENCE_DATA = "manage_reference_data"
    LIST_PERSONS = "list_persons"
    MANAGE_PERSONS = "manage_persons"
    VIEW_STATS = "view_stats"
    EXPORT_BACKUP = "export_backup"


STAFF_ROLES: FrozenSet[Role] = frozenset({Role.ADMIN, Role.TRAINER})

POLICY: dict[Action, FrozenSet[Role]] = {
    Action.BOOK_OWN: frozenset({Role.MEMBER}),
    Action.CANCEL_OWN: frozenset({Role.MEMBER}),
    Action.VIEW_OWN_BOOKINGS: frozenset({Role.MEMBER}),
    Action.BOOK_FOR_OTHERS: frozenset({Role.ADMIN}),
    Action.CANCEL_FOR_OTHERS: frozenset({Role.ADMIN}),
    Action.VIEW_ALL_BOOKINGS: frozenset({Role.ADMIN}),
    Action.MANAGE_SESSIONS: STAFF_ROLES,
    Action.MARK_ATTENDANCE: STAFF_ROLES,
    Action.MANAGE_REFERENCE_DATA: frozenset({Role.ADMIN}),
    Action.LIST_PERSONS: frozenset({Role.ADMIN}),
    Action.MANAGE_PERSONS: frozenset({Role.ADMIN}),
    Action.VIEW_STATS: frozenset({Role.ADMIN}),
    Action.EXPORT_BACKUP: frozenset({Role.ADMIN}),
}


def parse_roles(raw: str | Iterable[str] | None) -> FrozenSet[Role]:
    """Parse a comma-separated role string (or iterable); unknown names are dropped."""
    if raw is None:
        return frozenset()
    items = raw.split(",") if isinstance(raw, str) else raw
    roles = set()
    for item in items:
        name = str(item.value if isinstance(item, Role) else item).strip().lower()
        if name in Role._value2member_map_:
            roles.add(Role(name))
    return frozenset(roles)


def format_roles(roles: Iterable[Role]) -> str:
    return ",".join(sorted(role.value for role in parse_roles(roles)))


def is_authorized(actor_roles: Iterable[Role], action: Action) -> bool:
    return bool(POLICY[action] & frozenset(actor_roles))


def authorize(actor_roles: Iterable[Role], action: Action) -> None:
    if not is_authorized(actor_roles, action):
        raise AuthorizationError(
            f"not allowed to {action.value.replace('_', ' ')}",
            details={"action": action.value},
        )


def action_for_booking(actor_id: int, target_person_id: int, own_action: Action, other_action: Action) -> Action:
    """Pick the own/other variant of an action depending on whose row is touched."""
    return own_action if actor_id == target_person_id else other_action
