from enum import Enum
from typing import Dict, FrozenSet

from app.domains.content.entities import ContentKind
from app.domains.identity.entities import GlobalRole


class Action(str, Enum):
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    VIEW = "view"


_RESOURCES = {
    ContentKind.SHELF: "shelves",
    ContentKind.BOOK: "books",
    ContentKind.CHAPTER: "chapters",
    ContentKind.PAGE: "pages",
}

USERS_MANAGE = "users:manage"


def permission(kind: ContentKind, action: Action) -> str:
    """Имя разрешения вида "pages:edit" """
    return f"{_RESOURCES[kind]}:{action.value}"


def _grant(*actions: Action) -> FrozenSet[str]:
    return frozenset(permission(kind, action) for kind in ContentKind for action in actions)


ROLE_PERMISSIONS: Dict[GlobalRole, FrozenSet[str]] = {
    GlobalRole.ADMIN: _grant(Action.CREATE, Action.EDIT, Action.DELETE, Action.VIEW) | {USERS_MANAGE},
    GlobalRole.EDITOR: _grant(Action.CREATE, Action.EDIT, Action.VIEW),
    GlobalRole.VIEWER: _grant(Action.VIEW),
}


def has_permission(role: GlobalRole, name: str) -> bool:
    return name in ROLE_PERMISSIONS.get(role, frozenset())
