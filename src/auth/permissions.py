"""Role-based access control for the newsroom.

Hierarchical roles:
- ADMIN (level 3): Full system access, settings, users, hero banners
- EDITOR (level 2): Publishes, moderates, manages taxonomy and e-paper
- AUTHOR (level 1): Writes own articles, uploads and manages own media
- REPORTER (level 0): Listed on the masthead, no write access

Every capability check goes through :func:`can` (or :func:`authorize`,
which raises instead of returning False).
"""

from enum import Enum
from typing import Any, Protocol

from src.core.exceptions import ForbiddenError


class UserRole(str, Enum):
    """Newsroom roles. Higher level = more permissions."""

    REPORTER = "REPORTER"
    AUTHOR = "AUTHOR"
    EDITOR = "EDITOR"
    ADMIN = "ADMIN"


ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.REPORTER: 0,
    UserRole.AUTHOR: 1,
    UserRole.EDITOR: 2,
    UserRole.ADMIN: 3,
}

PRIVILEGED_ROLES = frozenset({UserRole.ADMIN, UserRole.EDITOR})


class Action(str, Enum):
    """Capabilities checked by the policy."""

    VIEW_UNPUBLISHED = "view_unpublished"
    MODERATE_COMMENTS = "moderate_comments"
    EDIT_COMMENT = "edit_comment"
    DELETE_COMMENT = "delete_comment"
    CREATE_ARTICLE = "create_article"
    UPDATE_ARTICLE = "update_article"
    DELETE_ARTICLE = "delete_article"
    MANAGE_CATEGORIES = "manage_categories"
    DELETE_CATEGORY = "delete_category"
    MANAGE_AUTHORS = "manage_authors"
    DELETE_AUTHOR = "delete_author"
    UPLOAD_MEDIA = "upload_media"
    BROWSE_MEDIA = "browse_media"
    MANAGE_MEDIA = "manage_media"
    MANAGE_EPAPER = "manage_epaper"
    MANAGE_HERO = "manage_hero"
    VIEW_ADMIN = "view_admin"
    MANAGE_USERS = "manage_users"
    UPDATE_SETTINGS = "update_settings"


class Actor(Protocol):
    id: Any
    email: str
    role: Any


PRIVILEGED_ACTIONS = frozenset(
    {
        Action.VIEW_UNPUBLISHED,
        Action.MODERATE_COMMENTS,
        Action.VIEW_ADMIN,
        Action.MANAGE_CATEGORIES,
        Action.MANAGE_AUTHORS,
        Action.MANAGE_EPAPER,
        Action.DELETE_ARTICLE,
    }
)

ADMIN_ACTIONS = frozenset(
    {
        Action.DELETE_CATEGORY,
        Action.DELETE_AUTHOR,
        Action.MANAGE_HERO,
        Action.MANAGE_USERS,
        Action.UPDATE_SETTINGS,
    }
)

AUTHOR_ACTIONS = frozenset(
    {Action.CREATE_ARTICLE, Action.UPLOAD_MEDIA, Action.BROWSE_MEDIA}
)


def get_role_level(role: UserRole | str | None) -> int:
    """Get the permission level for a role.

    Unknown roles get -1 so they rank below REPORTER.
    """
    if role is None:
        return -1
    if isinstance(role, str) and not isinstance(role, UserRole):
        try:
            role = UserRole(role.upper())
        except ValueError:
            return -1
    return ROLE_HIERARCHY.get(role, -1)


def has_permission(user_role: UserRole | str | None, required_role: UserRole | str) -> bool:
    """Check if user_role is at least required_role.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.EDITOR)
        True
        >>> has_permission("AUTHOR", "EDITOR")
        False
    """
    return get_role_level(user_role) >= get_role_level(required_role)


def is_privileged(role: UserRole | str | None) -> bool:
    """ADMIN or EDITOR."""
    return has_permission(role, UserRole.EDITOR)


def is_admin(role: UserRole | str | None) -> bool:
    return get_role_level(role) == ROLE_HIERARCHY[UserRole.ADMIN]


def _same_id(left: Any, right: Any) -> bool:
    return left is not None and right is not None and str(left) == str(right)


def can(actor: Actor | None, action: Action, resource: Any = None) -> bool:  # noqa: PLR0911
    """Decide whether ``actor`` may perform ``action`` on ``resource``.

    Args:
        actor: Authenticated user, or None for anonymous visitors.
        action: Capability being checked.
        resource: Entity the action targets, for ownership rules.
    """
    if actor is None:
        return False

    role = actor.role

    if action in ADMIN_ACTIONS:
        return is_admin(role)

    if action in PRIVILEGED_ACTIONS:
        return is_privileged(role)

    if action in AUTHOR_ACTIONS:
        return has_permission(role, UserRole.AUTHOR)

    if action in (Action.EDIT_COMMENT, Action.DELETE_COMMENT):
        if is_privileged(role):
            return True
        author_email = getattr(resource, "author_email", None)
        return bool(author_email and actor.email) and (
            author_email.lower() == actor.email.lower()
        )

    if action == Action.UPDATE_ARTICLE:
        if is_privileged(role):
            return True
        return has_permission(role, UserRole.AUTHOR) and _same_id(
            getattr(resource, "created_by", None), actor.id
        )

    if action == Action.MANAGE_MEDIA:
        if is_privileged(role):
            return True
        return has_permission(role, UserRole.AUTHOR) and _same_id(
            getattr(resource, "uploaded_by", None), actor.id
        )

    return False


def authorize(
    actor: Actor | None,
    action: Action,
    resource: Any = None,
    message: str = "Access denied. Insufficient permissions.",
) -> None:
    """Raise ForbiddenError unless :func:`can` allows the action."""
    if not can(actor, action, resource):
        raise ForbiddenError(message)
