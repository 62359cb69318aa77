"""FastAPI dependencies for authentication.

Provides dependency injection for:
- Current user extraction from the bearer token
- Policy checks through ``require_action``
- Client IP for comment abuse tracking
"""

from typing import Annotated

from fastapi import Depends, Request
from jose import JWTError
from pydantic import ValidationError as PydanticValidationError

from src.auth.permissions import Action, can
from src.auth.schemas import AuthenticatedUser
from src.auth.security import decode_access_token
from src.core.context import get_client_ip, set_user_id
from src.core.exceptions import AuthenticationError, ForbiddenError


def get_token_from_header(request: Request) -> str | None:
    """Extract the Bearer token from the Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


def _user_from_token(token: str) -> AuthenticatedUser:
    payload = decode_access_token(token)
    user = AuthenticatedUser(
        id=str(payload["sub"]),
        email=payload["email"],
        role=str(payload["role"]).upper(),
        name=payload.get("name") or "",
    )
    set_user_id(user.id)
    return user


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> AuthenticatedUser:
    """Get the authenticated user.

    Raises:
        AuthenticationError: If the token is missing, invalid or expired.
    """
    if not token:
        raise AuthenticationError

    try:
        return _user_from_token(token)
    except (JWTError, PydanticValidationError) as e:
        raise AuthenticationError("Invalid or expired token", "invalid_token") from e


async def get_current_user_optional(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> AuthenticatedUser | None:
    """Get the current user if authenticated, None otherwise.

    Used by public endpoints whose output widens for privileged viewers.
    """
    if not token:
        return None

    try:
        return _user_from_token(token)
    except (JWTError, PydanticValidationError):
        return None


def require_action(action: Action):
    """Create a dependency that requires ``can(user, action)``.

    Example:
        @router.put("/{comment_id}/status")
        async def update_status(
            user: Annotated[AuthenticatedUser, Depends(require_action(Action.MODERATE_COMMENTS))]
        ):
            ...
    """

    async def action_checker(
        user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    ) -> AuthenticatedUser:
        if not can(user, action):
            raise ForbiddenError("Access denied. Insufficient permissions.")
        return user

    return action_checker


async def get_request_ip(request: Request) -> str | None:
    """Client IP resolved by the request middleware."""
    return getattr(request.state, "client_ip", None) or get_client_ip()


# ==============================================================================
# Type Aliases
# ==============================================================================

CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]

OptionalUser = Annotated[AuthenticatedUser | None, Depends(get_current_user_optional)]

PrivilegedUser = Annotated[
    AuthenticatedUser, Depends(require_action(Action.VIEW_ADMIN))
]

AdminUser = Annotated[
    AuthenticatedUser, Depends(require_action(Action.MANAGE_USERS))
]

ClientIP = Annotated[str | None, Depends(get_request_ip)]
