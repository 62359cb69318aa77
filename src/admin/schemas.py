"""Pydantic schemas for back-office endpoints."""

from typing import Annotated

from pydantic import BeforeValidator, RootModel

from src.auth.permissions import UserRole
from src.core.schemas import CamelModel, upper

from .models import UserStatus


class UserUpdateRequest(CamelModel):
    """Role and/or status change; the service rejects an empty body."""

    role: Annotated[UserRole, BeforeValidator(upper)] | None = None
    status: Annotated[UserStatus, BeforeValidator(upper)] | None = None


class SettingsUpdateRequest(RootModel[dict[str, str | int | float | bool]]):
    """Flat ``{key: value}`` map; every value is stored as text."""

    def as_text(self) -> dict[str, str]:
        return {key: setting_text(value) for key, value in self.root.items()}


def setting_text(value: str | int | float | bool) -> str:
    # Booleans keep the lower-case spelling clients send
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
