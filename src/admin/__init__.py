"""Back-office module: dashboard, analytics, users, settings, moderation."""

from .models import ADMIN_TABLES_CQL, Setting, User, UserStatus
from .service import AdminService


__all__ = ["ADMIN_TABLES_CQL", "AdminService", "Setting", "User", "UserStatus"]
