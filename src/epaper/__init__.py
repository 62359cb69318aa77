"""E-paper module.

Note: Router is not exported here to avoid circular imports.
Import directly from src.epaper.router when needed.
"""

from .models import EPAPER_TABLES_CQL, EpaperIssue, EpaperStatus
from .service import EpaperService


__all__ = ["EPAPER_TABLES_CQL", "EpaperIssue", "EpaperService", "EpaperStatus"]
