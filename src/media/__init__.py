"""Media module.

Provides:
- Local upload storage with generated collision-free names
- Image width variants
- The media library records

Note: Router is not exported here to avoid circular imports.
Import directly from src.media.router when needed.
"""

from .models import MEDIA_TABLES_CQL, Media
from .service import IncomingFile, MediaService
from .storage import LocalStorage


__all__ = [
    "MEDIA_TABLES_CQL",
    "IncomingFile",
    "LocalStorage",
    "Media",
    "MediaService",
]
