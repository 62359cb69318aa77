"""Authors module.

Note: Router is not exported here to avoid circular imports.
Import directly from src.authors.router when needed.
"""

from .models import AUTHORS_TABLES_CQL, Author, AuthorStatus
from .service import AuthorService


__all__ = ["AUTHORS_TABLES_CQL", "Author", "AuthorService", "AuthorStatus"]
