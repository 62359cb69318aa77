"""Categories module.

Note: Router is not exported here to avoid circular imports.
Import directly from src.categories.router when needed.
"""

from .models import CATEGORIES_TABLES_CQL, Category
from .service import CategoryService


__all__ = ["CATEGORIES_TABLES_CQL", "Category", "CategoryService"]
