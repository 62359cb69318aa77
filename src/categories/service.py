"""Category service layer.

Business logic for:
- Active category listing with published-article counts
- Category CRUD with unique name and slug
- Delete guard while articles still reference a category
"""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from src.articles.aggregation import AggregationService
from src.articles.models import Article
from src.core.exceptions import ConflictError, NotFoundError, ValidationError
from src.utils.dates import utc_now
from src.utils.slug import generate_slug

from .models import Category
from .schemas import CategoryCreateRequest, CategoryUpdateRequest


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CategoryNotFoundError(NotFoundError):
    def __init__(self, message: str = "Category not found"):
        super().__init__(message, "category_not_found")


class CategoryExistsError(ConflictError):
    def __init__(self, message: str = "Category with this name or slug already exists"):
        super().__init__(message, "category_exists")


class UnsluggableNameError(ValidationError):
    def __init__(
        self, message: str = "Category name must contain Latin letters or digits"
    ):
        super().__init__(message, "invalid_name")


class CategoryInUseError(ConflictError):
    def __init__(
        self,
        message: str = (
            "Cannot delete category with articles. "
            "Please reassign or delete articles first."
        ),
    ):
        super().__init__(message, "category_in_use")


# ==============================================================================
# Category Service
# ==============================================================================


class CategoryService:
    """Service for category management."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        aggregation: AggregationService,
    ):
        self.session = session
        self.keyspace = keyspace
        self.aggregation = aggregation
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._upsert_category = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.categories
            (id, name, slug, description, color, icon, is_active, sort_order,
             created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._select_category = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.categories WHERE id = ?
        """)

        self._select_all = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.categories
        """)

        self._select_by_slug = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.categories WHERE slug = ?
        """)

        self._select_by_name = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.categories WHERE name = ?
        """)

        self._delete_category = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.categories WHERE id = ?
        """)

        # Any status counts toward the delete guard
        self._select_article_ids = self.session.prepare(f"""
            SELECT id FROM {self.keyspace}.articles WHERE category_id = ?
        """)

    # ==========================================================================
    # Lookups
    # ==========================================================================

    async def _save(self, category: Category) -> None:
        await self.session.aexecute(
            self._upsert_category,
            [
                category.id,
                category.name,
                category.slug,
                category.description,
                category.color,
                category.icon,
                category.is_active,
                category.sort_order,
                category.created_at,
                category.updated_at,
            ],
        )

    async def find_by_id(self, category_id: UUID) -> Category | None:
        result = await self.session.aexecute(self._select_category, [category_id])
        row = result[0] if result else None
        return Category.from_row(row) if row else None

    async def find_by_slug(self, slug: str) -> Category | None:
        result = await self.session.aexecute(self._select_by_slug, [slug])
        row = result[0] if result else None
        return Category.from_row(row) if row else None

    async def find_by_name(self, name: str) -> Category | None:
        result = await self.session.aexecute(self._select_by_name, [name])
        row = result[0] if result else None
        return Category.from_row(row) if row else None

    async def get_category(self, category_id: UUID) -> Category:
        category = await self.find_by_id(category_id)
        if category is None:
            raise CategoryNotFoundError
        return category

    async def article_count(self, category_id: UUID) -> int:
        """Articles of any status referencing the category."""
        rows = await self.session.aexecute(self._select_article_ids, [category_id])
        return len(list(rows))

    async def published_counts(self) -> dict[UUID, int]:
        published = await self.aggregation.published()
        return dict(self.aggregation.count_by(published, "category_id"))

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def all_categories(self) -> list[Category]:
        rows = await self.session.aexecute(self._select_all, [])
        return [Category.from_row(row) for row in rows]

    async def list_active(self) -> list[tuple[Category, int]]:
        """Active categories by sortOrder (then name) with published counts."""
        counts = await self.published_counts()
        categories = [c for c in await self.all_categories() if c.is_active]
        categories.sort(key=lambda c: (c.sort_order, c.name))
        return [(c, counts.get(c.id, 0)) for c in categories]

    async def get_with_latest(
        self,
        category_id: UUID,
        limit: int = 10,
    ) -> tuple[Category, list[Article], int]:
        """Category with its newest published articles.

        Returns:
            Tuple of (category, latest articles, published count).
        """
        category = await self.get_category(category_id)
        articles, total = await self.aggregation.by_category(category.id, 1, limit)
        return category, articles, total

    async def get_by_slug(
        self,
        slug: str,
        page: int = 1,
        limit: int = 12,
    ) -> tuple[Category, list[Article], int]:
        """Category by slug with a page of its published articles."""
        category = await self.find_by_slug(slug)
        if category is None:
            raise CategoryNotFoundError
        articles, total = await self.aggregation.by_category(category.id, page, limit)
        return category, articles, total

    # ==========================================================================
    # Mutations
    # ==========================================================================

    async def create_category(self, data: CategoryCreateRequest) -> Category:
        slug = generate_slug(data.name)
        if not slug:
            raise UnsluggableNameError
        if await self.find_by_name(data.name) or await self.find_by_slug(slug):
            raise CategoryExistsError

        category = Category(
            name=data.name,
            slug=slug,
            description=data.description,
            color=data.color,
            icon=data.icon,
            is_active=data.is_active,
            sort_order=data.sort_order,
        )
        await self._save(category)

        logger.info("category_created", category_id=str(category.id), slug=slug)
        return category

    async def update_category(
        self,
        category_id: UUID,
        data: CategoryUpdateRequest,
    ) -> Category:
        """Partial update; a rename regenerates and re-checks the slug."""
        category = await self.get_category(category_id)
        changes = data.model_dump(exclude_unset=True)

        name = changes.pop("name", None)
        if name and name != category.name:
            slug = generate_slug(name)
            if not slug:
                raise UnsluggableNameError
            for clash in (await self.find_by_slug(slug), await self.find_by_name(name)):
                if clash is not None and clash.id != category.id:
                    raise CategoryExistsError
            category.name = name
            category.slug = slug

        for field, value in changes.items():
            if value is not None or field in ("description", "color", "icon"):
                setattr(category, field, value)

        category.updated_at = utc_now()
        await self._save(category)

        logger.info("category_updated", category_id=str(category.id))
        return category

    async def delete_category(self, category_id: UUID) -> None:
        """Delete a category that no article references."""
        category = await self.get_category(category_id)

        if await self.article_count(category.id) > 0:
            raise CategoryInUseError

        await self.session.aexecute(self._delete_category, [category.id])
        logger.info("category_deleted", category_id=str(category.id))
