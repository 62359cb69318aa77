"""Hero banner service.

Activating a hero (on create, or on update when it was inactive) first
deactivates every other active hero, so the public endpoint has a single
banner to show.
"""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from src.auth.permissions import Action, authorize
from src.core.exceptions import NotFoundError
from src.utils.dates import sort_key, utc_now

from .models import Hero
from .schemas import HeroCreateRequest, HeroUpdateRequest


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from src.auth.schemas import AuthenticatedUser


logger = structlog.get_logger(__name__)


class HeroNotFoundError(NotFoundError):
    def __init__(self, message: str = "Hero not found"):
        super().__init__(message, "hero_not_found")


class HeroService:
    """Service for hero banners."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._upsert_hero = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.heroes
            (id, title, image_url, description, is_active, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)

        self._select_hero = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.heroes WHERE id = ?
        """)

        self._select_all = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.heroes
        """)

        self._select_active = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.heroes WHERE is_active = ?
        """)

        self._deactivate_hero = self.session.prepare(f"""
            UPDATE {self.keyspace}.heroes
            SET is_active = false, updated_at = ?
            WHERE id = ?
        """)

        self._delete_hero = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.heroes WHERE id = ?
        """)

    async def _save(self, hero: Hero) -> None:
        await self.session.aexecute(
            self._upsert_hero,
            [
                hero.id,
                hero.title,
                hero.image_url,
                hero.description,
                hero.is_active,
                hero.created_at,
                hero.updated_at,
            ],
        )

    async def _active_heroes(self) -> list[Hero]:
        rows = await self.session.aexecute(self._select_active, [True])
        return [Hero.from_row(row) for row in rows]

    async def deactivate_all(self, except_id: UUID | None = None) -> int:
        """Deactivate every active hero but ``except_id``.

        Returns:
            Number of heroes deactivated.
        """
        now = utc_now()
        count = 0
        for hero in await self._active_heroes():
            if hero.id == except_id:
                continue
            await self.session.aexecute(self._deactivate_hero, [now, hero.id])
            count += 1
        return count

    async def get_active(self) -> Hero | None:
        """The active hero, newest first if several slipped through."""
        heroes = await self._active_heroes()
        heroes.sort(key=lambda h: sort_key(h.updated_at), reverse=True)
        return heroes[0] if heroes else None

    async def list_heroes(self, actor: "AuthenticatedUser") -> list[Hero]:
        authorize(actor, Action.MANAGE_HERO)
        rows = await self.session.aexecute(self._select_all, [])
        heroes = [Hero.from_row(row) for row in rows]
        heroes.sort(key=lambda h: sort_key(h.created_at), reverse=True)
        return heroes

    async def get_hero(self, hero_id: UUID) -> Hero:
        result = await self.session.aexecute(self._select_hero, [hero_id])
        row = result[0] if result else None
        if not row:
            raise HeroNotFoundError
        return Hero.from_row(row)

    async def create_hero(
        self,
        data: HeroCreateRequest,
        actor: "AuthenticatedUser",
    ) -> Hero:
        authorize(actor, Action.MANAGE_HERO)
        if data.is_active:
            await self.deactivate_all()

        hero = Hero(
            title=data.title,
            image_url=data.image_url,
            description=data.description,
            is_active=data.is_active,
        )
        await self._save(hero)

        logger.info("hero_created", hero_id=str(hero.id), is_active=hero.is_active)
        return hero

    async def update_hero(
        self,
        hero_id: UUID,
        data: HeroUpdateRequest,
        actor: "AuthenticatedUser",
    ) -> Hero:
        """Partial update; activating an inactive hero deactivates the others."""
        authorize(actor, Action.MANAGE_HERO)
        hero = await self.get_hero(hero_id)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("is_active") and not hero.is_active:
            await self.deactivate_all(except_id=hero.id)

        for name, value in changes.items():
            if value is not None or name == "description":
                setattr(hero, name, value)
        hero.updated_at = utc_now()
        await self._save(hero)

        logger.info("hero_updated", hero_id=str(hero.id), is_active=hero.is_active)
        return hero

    async def delete_hero(self, hero_id: UUID, actor: "AuthenticatedUser") -> None:
        authorize(actor, Action.MANAGE_HERO)
        hero = await self.get_hero(hero_id)
        await self.session.aexecute(self._delete_hero, [hero.id])
        logger.info("hero_deleted", hero_id=str(hero.id))
