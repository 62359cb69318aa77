"""Tests for hero banner activation."""

from unittest.mock import Mock
from uuid import uuid4

import pytest

from src.core.exceptions import ForbiddenError
from src.hero.schemas import HeroCreateRequest, HeroUpdateRequest
from src.hero.service import HeroNotFoundError, HeroService
from tests.factories import KEYSPACE, CqlRouter, row, ts


ACTIVE = f"SELECT * FROM {KEYSPACE}.heroes WHERE is_active"
BY_ID = f"SELECT * FROM {KEYSPACE}.heroes WHERE id"
DEACTIVATE = "SET is_active = false"
UPSERT = f"INSERT INTO {KEYSPACE}.heroes"


def hero_row(**overrides):
    fields = {
        "id": uuid4(),
        "title": "Election special",
        "image_url": "/uploads/images/hero.jpg",
        "description": None,
        "is_active": True,
        "created_at": ts(1),
        "updated_at": ts(1),
    }
    fields.update(overrides)
    return row(**fields)


@pytest.fixture
def service(mock_session: Mock) -> HeroService:
    return HeroService(mock_session, KEYSPACE)


class TestActivation:
    @pytest.mark.asyncio
    async def test_active_create_deactivates_others(
        self, service: HeroService, cql: CqlRouter, admin
    ):
        old = hero_row()
        cql.on(ACTIVE, [old])

        hero = await service.create_hero(
            HeroCreateRequest(title="Budget day", image_url="/uploads/images/b.jpg"), admin
        )

        assert hero.is_active is True
        [params] = cql.executed(DEACTIVATE)
        assert params[1] == old.id
        assert cql.executed(UPSERT)[0][0] == hero.id

    @pytest.mark.asyncio
    async def test_inactive_create_leaves_others(
        self, service: HeroService, cql: CqlRouter, admin
    ):
        cql.on(ACTIVE, [hero_row()])

        await service.create_hero(
            HeroCreateRequest(title="Draft", image_url="/x.jpg", is_active=False), admin
        )

        assert cql.executed(DEACTIVATE) == []

    @pytest.mark.asyncio
    async def test_activating_on_update_keeps_only_that_hero(
        self, service: HeroService, cql: CqlRouter, admin
    ):
        target = hero_row(is_active=False)
        other = hero_row()
        cql.on(BY_ID, [target])
        cql.on(ACTIVE, [other, target])

        hero = await service.update_hero(
            target.id, HeroUpdateRequest(is_active=True), admin
        )

        assert hero.is_active is True
        assert [p[1] for p in cql.executed(DEACTIVATE)] == [other.id]

    @pytest.mark.asyncio
    async def test_updating_an_active_hero_does_not_cascade(
        self, service: HeroService, cql: CqlRouter, admin
    ):
        target = hero_row(description="old")
        cql.on(BY_ID, [target])
        cql.on(ACTIVE, [target, hero_row()])

        hero = await service.update_hero(
            target.id, HeroUpdateRequest(is_active=True, description=None), admin
        )

        assert hero.description is None
        assert cql.executed(DEACTIVATE) == []

    @pytest.mark.asyncio
    async def test_get_active_prefers_latest_update(
        self, service: HeroService, cql: CqlRouter
    ):
        older = hero_row(updated_at=ts(2))
        newer = hero_row(updated_at=ts(5))
        cql.on(ACTIVE, [older, newer])

        assert (await service.get_active()).id == newer.id
        assert cql.executed(ACTIVE) == [[True]]

    @pytest.mark.asyncio
    async def test_no_active_hero(self, service: HeroService):
        assert await service.get_active() is None


class TestAdministration:
    @pytest.mark.asyncio
    async def test_editors_cannot_manage_heroes(self, service: HeroService, editor):
        with pytest.raises(ForbiddenError):
            await service.create_hero(
                HeroCreateRequest(title="Nope", image_url="/x.jpg"), editor
            )
        with pytest.raises(ForbiddenError):
            await service.list_heroes(editor)

    @pytest.mark.asyncio
    async def test_list_newest_first(self, service: HeroService, cql: CqlRouter, admin):
        first = hero_row(created_at=ts(1))
        second = hero_row(created_at=ts(3))
        cql.on(f"SELECT * FROM {KEYSPACE}.heroes", [first, second])

        heroes = await service.list_heroes(admin)

        assert [h.id for h in heroes] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_delete_missing_hero(self, service: HeroService, admin):
        with pytest.raises(HeroNotFoundError):
            await service.delete_hero(uuid4(), admin)

    @pytest.mark.asyncio
    async def test_delete(self, service: HeroService, cql: CqlRouter, admin):
        hero = hero_row()
        cql.on(BY_ID, [hero])

        await service.delete_hero(hero.id, admin)

        assert cql.executed(f"DELETE FROM {KEYSPACE}.heroes") == [[hero.id]]
