"""Tests for author management and statistics."""

from datetime import timedelta
from unittest.mock import Mock
from uuid import uuid4

import pytest

from src.articles.aggregation import AggregationService
from src.authors.schemas import AuthorCreateRequest, AuthorUpdateRequest
from src.authors.service import (
    AuthorExistsError,
    AuthorInUseError,
    AuthorNotFoundError,
    AuthorService,
)
from src.utils.dates import utc_now
from tests.factories import KEYSPACE, CqlRouter, article_row, author_row, row


BY_ID = f"SELECT * FROM {KEYSPACE}.authors WHERE id"
BY_EMAIL = f"SELECT * FROM {KEYSPACE}.authors WHERE email"
ALL = f"SELECT * FROM {KEYSPACE}.authors"
ARTICLES = f"SELECT * FROM {KEYSPACE}.articles WHERE author_id"
VIEWS = f"SELECT article_id, views FROM {KEYSPACE}.article_views"
UPSERT = f"INSERT INTO {KEYSPACE}.authors"


@pytest.fixture
def service(mock_session: Mock) -> AuthorService:
    return AuthorService(mock_session, KEYSPACE, AggregationService(mock_session, KEYSPACE))


def stored(cql: CqlRouter, *rows):
    by_id = {r.id: r for r in rows}
    by_email = {r.email: r for r in rows}
    cql.on(BY_ID, lambda p: [by_id[p[0]]] if p[0] in by_id else [])
    cql.on(BY_EMAIL, lambda p: [by_email[p[0]]] if p[0] in by_email else [])
    cql.on(ALL, list(rows))


class TestCreateAuthor:
    @pytest.mark.asyncio
    async def test_email_is_normalized(self, service: AuthorService, cql: CqlRouter):
        author = await service.create_author(
            AuthorCreateRequest(
                name="Priya Nair",
                email="  Priya@Example.com ",
                bio="Business desk reporter.",
            )
        )

        assert author.email == "priya@example.com"
        assert author.role == "AUTHOR"
        assert author.status == "ACTIVE"
        assert cql.executed(UPSERT)[0][2] == "priya@example.com"

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, service: AuthorService, cql: CqlRouter):
        stored(cql, author_row(email="priya@example.com"))

        with pytest.raises(AuthorExistsError):
            await service.create_author(
                AuthorCreateRequest(
                    name="Priya Again",
                    email="PRIYA@example.com",
                    bio="Another biography here.",
                )
            )


class TestUpdateAuthor:
    @pytest.mark.asyncio
    async def test_update_refreshes_last_active(
        self, service: AuthorService, cql: CqlRouter
    ):
        author = author_row(phone="555-0100")
        stored(cql, author)

        updated = await service.update_author(
            author.id, AuthorUpdateRequest(status="inactive", phone=None)
        )

        assert updated.status == "INACTIVE"
        assert updated.phone is None
        assert updated.last_active is not None
        assert updated.bio == author.bio

    @pytest.mark.asyncio
    async def test_email_change_onto_taken_address(
        self, service: AuthorService, cql: CqlRouter
    ):
        first = author_row(email="first@example.com")
        second = author_row(email="second@example.com")
        stored(cql, first, second)

        with pytest.raises(AuthorExistsError):
            await service.update_author(
                first.id, AuthorUpdateRequest(email="second@example.com")
            )

    @pytest.mark.asyncio
    async def test_missing_author(self, service: AuthorService):
        with pytest.raises(AuthorNotFoundError):
            await service.update_author(uuid4(), AuthorUpdateRequest(name="Nobody"))


class TestDeleteAuthor:
    @pytest.mark.asyncio
    async def test_author_with_articles_kept(self, service: AuthorService, cql: CqlRouter):
        author = author_row()
        stored(cql, author)
        cql.on(ARTICLES, [article_row(author_id=author.id, status="DRAFT")])

        with pytest.raises(AuthorInUseError):
            await service.delete_author(author.id)
        assert cql.executed(f"DELETE FROM {KEYSPACE}.authors") == []

    @pytest.mark.asyncio
    async def test_author_without_articles_deleted(
        self, service: AuthorService, cql: CqlRouter
    ):
        author = author_row()
        stored(cql, author)

        await service.delete_author(author.id)

        assert cql.executed(f"DELETE FROM {KEYSPACE}.authors") == [[author.id]]


class TestListAuthors:
    @pytest.mark.asyncio
    async def test_defaults_to_active_sorted_by_name(
        self, service: AuthorService, cql: CqlRouter
    ):
        zed = author_row(name="Zed Ortiz", email="zed@example.com")
        amy = author_row(name="amy Chen", email="amy@example.com", role="EDITOR")
        gone = author_row(name="Bo Gone", email="bo@example.com", status="INACTIVE")
        stored(cql, zed, amy, gone)
        cql.on(
            f"SELECT * FROM {KEYSPACE}.articles WHERE status",
            [article_row(author_id=zed.id)],
        )

        items, total = await service.list_authors()

        assert total == 2
        assert [(a.name, n) for a, n in items] == [("amy Chen", 0), ("Zed Ortiz", 1)]

        items, total = await service.list_authors(status="inactive")
        assert [a.id for a, _ in items] == [gone.id]

        items, _ = await service.list_authors(role="editor", search="CHEN")
        assert [a.id for a, _ in items] == [amy.id]


class TestAuthorStats:
    @pytest.mark.asyncio
    async def test_stats_cover_published_articles_only(
        self, service: AuthorService, cql: CqlRouter
    ):
        author = author_row()
        stored(cql, author)
        now = utc_now()
        recent = article_row(author_id=author.id, published_at=now - timedelta(days=3))
        older = article_row(author_id=author.id, published_at=now - timedelta(days=400))
        draft = article_row(author_id=author.id, status="DRAFT", published_at=None)
        cql.on(ARTICLES, [recent, older, draft])
        cql.on(
            VIEWS,
            [
                row(article_id=recent.id, views=10),
                row(article_id=older.id, views=5),
                row(article_id=draft.id, views=100),
            ],
        )

        stats = await service.stats(author.id)

        assert stats["totalArticles"] == 2
        assert stats["totalViews"] == 15
        assert stats["averageViews"] == 8
        assert stats["articlesByMonth"] == {recent.published_at.strftime("%Y-%m"): 1}

    @pytest.mark.asyncio
    async def test_stats_for_author_without_articles(
        self, service: AuthorService, cql: CqlRouter
    ):
        author = author_row()
        stored(cql, author)

        assert await service.stats(author.id) == {
            "totalArticles": 0,
            "totalViews": 0,
            "averageViews": 0,
            "articlesByMonth": {},
        }
