"""Tests for the back-office service."""

from datetime import timedelta
from unittest.mock import Mock
from uuid import uuid4

import pytest

from src.admin.schemas import SettingsUpdateRequest, UserUpdateRequest
from src.admin.service import (
    AdminService,
    EmptyUserUpdateError,
    UserHasArticlesError,
    UserNotFoundError,
)
from src.articles.aggregation import AggregationService
from src.articles.service import ArticleService
from src.authors.service import AuthorService
from src.categories.models import Category
from src.categories.service import CategoryService
from src.comments.service import CommentService
from src.core.exceptions import ForbiddenError
from src.utils.dates import utc_now
from tests.factories import (
    KEYSPACE,
    CqlRouter,
    article_row,
    author_row,
    category_row,
    comment_row,
    row,
    ts,
)


ALL_ARTICLES = f"SELECT * FROM {KEYSPACE}.articles"
ARTICLES_BY_STATUS = f"SELECT * FROM {KEYSPACE}.articles WHERE status"
VIEWS = f"SELECT article_id, views FROM {KEYSPACE}.article_views"
USERS = f"SELECT * FROM {KEYSPACE}.users"
USER_BY_ID = f"SELECT * FROM {KEYSPACE}.users WHERE id"
SETTING_BY_KEY = f"SELECT * FROM {KEYSPACE}.settings WHERE key"
SETTING_UPSERT = f"INSERT INTO {KEYSPACE}.settings"


@pytest.fixture
def service(mock_session: Mock) -> AdminService:
    aggregation = AggregationService(mock_session, KEYSPACE)
    return AdminService(
        mock_session,
        KEYSPACE,
        aggregation,
        ArticleService(mock_session, KEYSPACE, aggregation),
        CategoryService(mock_session, KEYSPACE, aggregation),
        AuthorService(mock_session, KEYSPACE, aggregation),
        CommentService(mock_session, KEYSPACE),
    )


def with_status(rows):
    return lambda params: [r for r in rows if r.status == params[0]]


def user_row(**overrides):
    fields = {
        "id": str(uuid4()),
        "email": "casey@example.com",
        "name": "Casey Morgan",
        "role": "AUTHOR",
        "status": "ACTIVE",
        "avatar": None,
        "created_at": ts(1),
        "updated_at": ts(1),
    }
    fields.update(overrides)
    return row(**fields)


class TestDashboard:
    @pytest.mark.asyncio
    async def test_totals_and_rankings(self, service: AdminService, cql: CqlRouter):
        active_category = category_row()
        hidden_category = category_row(name="Old", slug="old", is_active=False)
        hit = article_row(category_id=active_category.id, created_at=ts(2))
        steady = article_row(created_at=ts(3))
        draft = article_row(status="DRAFT", published_at=None, created_at=ts(4))
        review = article_row(status="REVIEW", published_at=None, created_at=ts(5))
        articles = [hit, steady, draft, review]

        cql.on(ALL_ARTICLES, articles)
        cql.on(ARTICLES_BY_STATUS, with_status(articles))
        cql.on(
            VIEWS,
            [
                row(article_id=hit.id, views=40),
                row(article_id=steady.id, views=2),
                row(article_id=draft.id, views=1),
            ],
        )
        cql.on(
            f"SELECT * FROM {KEYSPACE}.authors",
            [author_row(), author_row(status="INACTIVE")],
        )
        cql.on(f"SELECT * FROM {KEYSPACE}.categories", [active_category, hidden_category])
        comments = [
            comment_row(uuid4()),
            comment_row(uuid4()),
            comment_row(uuid4(), status="PENDING"),
        ]
        cql.on(f"FROM {KEYSPACE}.comments WHERE status", with_status(comments))

        data = await service.dashboard()

        assert data["stats"] == {
            "totalArticles": 4,
            "publishedArticles": 2,
            "draftArticles": 1,
            "totalAuthors": 1,
            "totalCategories": 1,
            "totalViews": 43,
            "totalComments": 2,
        }
        assert [a["id"] for a in data["recentArticles"]] == [
            review.id,
            draft.id,
            steady.id,
            hit.id,
        ]
        assert [a["id"] for a in data["topArticles"]] == [hit.id, steady.id]
        assert data["categoryStats"] == [
            Category.from_row(active_category).to_dict(article_count=1)
        ]


class TestAnalytics:
    @pytest.mark.asyncio
    async def test_breakdowns_and_growth(self, service: AdminService, cql: CqlRouter):
        day = (utc_now() - timedelta(days=2)).replace(hour=10, minute=0)
        busy_author = author_row(name="Busy")
        quiet_author = author_row(name="Quiet")
        articles = [
            article_row(created_at=day, author_id=busy_author.id),
            article_row(created_at=day + timedelta(hours=1), author_id=busy_author.id),
            article_row(status="DRAFT", created_at=day, published_at=None),
            article_row(created_at=day - timedelta(days=60), author_id=quiet_author.id),
        ]
        cql.on(ALL_ARTICLES, articles)
        cql.on(ARTICLES_BY_STATUS, with_status(articles))
        cql.on(f"SELECT * FROM {KEYSPACE}.authors", [quiet_author, busy_author])

        data = await service.article_analytics(period=30)

        assert {"status": "PUBLISHED", "count": 3} in data["articlesByStatus"]
        assert {"status": "DRAFT", "count": 1} in data["articlesByStatus"]
        assert data["growthData"] == {
            day.date().isoformat(): {"total": 3, "published": 2, "draft": 1}
        }
        assert [a["name"] for a in data["topAuthors"]] == ["Busy", "Quiet"]
        assert data["topAuthors"][0]["articleCount"] == 2


class TestUsers:
    @pytest.mark.asyncio
    async def test_list_with_created_article_counts(
        self, service: AdminService, cql: CqlRouter, admin
    ):
        older = user_row(name="Older", created_at=ts(1))
        newer = user_row(name="Newer", email="newer@example.com", created_at=ts(9))
        cql.on(USERS, [older, newer])
        cql.on(
            f"SELECT created_by FROM {KEYSPACE}.articles",
            [row(created_by=older.id), row(created_by=older.id), row(created_by=None)],
        )

        items, total = await service.list_users(admin)

        assert total == 2
        assert [(u.name, n) for u, n in items] == [("Newer", 0), ("Older", 2)]

        items, total = await service.list_users(admin, search="NEWER@")
        assert [u.id for u, _ in items] == [newer.id]

    @pytest.mark.asyncio
    async def test_editors_cannot_manage_users(self, service: AdminService, editor):
        with pytest.raises(ForbiddenError):
            await service.list_users(editor)

    @pytest.mark.asyncio
    async def test_empty_update_rejected(self, service: AdminService, admin):
        with pytest.raises(EmptyUserUpdateError):
            await service.update_user("someone", UserUpdateRequest(), admin)

    @pytest.mark.asyncio
    async def test_role_and_status_update(
        self, service: AdminService, cql: CqlRouter, admin
    ):
        target = user_row()
        cql.on(USER_BY_ID, [target])

        user = await service.update_user(
            target.id, UserUpdateRequest(role="editor", status="suspended"), admin
        )

        assert (user.role, user.status) == ("EDITOR", "SUSPENDED")
        [params] = cql.executed(f"INSERT INTO {KEYSPACE}.users")
        assert params[3:5] == ["EDITOR", "SUSPENDED"]

    @pytest.mark.asyncio
    async def test_unknown_user(self, service: AdminService, admin):
        with pytest.raises(UserNotFoundError):
            await service.update_user("missing", UserUpdateRequest(role="author"), admin)

    @pytest.mark.asyncio
    async def test_delete_guard(self, service: AdminService, cql: CqlRouter, admin):
        target = user_row()
        cql.on(USER_BY_ID, [target])
        cql.on(f"SELECT id FROM {KEYSPACE}.articles WHERE created_by", [row(id=uuid4())])

        with pytest.raises(UserHasArticlesError):
            await service.delete_user(target.id, admin)
        assert cql.executed(f"DELETE FROM {KEYSPACE}.users") == []

    @pytest.mark.asyncio
    async def test_delete(self, service: AdminService, cql: CqlRouter, admin):
        target = user_row()
        cql.on(USER_BY_ID, [target])

        await service.delete_user(target.id, admin)

        assert cql.executed(f"DELETE FROM {KEYSPACE}.users") == [[target.id]]


class TestSettings:
    @pytest.mark.asyncio
    async def test_upsert_keeps_metadata_of_existing_keys(
        self, service: AdminService, cql: CqlRouter, admin
    ):
        existing = row(
            key="site_name",
            value="Old Name",
            category="general",
            description="Masthead",
            is_public=True,
            created_at=ts(1),
            updated_at=ts(1),
        )
        cql.on(SETTING_BY_KEY, lambda p: [existing] if p[0] == "site_name" else [])
        values = SettingsUpdateRequest.model_validate(
            {"site_name": "The Daily", "comments_open": True, "page_size": 12}
        ).as_text()

        saved = await service.update_settings(values, admin)

        by_key = {s.key: s for s in saved}
        assert by_key["site_name"].value == "The Daily"
        assert by_key["site_name"].category == "general"
        assert by_key["site_name"].is_public is True
        assert by_key["comments_open"].value == "true"
        assert by_key["comments_open"].is_public is False
        assert by_key["page_size"].value == "12"
        assert len(cql.executed(SETTING_UPSERT)) == 3

    @pytest.mark.asyncio
    async def test_editors_cannot_change_settings(self, service: AdminService, editor):
        with pytest.raises(ForbiddenError):
            await service.update_settings({"site_name": "x"}, editor)

    @pytest.mark.asyncio
    async def test_list_sorted_by_category_then_key(
        self, service: AdminService, cql: CqlRouter
    ):
        def setting(key, category):
            return row(
                key=key,
                value="v",
                category=category,
                description=None,
                is_public=False,
                created_at=ts(1),
                updated_at=ts(1),
            )

        cql.on(
            f"SELECT * FROM {KEYSPACE}.settings",
            [setting("b", "seo"), setting("z", None), setting("a", "seo")],
        )

        result = await service.list_settings()

        assert [s.key for s in result] == ["z", "a", "b"]


class TestModerationQueue:
    @pytest.mark.asyncio
    async def test_pending_comments_and_review_articles(
        self, service: AdminService, cql: CqlRouter
    ):
        review_old = article_row(status="REVIEW", created_at=ts(1))
        review_new = article_row(status="REVIEW", created_at=ts(6))
        articles = [review_old, review_new, article_row()]
        cql.on(ARTICLES_BY_STATUS, with_status(articles))
        pending = comment_row(review_new.id, status="PENDING")
        cql.on(f"FROM {KEYSPACE}.comments WHERE status", with_status([pending]))

        data = await service.moderation_queue()

        assert [c["id"] for c in data["pendingComments"]] == [pending.id]
        assert [a["id"] for a in data["articlesForReview"]] == [
            review_new.id,
            review_old.id,
        ]
