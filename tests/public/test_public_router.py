"""Tests for the public site endpoints."""

from uuid import uuid4

from fastapi.testclient import TestClient

from tests.factories import (
    KEYSPACE,
    CqlRouter,
    article_row,
    category_row,
    comment_row,
    row,
    ts,
)


PUBLISHED_ROWS = f"SELECT * FROM {KEYSPACE}.articles WHERE status"
CATEGORY_ROWS = f"SELECT * FROM {KEYSPACE}.articles WHERE category_id"
VIEWS = f"SELECT article_id, views FROM {KEYSPACE}.article_views"


def published(cql: CqlRouter, *pairs):
    cql.on(PUBLISHED_ROWS, [a for a, _ in pairs])
    cql.on(VIEWS, [row(article_id=a.id, views=v) for a, v in pairs])


class TestRails:
    def test_breaking_news_returns_teasers(self, api: TestClient, cql: CqlRouter):
        alert = article_row(title="Storm warning", is_breaking=True, published_at=ts(4))
        published(cql, (alert, 3), (article_row(), 0))

        response = api.get("/api/public/breaking-news")

        assert response.status_code == 200
        [item] = response.json()["data"]["articles"]
        assert set(item) == {"id", "title", "slug", "excerpt", "publishedAt", "views"}
        assert item["title"] == "Storm warning"
        assert item["views"] == 3

    def test_trending_embeds_category_and_author(self, api: TestClient, cql: CqlRouter):
        category = category_row()
        top = article_row(category_id=category.id)
        published(cql, (top, 9), (article_row(), 1))
        cql.on(
            f"SELECT id, name, slug FROM {KEYSPACE}.categories WHERE id",
            [row(id=category.id, name=category.name, slug=category.slug)],
        )

        response = api.get("/api/public/trending", params={"limit": 1})

        [item] = response.json()["data"]["articles"]
        assert item["id"] == str(top.id)
        assert item["category"] == {
            "id": str(category.id),
            "name": "Politics",
            "slug": "politics",
        }
        assert item["author"] is None

    def test_rail_limit_is_bounded(self, api: TestClient):
        assert api.get("/api/public/recent", params={"limit": 0}).status_code == 400

    def test_sidebar(self, api: TestClient, cql: CqlRouter):
        published(cql, (article_row(), 5), (article_row(), 7))

        data = api.get("/api/public/sidebar").json()["data"]

        assert [a["views"] for a in data["trendingArticles"]] == [7, 5]
        assert len(data["mostReadArticles"]) == 2


class TestArticlePage:
    def test_published_article_with_comments_and_related(
        self, api: TestClient, cql: CqlRouter
    ):
        category_id = uuid4()
        article = article_row(slug="harbour-plan", category_id=category_id)
        sibling = article_row(category_id=category_id)
        cql.on(
            f"FROM {KEYSPACE}.articles_by_slug WHERE slug",
            [row(article_id=article.id)],
        )
        cql.on(f"SELECT * FROM {KEYSPACE}.articles WHERE id", [article])
        cql.on(CATEGORY_ROWS, [article, sibling])
        approved = comment_row(article.id)
        cql.on(
            f"FROM {KEYSPACE}.comments WHERE article_id",
            [approved, comment_row(article.id, status="PENDING")],
        )

        response = api.get("/api/public/article/harbour-plan")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["article"]["slug"] == "harbour-plan"
        assert [c["id"] for c in data["article"]["comments"]] == [str(approved.id)]
        assert "authorEmail" not in data["article"]["comments"][0]
        assert [a["id"] for a in data["relatedArticles"]] == [str(sibling.id)]
        assert cql.executed("SET views = views + 1") == [[article.id]]

    def test_draft_article_is_404(self, api: TestClient, cql: CqlRouter):
        draft = article_row(slug="secret", status="DRAFT")
        cql.on(f"FROM {KEYSPACE}.articles_by_slug WHERE slug", [row(article_id=draft.id)])
        cql.on(f"SELECT * FROM {KEYSPACE}.articles WHERE id", [draft])

        response = api.get("/api/public/article/secret")

        assert response.status_code == 404
        assert response.json()["message"] == "Article not found"


class TestCategoryAndSearch:
    def test_category_page(self, api: TestClient, cql: CqlRouter):
        category = category_row(description="Local government")
        cql.on(f"SELECT * FROM {KEYSPACE}.categories WHERE slug", [category])
        cql.on(
            CATEGORY_ROWS,
            [article_row(category_id=category.id, published_at=ts(d)) for d in (1, 2, 3)],
        )

        response = api.get("/api/public/category/politics", params={"limit": 2})

        data = response.json()["data"]
        assert data["category"]["description"] == "Local government"
        assert len(data["articles"]) == 2
        assert data["pagination"]["totalArticles"] == 3
        assert data["pagination"]["hasNextPage"] is True

    def test_unknown_category(self, api: TestClient):
        response = api.get("/api/public/category/nope")
        assert response.status_code == 404
        assert response.json()["code"] == "category_not_found"

    def test_search_requires_term(self, api: TestClient):
        for params in ({}, {"q": "   "}):
            response = api.get("/api/public/search", params=params)
            assert response.status_code == 400
            assert response.json()["message"] == "Search term is required"

    def test_search(self, api: TestClient, cql: CqlRouter):
        published(
            cql,
            (article_row(title="Harbour expansion approved"), 0),
            (article_row(title="Weather"), 0),
        )

        data = api.get("/api/public/search", params={"q": " harbour "}).json()["data"]

        assert data["searchTerm"] == "harbour"
        assert data["pagination"]["totalArticles"] == 1

    def test_categories_with_counts(self, api: TestClient, cql: CqlRouter):
        category = category_row()
        cql.on(
            f"SELECT * FROM {KEYSPACE}.categories",
            [category, category_row(name="Hidden", slug="hidden", is_active=False)],
        )
        published(cql, (article_row(category_id=category.id), 0))

        [item] = api.get("/api/public/categories").json()["data"]["categories"]

        assert item["slug"] == "politics"
        assert item["articleCount"] == 1
