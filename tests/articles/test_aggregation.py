"""Tests for view counting and published-article orderings."""

from unittest.mock import Mock
from uuid import uuid4

import pytest

from src.articles.aggregation import AggregationService, by_recency
from src.articles.models import Article
from tests.factories import KEYSPACE, CqlRouter, article_row, row, ts


PUBLISHED_ROWS = f"SELECT * FROM {KEYSPACE}.articles WHERE status"
CATEGORY_ROWS = f"SELECT * FROM {KEYSPACE}.articles WHERE category_id"
VIEW_ROWS = f"SELECT article_id, views FROM {KEYSPACE}.article_views"


@pytest.fixture
def aggregation(mock_session: Mock) -> AggregationService:
    return AggregationService(mock_session, KEYSPACE)


def publish(cql: CqlRouter, *articles_with_views):
    """Register published rows and their counters."""
    rows = [a for a, _ in articles_with_views]
    cql.on(PUBLISHED_ROWS, rows)
    cql.on(VIEW_ROWS, [row(article_id=a.id, views=v) for a, v in articles_with_views])
    return rows


class TestViewCounting:
    @pytest.mark.asyncio
    async def test_published_view_increments_counter(
        self, aggregation: AggregationService, cql: CqlRouter
    ):
        article = Article.from_row(article_row(), views=4)

        assert await aggregation.record_view(article) is True
        assert cql.executed("SET views = views + 1") == [[article.id]]
        # The returned entity keeps the pre-increment value
        assert article.views == 4

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["DRAFT", "REVIEW", "ARCHIVED"])
    async def test_unpublished_view_not_counted(
        self, aggregation: AggregationService, cql: CqlRouter, status: str
    ):
        article = Article.from_row(article_row(status=status))

        assert await aggregation.record_view(article) is False
        assert cql.executed("SET views = views + 1") == []

    @pytest.mark.asyncio
    async def test_missing_counter_reads_as_zero(
        self, aggregation: AggregationService, cql: CqlRouter
    ):
        assert await aggregation.get_views(uuid4()) == 0

        cql.on(f"SELECT views FROM {KEYSPACE}.article_views", [row(views=12)])
        assert await aggregation.get_views(uuid4()) == 12

    @pytest.mark.asyncio
    async def test_total_views(self, aggregation: AggregationService, cql: CqlRouter):
        cql.on(
            VIEW_ROWS,
            [row(article_id=uuid4(), views=3), row(article_id=uuid4(), views=None)],
        )
        assert await aggregation.total_views() == 3


class TestOrderings:
    @pytest.mark.asyncio
    async def test_trending_orders_by_views_then_recency(
        self, aggregation: AggregationService, cql: CqlRouter
    ):
        tie_older = article_row(published_at=ts(5))
        high = article_row(published_at=ts(1))
        tie_newer = article_row(published_at=ts(10))
        publish(cql, (tie_older, 1), (high, 50), (tie_newer, 1))

        result = await aggregation.trending(limit=5)

        assert [a.id for a in result] == [high.id, tie_newer.id, tie_older.id]
        assert result[0].views == 50

    @pytest.mark.asyncio
    async def test_most_read_prefers_last_seven_days(
        self, aggregation: AggregationService, cql: CqlRouter
    ):
        old_hit = article_row(published_at=ts(1))
        fresh = article_row(published_at=ts(20))
        fresher = article_row(published_at=ts(21))
        publish(cql, (old_hit, 900), (fresh, 3), (fresher, 7))

        result = await aggregation.most_read(limit=5, now=ts(22))

        assert [a.id for a in result] == [fresher.id, fresh.id]

    @pytest.mark.asyncio
    async def test_most_read_falls_back_to_all_time(
        self, aggregation: AggregationService, cql: CqlRouter
    ):
        a = article_row(published_at=ts(1))
        b = article_row(published_at=ts(2))
        publish(cql, (a, 10), (b, 2))

        result = await aggregation.most_read(limit=5, now=ts(28))

        assert [x.id for x in result] == [a.id, b.id]

    @pytest.mark.asyncio
    async def test_featured_and_breaking_rails(
        self, aggregation: AggregationService, cql: CqlRouter
    ):
        featured = article_row(is_featured=True, published_at=ts(3))
        breaking = article_row(is_breaking=True, published_at=ts(4))
        plain = article_row(published_at=ts(5))
        publish(cql, (featured, 0), (breaking, 0), (plain, 0))

        assert [a.id for a in await aggregation.featured()] == [featured.id]
        assert [a.id for a in await aggregation.breaking()] == [breaking.id]
        assert [a.id for a in await aggregation.recent()] == [
            plain.id,
            breaking.id,
            featured.id,
        ]

    @pytest.mark.asyncio
    async def test_by_category_skips_unpublished_and_paginates(
        self, aggregation: AggregationService, cql: CqlRouter
    ):
        category_id = uuid4()
        rows = [
            article_row(category_id=category_id, published_at=ts(day))
            for day in (1, 2, 3)
        ]
        draft = article_row(category_id=category_id, status="DRAFT", published_at=None)
        cql.on(CATEGORY_ROWS, [*rows, draft])

        items, total = await aggregation.by_category(category_id, page=1, limit=2)

        assert total == 3
        assert [a.id for a in items] == [rows[2].id, rows[1].id]
        assert cql.executed(CATEGORY_ROWS) == [[category_id]]

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive_over_text_fields(
        self, aggregation: AggregationService, cql: CqlRouter
    ):
        in_title = article_row(title="Transit Strike Ends", published_at=ts(1))
        in_excerpt = article_row(excerpt="The TRANSIT board met", published_at=ts(2))
        in_content = article_row(content="... transit fares ...", published_at=ts(3))
        other = article_row(title="Weather", excerpt="Sunny", content="Warm")
        publish(cql, (in_title, 0), (in_excerpt, 0), (in_content, 0), (other, 0))

        items, total = await aggregation.search("transit")

        assert total == 3
        assert [a.id for a in items] == [in_content.id, in_excerpt.id, in_title.id]

    @pytest.mark.asyncio
    async def test_related_excludes_the_article_itself(
        self, aggregation: AggregationService, cql: CqlRouter
    ):
        category_id = uuid4()
        current = article_row(category_id=category_id)
        popular = article_row(category_id=category_id)
        quiet = article_row(category_id=category_id)
        hidden = article_row(category_id=category_id, status="ARCHIVED")
        cql.on(CATEGORY_ROWS, [current, popular, quiet, hidden])
        cql.on(
            VIEW_ROWS,
            [
                row(article_id=current.id, views=99),
                row(article_id=popular.id, views=20),
                row(article_id=quiet.id, views=1),
                row(article_id=hidden.id, views=500),
            ],
        )

        related = await aggregation.related(Article.from_row(current))

        assert [a.id for a in related] == [popular.id, quiet.id]

    @pytest.mark.asyncio
    async def test_related_without_category(
        self, aggregation: AggregationService, cql: CqlRouter
    ):
        assert await aggregation.related(Article.from_row(article_row())) == []
        assert cql.calls == []


def test_recency_breaks_ties_on_created_at():
    first = Article.from_row(article_row(published_at=None, created_at=ts(1)))
    second = Article.from_row(article_row(published_at=None, created_at=ts(2)))
    published = Article.from_row(article_row(published_at=ts(1, hour=1)))

    assert [a.id for a in by_recency([first, published, second])] == [
        published.id,
        second.id,
        first.id,
    ]


def test_count_by_attribute():
    category_id = uuid4()
    articles = [
        Article.from_row(article_row(category_id=category_id)),
        Article.from_row(article_row(category_id=category_id)),
        Article.from_row(article_row(status="DRAFT")),
    ]
    counts = AggregationService.count_by(articles, "status")
    assert counts == {"PUBLISHED": 2, "DRAFT": 1}
    assert AggregationService.count_by(articles, "category_id")[category_id] == 2
