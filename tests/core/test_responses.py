"""Tests for the response envelope and date helpers."""

from datetime import UTC, date, datetime

from src.core.responses import build_pagination, error_response, paginate, success_response
from src.utils.dates import day_start, ensure_utc_aware, months_ago, sort_key


class TestEnvelope:
    def test_success_omits_empty_keys(self) -> None:
        assert success_response() == {"success": True}
        assert success_response({"id": 1}, "Saved") == {
            "success": True,
            "message": "Saved",
            "data": {"id": 1},
        }

    def test_success_keeps_falsy_data(self) -> None:
        assert success_response([])["data"] == []

    def test_error_body(self) -> None:
        body = error_response(
            "Validation failed",
            "validation_error",
            request_id="req-1",
            errors=[{"field": "title", "message": "required"}],
        )
        assert body == {
            "success": False,
            "message": "Validation failed",
            "code": "validation_error",
            "errors": [{"field": "title", "message": "required"}],
            "request_id": "req-1",
        }


class TestPagination:
    def test_middle_page(self) -> None:
        assert build_pagination(2, 10, 25, "Articles") == {
            "currentPage": 2,
            "totalPages": 3,
            "totalArticles": 25,
            "hasNextPage": True,
            "hasPrevPage": True,
        }

    def test_empty_result(self) -> None:
        block = build_pagination(1, 10, 0, "Comments")
        assert block["totalPages"] == 0
        assert block["totalComments"] == 0
        assert block["hasNextPage"] is False
        assert block["hasPrevPage"] is False

    def test_paginate_slices(self) -> None:
        items = list(range(7))
        assert paginate(items, 1, 3) == [0, 1, 2]
        assert paginate(items, 3, 3) == [6]
        assert paginate(items, 4, 3) == []


class TestDates:
    def test_naive_values_become_utc(self) -> None:
        naive = datetime(2025, 3, 1, 8, 30)
        assert ensure_utc_aware(naive).tzinfo is UTC
        assert ensure_utc_aware(None) is None

    def test_day_start(self) -> None:
        assert day_start(date(2025, 3, 31)) == datetime(2025, 3, 31, tzinfo=UTC)
        assert day_start(date(9999, 12, 31)) == datetime(9999, 12, 31, tzinfo=UTC)

    def test_missing_timestamps_sort_last_when_descending(self) -> None:
        values = [None, datetime(2025, 1, 2, tzinfo=UTC), datetime(2025, 1, 1)]
        ordered = sorted(values, key=sort_key, reverse=True)
        assert ordered[-1] is None
        assert ordered[0].day == 2

    def test_months_ago_clamps_day(self) -> None:
        assert months_ago(datetime(2025, 3, 31, tzinfo=UTC), 1) == datetime(
            2025, 2, 28, tzinfo=UTC
        )
        assert months_ago(datetime(2025, 1, 15, tzinfo=UTC), 3) == datetime(
            2024, 10, 15, tzinfo=UTC
        )
