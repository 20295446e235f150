"""Tests for the search-engine query backend."""

from __future__ import annotations

from typing import Any

import pytest
from conftest import FakeSearchClient, make_hits

from search_builder import (
    FilterSpec,
    PageTooLargeError,
    RangeOperator,
    SearchEngineBackendConfig,
    SearchEngineQueryBackend,
    SearchOrchestrator,
)


def _orchestrator(spec: FilterSpec, client: FakeSearchClient) -> SearchOrchestrator:
    return SearchOrchestrator(spec, lambda: SearchEngineQueryBackend(client, "students"))


def _body(client: FakeSearchClient) -> dict[str, Any]:
    assert len(client.calls) == 1
    return client.calls[0]["body"]


class TestBodyRendering:
    def test_full_filter_map(
        self, student_spec: FilterSpec, search_client: FakeSearchClient
    ) -> None:
        _orchestrator(student_spec, search_client).search(
            {
                "course_id": [111, 222],
                "grade": 3,
                "not_grade": [2, 3],
                "range_day": [">2019-06-01", "<2019-07-01"],
                "contain_real_name": "Zhang",
                "exist_field": ["email"],
            }
        )
        query = _body(search_client)["query"]["bool"]
        assert query["filter"]["bool"]["must"] == [
            {"terms": {"course_id": [111, 222]}},
            {"term": {"grade": 3}},
            {"range": {"day": {"gt": "2019-06-01"}}},
            {"range": {"day": {"lt": "2019-07-01"}}},
            {"match": {"real_name": "Zhang"}},
        ]
        assert query["filter"]["bool"]["must_not"] == [{"terms": {"grade": [2, 3]}}]
        assert query["must"]["bool"]["must"] == [{"exists": {"field": "email"}}]

    def test_scalar_negation_uses_term(self, search_client: FakeSearchClient) -> None:
        backend = SearchEngineQueryBackend(search_client, "students")
        backend.add_not_equals("grade", 2)
        assert backend.body["query"]["bool"]["filter"]["bool"]["must_not"] == [
            {"term": {"grade": 2}}
        ]

    @pytest.mark.parametrize(
        ("operator", "key"),
        [
            (RangeOperator.GE, "gte"),
            (RangeOperator.LE, "lte"),
            (RangeOperator.GT, "gt"),
            (RangeOperator.LT, "lt"),
        ],
    )
    def test_range_operator_names(
        self,
        search_client: FakeSearchClient,
        operator: RangeOperator,
        key: str,
    ) -> None:
        backend = SearchEngineQueryBackend(search_client, "students")
        backend.add_range("day", operator, "2019-06-01")
        must = backend.body["query"]["bool"]["filter"]["bool"]["must"]
        assert must == [{"range": {"day": {key: "2019-06-01"}}}]

    def test_special_handler_can_add_raw_clause(
        self, search_client: FakeSearchClient
    ) -> None:
        backend = SearchEngineQueryBackend(search_client, "students")
        backend.add_clause("should", {"term": {"vip": True}})
        assert backend.body["query"]["bool"]["filter"]["bool"]["should"] == [
            {"term": {"vip": True}}
        ]

    def test_special_handler_through_orchestrator(
        self, student_spec: FilterSpec, search_client: FakeSearchClient
    ) -> None:
        _orchestrator(student_spec, search_client).search({"grade_band": "senior"})
        must = _body(search_client)["query"]["bool"]["filter"]["bool"]["must"]
        assert must == [{"terms": {"grade": [3, 4]}}]

    def test_empty_request_has_no_query(
        self, student_spec: FilterSpec, search_client: FakeSearchClient
    ) -> None:
        _orchestrator(student_spec, search_client).search()
        assert _body(search_client) == {"size": 10000, "from": 0}

    def test_sort_entries_in_order(
        self, student_spec: FilterSpec, search_client: FakeSearchClient
    ) -> None:
        _orchestrator(student_spec, search_client).search(
            sort={"day": "desc", "id": "asc"}
        )
        assert _body(search_client)["sort"] == [
            {"day": {"order": "desc"}},
            {"id": {"order": "asc"}},
        ]

    def test_source_projection(
        self, student_spec: FilterSpec, search_client: FakeSearchClient
    ) -> None:
        _orchestrator(student_spec, search_client).search({"_source": ["id", "day"]})
        assert _body(search_client)["_source"] == ["id", "day"]

    def test_include_is_ignored(
        self, student_spec: FilterSpec, search_client: FakeSearchClient
    ) -> None:
        _orchestrator(student_spec, search_client).search(include=["course"])
        assert "course" not in str(_body(search_client))


class TestPagination:
    def test_from_offset(
        self, student_spec: FilterSpec, search_client: FakeSearchClient
    ) -> None:
        _orchestrator(student_spec, search_client).search(page=3, size=20)
        body = _body(search_client)
        assert body["from"] == 40
        assert body["size"] == 20

    def test_last_page_inside_window(
        self, student_spec: FilterSpec, search_client: FakeSearchClient
    ) -> None:
        _orchestrator(student_spec, search_client).search(page=500, size=20)
        assert _body(search_client)["from"] == 9980

    def test_page_beyond_window_fails(
        self, student_spec: FilterSpec, search_client: FakeSearchClient
    ) -> None:
        with pytest.raises(PageTooLargeError) as exc_info:
            _orchestrator(student_spec, search_client).search(page=501, size=20)
        assert exc_info.value.offset == 10000
        assert exc_info.value.to_dict()["message"] == "page number unsupported"
        assert search_client.calls == []

    def test_custom_window(self, search_client: FakeSearchClient) -> None:
        backend = SearchEngineQueryBackend(
            search_client,
            "students",
            config=SearchEngineBackendConfig(max_result_window=100, unpaged_size=50),
        )
        with pytest.raises(PageTooLargeError):
            backend.apply_pagination(11, 10)
        backend.apply_pagination(0, 0)
        assert backend.body == {"size": 50, "from": 0}

    def test_unpaged_requests_max_window(
        self, search_client: FakeSearchClient
    ) -> None:
        backend = SearchEngineQueryBackend(search_client, "students")
        backend.apply_pagination(0, 20)
        assert backend.body == {"size": 10000, "from": 0}


class TestExecution:
    def test_params_and_doc_type(self, search_client: FakeSearchClient) -> None:
        backend = SearchEngineQueryBackend(search_client, "students", doc_type="_doc")
        backend.apply_pagination(1, 10)
        backend.execute()
        assert search_client.calls == [
            {
                "index": "students",
                "doc_type": "_doc",
                "body": {"size": 10, "from": 0},
            }
        ]

    def test_hits_are_normalised(self, student_spec: FilterSpec) -> None:
        client = FakeSearchClient(make_hits({"id": 1}, {"id": 2}, total=45))
        result = _orchestrator(student_spec, client).search(page=2, size=20)
        assert result.records == [{"id": 1}, {"id": 2}]
        assert result.meta.total == 45
        assert result.meta.size == 20
        assert result.meta.page == 2
        assert result.meta.total_page == 3

    def test_total_as_object(self, student_spec: FilterSpec) -> None:
        client = FakeSearchClient(
            make_hits({"id": 1}, total={"value": 7, "relation": "eq"})
        )
        result = _orchestrator(student_spec, client).search(page=1, size=5)
        assert result.meta.total == 7
        assert result.meta.total_page == 2

    def test_unpaged_meta_uses_list_length(self, student_spec: FilterSpec) -> None:
        client = FakeSearchClient(make_hits({"id": 1}, {"id": 2}, {"id": 3}))
        result = _orchestrator(student_spec, client).search()
        assert result.meta.size == 3
        assert result.meta.page == 1
        assert result.meta.total_page == 1

    def test_empty_result_avoids_division_by_zero(
        self, student_spec: FilterSpec, search_client: FakeSearchClient
    ) -> None:
        result = _orchestrator(student_spec, search_client).search()
        assert result.records == []
        assert result.meta.total_page == 0

    def test_client_errors_propagate(self, student_spec: FilterSpec) -> None:
        client = FakeSearchClient(error=ConnectionError("cluster down"))
        with pytest.raises(ConnectionError, match="cluster down"):
            _orchestrator(student_spec, client).search({"grade": 1})

    def test_api_response_body_is_unwrapped(self, student_spec: FilterSpec) -> None:
        class ApiResponse:
            def __init__(self, body: dict[str, Any]) -> None:
                self.body = body

        client = FakeSearchClient()
        client.response = ApiResponse(make_hits({"id": 9}))  # type: ignore[assignment]
        result = _orchestrator(student_spec, client).search()
        assert result.records == [{"id": 9}]
