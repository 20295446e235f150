"""
Search-engine query backend (Elasticsearch-compatible request bodies).

Predicates render into a nested bool query::

    {
        "query": {
            "bool": {
                "filter": {"bool": {"must": [...], "must_not": [...]}},
                "must": {"bool": {"must": [{"exists": {"field": "email"}}]}},
            }
        },
        "sort": [{"created_at": {"order": "desc"}}],
        "size": 20,
        "from": 40,
    }

The engine refuses to page past its result window, so a request whose
``from`` lands at or beyond ``max_result_window`` fails with
:class:`~search_builder.exceptions.PageTooLargeError` instead of being
clamped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..exceptions import PageTooLargeError
from ..normalizer import normalize_search_response
from ..range_parser import RangeOperator

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..normalizer import ResultEnvelope
    from ..ports import ISearchClient

logger = logging.getLogger("search_builder.backends.search_engine")

DEFAULT_MAX_RESULT_WINDOW = 10000


@dataclass(frozen=True)
class SearchEngineBackendConfig:
    """Search-engine backend configuration.

    Attributes:
        max_result_window: Deepest ``from`` offset the index accepts.
        unpaged_size: ``size`` requested when no page/size is given.
    """

    max_result_window: int = DEFAULT_MAX_RESULT_WINDOW
    unpaged_size: int = DEFAULT_MAX_RESULT_WINDOW


class SearchEngineQueryBackend:
    """
    Builds a search request body for one index.

    Build a new instance for every search invocation.
    """

    def __init__(
        self,
        client: ISearchClient,
        index: str,
        doc_type: str | None = None,
        config: SearchEngineBackendConfig | None = None,
    ) -> None:
        self._client = client
        self._index = index
        self._doc_type = doc_type
        self._config = config or SearchEngineBackendConfig()
        self._body: dict[str, Any] = {}
        self._page = 0
        self._size = 0

    @property
    def body(self) -> dict[str, Any]:
        return self._body

    # -- clause placement ---------------------------------------------------

    def _filter_bool(self) -> dict[str, Any]:
        query = self._body.setdefault("query", {}).setdefault("bool", {})
        return query.setdefault("filter", {}).setdefault("bool", {})

    def _must_bool(self) -> dict[str, Any]:
        query = self._body.setdefault("query", {}).setdefault("bool", {})
        return query.setdefault("must", {}).setdefault("bool", {})

    def add_clause(self, occur: str, clause: dict[str, Any]) -> None:
        """Append a raw clause to the filter bool (for special handlers).

        Args:
            occur: ``"must"``, ``"must_not"``, ``"should"`` or ``"filter"``.
            clause: A query DSL clause, e.g. ``{"term": {"grade": 3}}``.
        """
        self._filter_bool().setdefault(occur, []).append(clause)

    # -- predicates ---------------------------------------------------------

    def add_equals(self, field: str, value: Any) -> None:
        self.add_clause("must", {"term": {field: value}})

    def add_in(self, field: str, values: Sequence[Any]) -> None:
        self.add_clause("must", {"terms": {field: list(values)}})

    def add_not_equals(self, field: str, value: Any) -> None:
        self.add_clause("must_not", {"term": {field: value}})

    def add_not_in(self, field: str, values: Sequence[Any]) -> None:
        self.add_clause("must_not", {"terms": {field: list(values)}})

    def add_range(self, field: str, operator: RangeOperator, bound: Any) -> None:
        key = RangeOperator(operator).search_name
        self.add_clause("must", {"range": {field: {key: bound}}})

    def add_contains(self, field: str, value: Any) -> None:
        self.add_clause("must", {"match": {field: value}})

    def add_exists(self, field: str) -> None:
        self._must_bool().setdefault("must", []).append({"exists": {"field": field}})

    # -- shaping ------------------------------------------------------------

    def apply_sort(self, sort: Sequence[tuple[str, str]]) -> None:
        for field, direction in sort:
            self._body.setdefault("sort", []).append({field: {"order": direction}})

    def apply_pagination(self, page: int, size: int) -> None:
        if page > 0 and size > 0:
            offset = (page - 1) * size
            if offset >= self._config.max_result_window:
                raise PageTooLargeError(
                    page, size, offset, self._config.max_result_window
                )
            self._page = page
            self._size = size
            self._body["size"] = size
            self._body["from"] = offset
        else:
            self._page = self._size = 0
            self._body["size"] = self._config.unpaged_size
            self._body["from"] = 0

    def apply_include(self, relations: Sequence[str], allowed: frozenset[str]) -> None:
        if relations:
            logger.debug("Includes are not supported by the search backend: %s", relations)

    def apply_source(self, fields: Any) -> None:
        if fields:
            self._body["_source"] = fields

    # -- execution ----------------------------------------------------------

    def params(self) -> dict[str, Any]:
        params: dict[str, Any] = {"index": self._index, "body": self._body}
        if self._doc_type:
            params["doc_type"] = self._doc_type
        return params

    def execute(self) -> ResultEnvelope:
        response = self._client.search(**self.params())
        # elasticsearch-py 8 wraps the payload in an ObjectApiResponse.
        raw = getattr(response, "body", response)
        return normalize_search_response(raw, page=self._page, size=self._size)
