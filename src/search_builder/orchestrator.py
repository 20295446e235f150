"""
SearchOrchestrator — public entry point.

Sequences one search invocation::

    validate request -> compile predicates -> new backend -> apply
    predicates -> sort -> paginate -> include/source -> execute

Usage::

    orchestrator = SearchOrchestrator(
        LESSONS,
        lambda: SQLAlchemyQueryBackend(session, Lesson),
    )
    result = orchestrator.search(
        {"course_id": [111, 222], "range_day": [">2019-06-01"]},
        page=1,
        size=20,
        sort={"day": "desc"},
    )
    result.to_dict()  # {"list": [...], "meta": {...}}
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from .compiler import SOURCE_KEY, PredicateCompiler
from .predicates import apply_predicates
from .request import SearchRequest

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from .filter_spec import FilterSpec
    from .normalizer import ResultEnvelope
    from .ports import IQueryBackend

    BackendFactory = Callable[[], IQueryBackend]

logger = logging.getLogger("search_builder.orchestrator")


class SearchOrchestrator:
    """
    Compiles and runs searches for one resource.

    The filter spec is shared and read-only; backend state is not.  The
    orchestrator asks ``backend_factory`` for a new backend on every call
    and never keeps a reference to it.
    """

    def __init__(self, spec: FilterSpec, backend_factory: BackendFactory) -> None:
        self._spec = spec
        self._compiler = PredicateCompiler(spec)
        self._backend_factory = backend_factory

    @property
    def spec(self) -> FilterSpec:
        return self._spec

    def search(
        self,
        filters: Mapping[str, Any] | None = None,
        page: int = 0,
        size: int = 0,
        sort: Mapping[str, str] | Sequence[Any] | None = None,
        include: Sequence[str] | None = None,
        aggs: Mapping[str, Any] | None = None,
    ) -> ResultEnvelope:
        """Run one search and return the normalised envelope."""
        request = SearchRequest.build(
            filters=filters,
            page=page,
            size=size,
            sort=sort,
            include=include,
            aggs=aggs,
        )
        return self.execute(request)

    def execute(self, request: SearchRequest) -> ResultEnvelope:
        start = time.perf_counter()
        try:
            backend = self.prepare(request)
            result = backend.execute()
        except Exception:
            elapsed = (time.perf_counter() - start) * 1000
            logger.exception("Search failed after %.2fms", elapsed)
            raise
        elapsed = (time.perf_counter() - start) * 1000
        logger.info(
            "Search returned %d of %d record(s) in %.2fms",
            len(result.records),
            result.meta.total,
            elapsed,
        )
        return result

    def prepare(self, request: SearchRequest) -> IQueryBackend:
        """Build a fresh backend with every directive of *request* applied."""
        predicates = self._compiler.compile(request.filters)
        backend = self._backend_factory()
        apply_predicates(predicates, backend)
        backend.apply_sort(request.sort)
        backend.apply_pagination(request.page, request.size)
        backend.apply_include(
            self._includable(request.include), self._spec.includable_relations
        )
        backend.apply_source(request.filters.get(SOURCE_KEY))
        if request.aggs:
            logger.debug("Ignoring aggregation directive: %s", sorted(request.aggs))
        return backend

    def _includable(self, relations: Sequence[str]) -> list[str]:
        allowed: list[str] = []
        for name in relations:
            if self._spec.is_includable(name):
                allowed.append(name)
            else:
                logger.debug("Dropping non-includable relation %r", name)
        return allowed
