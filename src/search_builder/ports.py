"""Ports — capability protocols implemented by query backends and clients."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .normalizer import ResultEnvelope
    from .range_parser import RangeOperator


@runtime_checkable
class IQueryBackend(Protocol):
    """
    Renders backend-neutral predicates into a native query and runs it.

    An instance accumulates query state for exactly one search invocation.
    Callers must build a new instance per request and never share one
    between concurrent invocations.
    """

    def add_equals(self, field: str, value: Any) -> None: ...

    def add_in(self, field: str, values: Sequence[Any]) -> None: ...

    def add_not_equals(self, field: str, value: Any) -> None: ...

    def add_not_in(self, field: str, values: Sequence[Any]) -> None: ...

    def add_range(self, field: str, operator: RangeOperator, bound: Any) -> None: ...

    def add_contains(self, field: str, value: Any) -> None: ...

    def add_exists(self, field: str) -> None: ...

    def apply_sort(self, sort: Sequence[tuple[str, str]]) -> None: ...

    def apply_pagination(self, page: int, size: int) -> None: ...

    def apply_include(
        self, relations: Sequence[str], allowed: frozenset[str]
    ) -> None: ...

    def apply_source(self, fields: Any) -> None: ...

    def execute(self) -> ResultEnvelope: ...


@runtime_checkable
class ISearchClient(Protocol):
    """Search-engine client contract.

    The official ``elasticsearch`` client satisfies this protocol.
    """

    def search(self, **params: Any) -> Any: ...
