"""
Backend-neutral predicates.

Each predicate is one atomic condition; a compiled filter map is a list
of predicates combined with AND.  A predicate renders itself through the
:class:`~search_builder.ports.IQueryBackend` capability methods, so the
backends only implement rendering.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .filter_spec import SpecialHandler
    from .ports import IQueryBackend
    from .range_parser import RangeOperator


class Predicate(ABC):
    """One filtering condition applied to a query backend."""

    field: str

    @abstractmethod
    def apply(self, backend: IQueryBackend) -> None:
        """Render this predicate onto *backend*."""
        ...


@dataclass(frozen=True)
class Equals(Predicate):
    field: str
    value: Any

    def apply(self, backend: IQueryBackend) -> None:
        backend.add_equals(self.field, self.value)


@dataclass(frozen=True)
class In(Predicate):
    field: str
    values: tuple[Any, ...]

    def apply(self, backend: IQueryBackend) -> None:
        backend.add_in(self.field, list(self.values))


@dataclass(frozen=True)
class NotEquals(Predicate):
    field: str
    value: Any

    def apply(self, backend: IQueryBackend) -> None:
        backend.add_not_equals(self.field, self.value)


@dataclass(frozen=True)
class NotIn(Predicate):
    field: str
    values: tuple[Any, ...]

    def apply(self, backend: IQueryBackend) -> None:
        backend.add_not_in(self.field, list(self.values))


@dataclass(frozen=True)
class Range(Predicate):
    field: str
    operator: RangeOperator
    bound: str

    def apply(self, backend: IQueryBackend) -> None:
        backend.add_range(self.field, self.operator, self.bound)


@dataclass(frozen=True)
class Contains(Predicate):
    field: str
    value: Any

    def apply(self, backend: IQueryBackend) -> None:
        backend.add_contains(self.field, self.value)


@dataclass(frozen=True)
class Exists(Predicate):
    field: str

    def apply(self, backend: IQueryBackend) -> None:
        backend.add_exists(self.field)


@dataclass(frozen=True)
class Custom(Predicate):
    """Delegates to a registered special-filter handler.

    The handler receives the backend and the raw filter value and may add
    any number of conditions itself.
    """

    field: str
    value: Any
    handler: SpecialHandler

    def apply(self, backend: IQueryBackend) -> None:
        self.handler(backend, self.value)


def apply_predicates(predicates: Iterable[Predicate], backend: IQueryBackend) -> None:
    """Apply *predicates* to *backend* in order."""
    for predicate in predicates:
        predicate.apply(backend)
