"""
Compile a filter map into backend-neutral predicates.

Categories run in a fixed order: normal, range, negated, contains,
special, and finally the existence pass driven by the reserved
``exist_field`` key.  Within a category the declared fields are visited
in sorted order so compilation is deterministic.

Any value that is absent, ``None``, an empty string or an empty list is
skipped without error.  Filter keys that no category declares are ignored.
Substring filters take one value; a list raises InvalidSearchRequestError.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .exceptions import InvalidSearchRequestError
from .predicates import (
    Contains,
    Custom,
    Equals,
    Exists,
    In,
    NotEquals,
    NotIn,
    Predicate,
    Range,
)
from .range_parser import parse_range

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from .filter_spec import FilterSpec

logger = logging.getLogger("search_builder.compiler")

NOT_PREFIX = "not_"
RANGE_PREFIX = "range_"
CONTAIN_PREFIX = "contain_"
EXIST_FIELD_KEY = "exist_field"
SOURCE_KEY = "_source"


def is_empty(value: Any) -> bool:
    """True for values that never produce a predicate."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def strip_prefix(name: str, prefix: str) -> str:
    """Remove *prefix* exactly once; names without it are returned as-is."""
    if name.startswith(prefix):
        return name[len(prefix) :]
    return name


def _is_list(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


class PredicateCompiler:
    """Classifies a filter map against a :class:`FilterSpec`."""

    def __init__(self, spec: FilterSpec) -> None:
        self._spec = spec

    @property
    def spec(self) -> FilterSpec:
        return self._spec

    def compile(self, filters: Mapping[str, Any] | None) -> list[Predicate]:
        """Return the predicates for *filters* (implicitly ANDed)."""
        filters = filters or {}
        predicates: list[Predicate] = []
        steps: list[tuple[frozenset[str], Callable[[str, Any], list[Predicate]]]] = [
            (self._spec.normal_fields, self._compile_normal),
            (self._spec.range_fields, self._compile_range),
            (self._spec.not_fields, self._compile_not),
            (self._spec.contain_fields, self._compile_contain),
            (self._spec.special_fields, self._compile_special),
        ]
        for fields, step in steps:
            for name in sorted(fields):
                value = filters.get(name)
                if is_empty(value):
                    continue
                predicates.extend(step(name, value))
        predicates.extend(self._compile_exists(filters.get(EXIST_FIELD_KEY)))
        logger.debug(
            "Compiled %d predicate(s) from %d filter key(s)",
            len(predicates),
            len(filters),
        )
        return predicates

    def _compile_normal(self, name: str, value: Any) -> list[Predicate]:
        if _is_list(value):
            return [In(name, tuple(value))]
        return [Equals(name, value)]

    def _compile_not(self, name: str, value: Any) -> list[Predicate]:
        target = strip_prefix(name, NOT_PREFIX)
        if _is_list(value):
            return [NotIn(target, tuple(value))]
        return [NotEquals(target, value)]

    def _compile_range(self, name: str, value: Any) -> list[Predicate]:
        target = strip_prefix(name, RANGE_PREFIX)
        bounds = parse_range(value)
        if not bounds:
            logger.debug("No parseable range token for %r: %r", name, value)
        return [Range(target, b.operator, b.bound) for b in bounds]

    def _compile_contain(self, name: str, value: Any) -> list[Predicate]:
        if _is_list(value):
            raise InvalidSearchRequestError(
                {name: ["Substring filters accept a single value, not a list."]}
            )
        return [Contains(strip_prefix(name, CONTAIN_PREFIX), value)]

    def _compile_special(self, name: str, value: Any) -> list[Predicate]:
        return [Custom(name, value, self._spec.handlers.resolve(name))]

    def _compile_exists(self, value: Any) -> list[Predicate]:
        if is_empty(value):
            return []
        names = value if _is_list(value) else [value]
        return [Exists(str(n)) for n in names if not is_empty(n)]


def compile_filters(spec: FilterSpec, filters: Mapping[str, Any] | None) -> list[Predicate]:
    """Shorthand for ``PredicateCompiler(spec).compile(filters)``."""
    return PredicateCompiler(spec).compile(filters)
