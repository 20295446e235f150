"""RangeParser — operator-prefixed tokens such as ``">=2019-06-01"``."""

from __future__ import annotations

from enum import Enum
from typing import Any, NamedTuple


class RangeOperator(str, Enum):
    """Comparison operators accepted at the start of a range token."""

    GE = ">="
    LE = "<="
    GT = ">"
    LT = "<"

    @property
    def search_name(self) -> str:
        """Search-engine range key (``gte``, ``lte``, ``gt``, ``lt``)."""
        return _SEARCH_NAMES[self]


_SEARCH_NAMES = {
    RangeOperator.GE: "gte",
    RangeOperator.LE: "lte",
    RangeOperator.GT: "gt",
    RangeOperator.LT: "lt",
}

# Two-character operators must be tried before their one-character prefixes.
_SCAN_ORDER = (RangeOperator.GE, RangeOperator.LE, RangeOperator.GT, RangeOperator.LT)


class RangeBound(NamedTuple):
    operator: RangeOperator
    bound: str


def parse_range_token(token: Any) -> RangeBound | None:
    """Return the ``(operator, bound)`` pair for *token*, or ``None``.

    Tokens without a leading operator are not an error; they are dropped.
    """
    if not isinstance(token, str):
        return None
    for operator in _SCAN_ORDER:
        if token.startswith(operator.value):
            return RangeBound(operator, token[len(operator.value) :])
    return None


def parse_range(value: Any) -> list[RangeBound]:
    """Parse a single token or a collection of tokens into range bounds.

    Lists and tuples keep their order; sets are visited in sorted order.
    """
    if isinstance(value, (set, frozenset)):
        tokens: Any = sorted(value, key=str)
    elif isinstance(value, (list, tuple)):
        tokens = value
    else:
        tokens = [value]
    bounds: list[RangeBound] = []
    for token in tokens:
        parsed = parse_range_token(token)
        if parsed is not None:
            bounds.append(parsed)
    return bounds
