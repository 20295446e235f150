"""
Relational query backend on SQLAlchemy 2.x.

Predicates accumulate as ``WHERE`` criteria on a ``select(model)``
statement; sorting, offset/limit pagination and eager loading of
whitelisted relations are applied when the statement is built.  The
statement runs through a synchronous :class:`~sqlalchemy.orm.Session`.

Unlike the search-engine backend there is no deep-pagination window:
any page may be requested.
"""

from __future__ import annotations

import logging
import operator as op_module
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import asc, desc, func, inspect, select
from sqlalchemy.orm import selectinload

from ..exceptions import UnknownFieldError
from ..normalizer import normalize_paginated, normalize_unpaged
from ..range_parser import RangeOperator

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.orm import Session

    from ..normalizer import ResultEnvelope

logger = logging.getLogger("search_builder.backends.relational")

_RANGE_OPERATORS: dict[RangeOperator, Callable[[Any, Any], Any]] = {
    RangeOperator.GE: op_module.ge,
    RangeOperator.LE: op_module.le,
    RangeOperator.GT: op_module.gt,
    RangeOperator.LT: op_module.lt,
}


@dataclass(frozen=True)
class RelationalBackendConfig:
    """Relational backend configuration.

    Attributes:
        serializer: Converts a loaded model instance to a record.  Defaults
            to a dict of mapped column values plus included relations.
        like_template: ``str.format`` template wrapping substring values.
    """

    serializer: Callable[[Any], Any] | None = None
    like_template: str = "%{}%"


def model_to_dict(instance: Any, relations: Sequence[str] = ()) -> dict[str, Any]:
    """Mapped column values of *instance*, plus the named loaded relations."""
    mapper = inspect(type(instance))
    data = {attr.key: getattr(instance, attr.key) for attr in mapper.column_attrs}
    for name in relations:
        related = getattr(instance, name)
        if related is None:
            data[name] = None
        elif isinstance(related, (list, set, tuple)):
            data[name] = [model_to_dict(item) for item in related]
        else:
            data[name] = model_to_dict(related)
    return data


class SQLAlchemyQueryBackend:
    """
    Renders predicates onto a SQLAlchemy ``Select`` for one mapped model.

    Build a new instance for every search invocation.
    """

    def __init__(
        self,
        session: Session,
        model: type[Any],
        config: RelationalBackendConfig | None = None,
    ) -> None:
        self._session = session
        self._model = model
        self._config = config or RelationalBackendConfig()
        self._mapper = inspect(model)
        self._criteria: list[ColumnElement[bool]] = []
        self._order_by: list[Any] = []
        self._includes: list[str] = []
        self._page = 0
        self._size = 0

    # -- column resolution --------------------------------------------------

    def _column(self, field: str) -> Any:
        if field not in self._mapper.column_attrs:
            raise UnknownFieldError(
                field,
                self._model.__name__,
                [attr.key for attr in self._mapper.column_attrs],
            )
        return getattr(self._model, field)

    # -- predicates ---------------------------------------------------------

    def add_criterion(self, criterion: ColumnElement[bool]) -> None:
        """Add a raw SQLAlchemy boolean expression (for special handlers)."""
        self._criteria.append(criterion)

    def add_equals(self, field: str, value: Any) -> None:
        self.add_criterion(self._column(field) == value)

    def add_in(self, field: str, values: Sequence[Any]) -> None:
        self.add_criterion(self._column(field).in_(list(values)))

    def add_not_equals(self, field: str, value: Any) -> None:
        self.add_criterion(self._column(field) != value)

    def add_not_in(self, field: str, values: Sequence[Any]) -> None:
        self.add_criterion(~self._column(field).in_(list(values)))

    def add_range(self, field: str, operator: RangeOperator, bound: Any) -> None:
        compare = _RANGE_OPERATORS[RangeOperator(operator)]
        self.add_criterion(compare(self._column(field), bound))

    def add_contains(self, field: str, value: Any) -> None:
        pattern = self._config.like_template.format(value)
        self.add_criterion(self._column(field).like(pattern))

    def add_exists(self, field: str) -> None:
        # exist_field is honoured by the search-engine backend only.
        logger.debug("Ignoring existence filter on %r", field)

    # -- shaping ------------------------------------------------------------

    def apply_sort(self, sort: Sequence[tuple[str, str]]) -> None:
        for field, direction in sort:
            if field not in self._mapper.column_attrs:
                logger.debug("Skipping sort on unmapped field %r", field)
                continue
            column = getattr(self._model, field)
            self._order_by.append(
                desc(column) if str(direction).lower() == "desc" else asc(column)
            )

    def apply_pagination(self, page: int, size: int) -> None:
        if page > 0 and size > 0:
            self._page = page
            self._size = size
        else:
            self._page = self._size = 0

    def apply_include(self, relations: Sequence[str], allowed: frozenset[str]) -> None:
        for name in relations:
            if name not in allowed:
                logger.debug("Dropping non-includable relation %r", name)
                continue
            if name in self._includes:
                continue
            if name not in self._mapper.relationships:
                raise UnknownFieldError(
                    name,
                    self._model.__name__,
                    [rel.key for rel in self._mapper.relationships],
                )
            self._includes.append(name)

    def apply_source(self, fields: Any) -> None:
        if fields:
            logger.debug("Source projection is not supported by the relational backend")

    # -- execution ----------------------------------------------------------

    @property
    def paginated(self) -> bool:
        return self._page > 0 and self._size > 0

    @property
    def offset(self) -> int:
        return (self._page - 1) * self._size if self.paginated else 0

    @property
    def includes(self) -> list[str]:
        return list(self._includes)

    def statement(self) -> Select[Any]:
        """Build the row-fetching ``SELECT`` from the accumulated state."""
        stmt = select(self._model).where(*self._criteria).order_by(*self._order_by)
        if self._includes:
            stmt = stmt.options(
                *(selectinload(getattr(self._model, name)) for name in self._includes)
            )
        if self.paginated:
            stmt = stmt.offset(self.offset).limit(self._size)
        return stmt

    def count_statement(self) -> Select[Any]:
        return select(func.count()).select_from(self._model).where(*self._criteria)

    def _serialize(self, instance: Any) -> Any:
        if self._config.serializer is not None:
            return self._config.serializer(instance)
        return model_to_dict(instance, self._includes)

    def execute(self) -> ResultEnvelope:
        records = [
            self._serialize(row)
            for row in self._session.scalars(self.statement()).all()
        ]
        if not self.paginated:
            return normalize_unpaged(records)
        total = self._session.scalar(self.count_statement()) or 0
        return normalize_paginated(
            records, total=total, size=self._size, page=self._page
        )
