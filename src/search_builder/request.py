"""SearchRequest — validated invocation parameters."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .exceptions import InvalidSearchRequestError

SortDirection = Literal["asc", "desc"]


class SearchRequest(BaseModel):
    """
    Immutable search parameters.

    ``page`` and ``size`` both zero means "unpaged".  ``sort`` accepts an
    ordered ``{field: direction}`` mapping, a list of ``(field, direction)``
    pairs, or ``["-created_at", "name"]`` style strings; insertion order is
    the sort order.  ``aggs`` is reserved and currently not compiled.
    """

    model_config = ConfigDict(frozen=True)

    filters: dict[str, Any] = Field(default_factory=dict)
    page: int = Field(default=0, ge=0)
    size: int = Field(default=0, ge=0)
    sort: list[tuple[str, SortDirection]] = Field(default_factory=list)
    include: list[str] = Field(default_factory=list)
    aggs: dict[str, Any] = Field(default_factory=dict)

    @field_validator("filters", "aggs", mode="before")
    @classmethod
    def _none_to_dict(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("include", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("page", "size", mode="before")
    @classmethod
    def _none_to_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("sort", mode="before")
    @classmethod
    def _normalise_sort(cls, value: Any) -> Any:
        if not value:
            return []
        if isinstance(value, Mapping):
            items: list[Any] = list(value.items())
        else:
            items = []
            for item in value:
                if isinstance(item, str):
                    if item.startswith("-"):
                        items.append((item[1:], "desc"))
                    else:
                        items.append((item, "asc"))
                else:
                    items.append(tuple(item))
        return [
            (field, direction.lower() if isinstance(direction, str) else direction)
            for field, direction in items
        ]

    @classmethod
    def build(cls, **params: Any) -> SearchRequest:
        """
        Validate *params* into a request.

        Raises:
            InvalidSearchRequestError: With ``{location: [messages]}`` errors.
        """
        try:
            return cls.model_validate(params)
        except PydanticValidationError as exc:
            errors: dict[str, list[str]] = {}
            for error in exc.errors():
                loc = ".".join(str(p) for p in error.get("loc", ("__root__",)))
                msg = error.get("msg", "validation error")
                errors.setdefault(loc, []).append(msg)
            raise InvalidSearchRequestError(errors) from exc
