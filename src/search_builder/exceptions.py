"""
Search builder exception hierarchy.

All exceptions inherit from ``SearchBuilderError`` and provide
``to_dict()`` for API-friendly error responses.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any


class SearchBuilderError(Exception):
    """Root exception for the search builder."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class FilterSpecError(SearchBuilderError):
    """Raised when a FilterSpec declaration is inconsistent.

    A field declared under more than one filter category is a
    configuration error.
    """

    def __init__(self, field: str, categories: list[str]) -> None:
        self.field = field
        self.categories = categories
        super().__init__(
            f"Field {field!r} is declared in more than one filter category: "
            f"{', '.join(categories)}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "FILTER_SPEC_ERROR",
            "field": self.field,
            "categories": self.categories,
        }


# ── Handler Exceptions ───────────────────────────────────────────────


class HandlerError(SearchBuilderError):
    """Base class for special filter handler errors (registration, lookup)."""


class HandlerNotFoundError(HandlerError):
    """Raised when a special filter has no registered handler."""

    def __init__(self, name: str, registered: list[str] | None = None) -> None:
        self.name = name
        self.registered = sorted(registered or [])
        self.suggestions = get_close_matches(name, self.registered, n=3, cutoff=0.6)

        message = f"No handler registered for special filter {name!r}."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "HANDLER_NOT_FOUND",
            "handler": self.name,
            "suggestions": self.suggestions,
        }


class HandlerRegistrationError(HandlerError):
    """Raised on duplicate registration or registration after freeze."""


# ── Query Build Exceptions ───────────────────────────────────────────


class QueryBuildError(SearchBuilderError):
    """Base class for errors raised while rendering a backend query."""


class UnknownFieldError(QueryBuildError):
    """
    A declared filter field does not exist on the backend model.

    Uses fuzzy matching to suggest similar valid field names.
    """

    def __init__(
        self,
        field: str,
        model_name: str,
        available_fields: list[str],
    ) -> None:
        self.field = field
        self.model_name = model_name
        self.available_fields = available_fields
        self.suggestions = get_close_matches(field, available_fields, n=3, cutoff=0.6)

        message = f"Invalid field '{field}' on '{model_name}'."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "UNKNOWN_FIELD",
            "field": self.field,
            "model": self.model_name,
            "suggestions": self.suggestions,
            "available_fields": sorted(self.available_fields),
        }


class PageTooLargeError(QueryBuildError):
    """The requested page lies beyond the search engine's result window."""

    def __init__(self, page: int, size: int, offset: int, max_window: int) -> None:
        self.page = page
        self.size = size
        self.offset = offset
        self.max_window = max_window
        super().__init__(
            f"Page number unsupported: page={page} size={size} "
            f"(offset {offset} exceeds the result window of {max_window})"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "PAGE_TOO_LARGE",
            "message": "page number unsupported",
            "page": self.page,
            "size": self.size,
            "offset": self.offset,
            "max_window": self.max_window,
        }


class InvalidSearchRequestError(SearchBuilderError):
    """Raised when search invocation parameters fail validation.

    Carries structured errors: ``{field: [messages]}``.
    """

    def __init__(self, errors: dict[str, list[str]] | str | None = None) -> None:
        if isinstance(errors, str):
            self.errors: dict[str, list[str]] = {"__root__": [errors]}
        elif errors is None:
            self.errors = {}
        else:
            self.errors = errors
        super().__init__(str(self.errors))

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "INVALID_SEARCH_REQUEST",
            "errors": self.errors,
        }
