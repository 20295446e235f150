"""
ResultNormalizer — uniform ``{list, meta}`` envelope for every backend.

Callers receive the same shape whether the data came from the relational
store or the search engine::

    {
        "list": [...],
        "meta": {"total": 42, "size": 20, "page": 1, "total_page": 3},
    }
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PageMeta(BaseModel):
    """Pagination metadata of a result envelope."""

    model_config = ConfigDict(frozen=True)

    total: int = 0
    size: int = 0
    page: int = 0
    total_page: int = 0


class ResultEnvelope(BaseModel):
    """Backend-agnostic search result."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    records: list[Any] = Field(default_factory=list, alias="list")
    meta: PageMeta = Field(default_factory=PageMeta)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to ``{"list": [...], "meta": {...}}``."""
        return self.model_dump(by_alias=True)


def normalize_unpaged(records: list[Any]) -> ResultEnvelope:
    """Everything in one page: ``total == size == len(records)``."""
    count = len(records)
    return ResultEnvelope(
        records=records,
        meta=PageMeta(total=count, size=count, page=1, total_page=1),
    )


def normalize_paginated(
    records: list[Any], *, total: int, size: int, page: int
) -> ResultEnvelope:
    """Offset-paginated relational result.

    ``total_page`` is never below 1, even for an empty result.
    """
    total_page = max(math.ceil(total / size), 1) if size else 1
    return ResultEnvelope(
        records=records,
        meta=PageMeta(total=total, size=size, page=page, total_page=total_page),
    )


def _hits_total(hits: dict[str, Any]) -> int:
    total = hits.get("total", 0)
    # Elasticsearch 7+ reports {"value": n, "relation": "eq"}.
    if isinstance(total, dict):
        total = total.get("value", 0)
    return int(total or 0)


def normalize_search_response(
    response: dict[str, Any], *, page: int, size: int
) -> ResultEnvelope:
    """Search-engine response (``hits.hits[]._source`` + ``hits.total``)."""
    hits = response.get("hits") or {}
    records = [hit.get("_source") for hit in hits.get("hits") or []]
    total = _hits_total(hits)
    effective_size = size or len(records)
    total_page = math.ceil(total / (effective_size or 1))
    return ResultEnvelope(
        records=records,
        meta=PageMeta(
            total=total,
            size=effective_size,
            page=page or 1,
            total_page=total_page,
        ),
    )
