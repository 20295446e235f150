"""Query backends implementing :class:`~search_builder.ports.IQueryBackend`."""

from __future__ import annotations

from .relational import RelationalBackendConfig, SQLAlchemyQueryBackend, model_to_dict
from .search_engine import (
    DEFAULT_MAX_RESULT_WINDOW,
    SearchEngineBackendConfig,
    SearchEngineQueryBackend,
)

__all__ = [
    "DEFAULT_MAX_RESULT_WINDOW",
    "RelationalBackendConfig",
    "SQLAlchemyQueryBackend",
    "SearchEngineBackendConfig",
    "SearchEngineQueryBackend",
    "model_to_dict",
]
