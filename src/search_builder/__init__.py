"""Declarative filter-query compiler for relational and search-engine backends."""

from __future__ import annotations

from .backends import (
    RelationalBackendConfig,
    SearchEngineBackendConfig,
    SearchEngineQueryBackend,
    SQLAlchemyQueryBackend,
)
from .compiler import PredicateCompiler, compile_filters
from .exceptions import (
    FilterSpecError,
    HandlerError,
    HandlerNotFoundError,
    HandlerRegistrationError,
    InvalidSearchRequestError,
    PageTooLargeError,
    QueryBuildError,
    SearchBuilderError,
    UnknownFieldError,
)
from .filter_spec import FilterSpec, HandlerRegistry
from .normalizer import PageMeta, ResultEnvelope
from .orchestrator import SearchOrchestrator
from .ports import IQueryBackend, ISearchClient
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
    apply_predicates,
)
from .range_parser import RangeBound, RangeOperator, parse_range
from .request import SearchRequest

__all__ = [
    # Entry point
    "SearchOrchestrator",
    "SearchRequest",
    # Declaration
    "FilterSpec",
    "HandlerRegistry",
    # Compilation
    "PredicateCompiler",
    "compile_filters",
    "RangeBound",
    "RangeOperator",
    "parse_range",
    # Predicates
    "Predicate",
    "Equals",
    "In",
    "NotEquals",
    "NotIn",
    "Range",
    "Contains",
    "Exists",
    "Custom",
    "apply_predicates",
    # Backends
    "IQueryBackend",
    "ISearchClient",
    "SQLAlchemyQueryBackend",
    "RelationalBackendConfig",
    "SearchEngineQueryBackend",
    "SearchEngineBackendConfig",
    # Results
    "ResultEnvelope",
    "PageMeta",
    # Exceptions
    "SearchBuilderError",
    "FilterSpecError",
    "HandlerError",
    "HandlerNotFoundError",
    "HandlerRegistrationError",
    "QueryBuildError",
    "UnknownFieldError",
    "PageTooLargeError",
    "InvalidSearchRequestError",
]
