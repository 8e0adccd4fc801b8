"""Keyset (cursor) pagination over multi-column sorts."""

from .errors import (
    PaginatorError,
    ConfigurationError,
    InvalidCursorError,
    UnknownSortError,
    QueryExecutionError,
    register_exception_handlers
)
from .pagination import (
    ColumnType,
    SortDirection,
    SortDescriptor,
    ValidationResult,
    BoundaryChain,
    Cursor,
    Page,
    PageQuery,
    Paginator,
    PaginatorOptions,
    GetPageOptions,
    QueryExecutor,
    create_link_header
)
from .executors import InMemoryExecutor, PostgresExecutor, SqlQuery

__all__ = [
    "PaginatorError",
    "ConfigurationError",
    "InvalidCursorError",
    "UnknownSortError",
    "QueryExecutionError",
    "register_exception_handlers",
    "ColumnType",
    "SortDirection",
    "SortDescriptor",
    "ValidationResult",
    "BoundaryChain",
    "Cursor",
    "Page",
    "PageQuery",
    "Paginator",
    "PaginatorOptions",
    "GetPageOptions",
    "QueryExecutor",
    "create_link_header",
    "InMemoryExecutor",
    "PostgresExecutor",
    "SqlQuery"
]
