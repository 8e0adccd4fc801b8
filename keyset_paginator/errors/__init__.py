"""Error handling module for the keyset paginator."""

from .problem_details import (
    ProblemDetail,
    ProblemDetailException,
    PaginatorError,
    ConfigurationError,
    InvalidCursorError,
    UnknownSortError,
    QueryExecutionError,
    create_problem_response
)
from .handlers import register_exception_handlers

__all__ = [
    "ProblemDetail",
    "ProblemDetailException",
    "PaginatorError",
    "ConfigurationError",
    "InvalidCursorError",
    "UnknownSortError",
    "QueryExecutionError",
    "create_problem_response",
    "register_exception_handlers"
]
