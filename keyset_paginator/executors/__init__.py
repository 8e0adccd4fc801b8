"""Query executors that run page queries."""

from ..pagination.query import PageQuery, QueryExecutor
from .memory import InMemoryExecutor
from .postgres import PostgresExecutor, SqlQuery

__all__ = [
    "PageQuery",
    "QueryExecutor",
    "InMemoryExecutor",
    "PostgresExecutor",
    "SqlQuery"
]
