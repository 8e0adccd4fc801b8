"""In-memory query executor.

Evaluates page queries over Python rows with the same semantics a SQL
database would apply: comparisons involving null are unknown, and only rows
for which the boundary is true are kept.
"""

import logging
from collections.abc import Mapping
from functools import cmp_to_key
from typing import Any, List, Optional

from ..pagination.descriptor import get_path
from ..pagination.predicates import (
    And,
    Comparison,
    IsNull,
    Not,
    NullPlacementOrder,
    OrderTerm,
    Or,
    Predicate
)
from ..pagination.query import PageQuery, QueryExecutor

logger = logging.getLogger(__name__)


def column_value(row: Any, column: str) -> Any:
    """Read a column from a row.

    Qualified ``table.column`` identifiers are looked up as-is first, then by
    their dotted path, then by the bare column name.
    """
    if isinstance(row, Mapping) and column in row:
        return row[column]
    value = get_path(row, column)
    if value is None and "." in column:
        value = get_path(row, column.rpartition(".")[2])
    return value


def evaluate(predicate: Predicate, row: Any) -> Optional[bool]:
    """Evaluate a predicate with three-valued logic (None means unknown)."""
    if isinstance(predicate, Comparison):
        left = column_value(row, predicate.column)
        right = predicate.value
        if left is None or right is None:
            return None
        if predicate.operator == ">":
            return left > right
        if predicate.operator == "<":
            return left < right
        return left == right
    if isinstance(predicate, IsNull):
        return column_value(row, predicate.column) is None
    if isinstance(predicate, Not):
        result = evaluate(predicate.term, row)
        return None if result is None else not result
    if isinstance(predicate, And):
        results = [evaluate(term, row) for term in predicate.terms]
        if False in results:
            return False
        return None if None in results else True
    if isinstance(predicate, Or):
        results = [evaluate(term, row) for term in predicate.terms]
        if True in results:
            return True
        return None if None in results else False
    raise TypeError(f"Unsupported predicate {type(predicate).__name__}")


def _compare_term(term: OrderTerm, a: Any, b: Any) -> int:
    left = column_value(a, term.column)
    right = column_value(b, term.column)
    if isinstance(term, NullPlacementOrder):
        left, right = left is None, right is None
    elif left is None or right is None:
        # Only reachable without a placement term; nulls compare low.
        left, right = left is not None, right is not None
    result = (left > right) - (left < right)
    return -result if term.order == "desc" else result


def sort_rows(rows: List[Any], order: List[OrderTerm]) -> List[Any]:
    def compare(a, b):
        for term in order:
            result = _compare_term(term, a, b)
            if result:
                return result
        return 0

    return sorted(rows, key=cmp_to_key(compare))


class InMemoryExecutor(QueryExecutor):
    """Executes page queries over an in-memory collection of rows.

    The base query is an iterable of rows, or a callable returning one. Rows
    may be mappings or objects with attributes.
    """

    def _matching_rows(self, query: PageQuery) -> List[Any]:
        source = query.base() if callable(query.base) else query.base
        rows = list(source)
        if query.boundary is not None:
            rows = [row for row in rows if evaluate(query.boundary, row) is True]
        return rows

    async def fetch(self, query: PageQuery) -> List[Any]:
        rows = sort_rows(self._matching_rows(query), query.order)
        logger.debug(f"In-memory fetch matched {len(rows)} rows, returning up to {query.limit}")
        return rows[:query.limit]

    async def count(self, query: PageQuery) -> int:
        return len(self._matching_rows(query))
