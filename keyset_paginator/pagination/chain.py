"""Boundary chains: ordering and "rows after this one" filtering for a sort.

A chain is a sequence of normalized sort descriptors viewed as a head
descriptor plus an optional tail chain of subordinate (tie-break) columns.
Each chain handles its head column and delegates ties to its tail. Chains
share one descriptor tuple and differ only by start index.
"""

from typing import Any, List, Optional, Sequence, Tuple

from ..errors.problem_details import ConfigurationError, InvalidCursorError
from .descriptor import (
    NormalizedSortDescriptor,
    SortDescriptorLike,
    ValidationCase,
    normalize
)
from .predicates import (
    NEVER,
    NullPlacementOrder,
    OrderTerm,
    Predicate,
    ValueOrder,
    and_,
    compare,
    is_not_null,
    is_null,
    or_
)


class BoundaryChain:
    """An immutable, non-empty chain of sort descriptors."""

    __slots__ = ("_descriptors", "_start", "_any_nullable")

    def __init__(
        self,
        descriptors: Sequence[NormalizedSortDescriptor],
        start: int = 0
    ):
        descriptors = tuple(descriptors)
        if start >= len(descriptors):
            raise ConfigurationError("At least one sort descriptor is required")
        self._descriptors: Tuple[NormalizedSortDescriptor, ...] = descriptors
        self._start = start
        self._any_nullable = any(d.nullable for d in descriptors[start:])

    @classmethod
    def build(cls, descriptors: Sequence[SortDescriptorLike]) -> "BoundaryChain":
        """Normalize user-declared descriptors and chain them."""
        if not descriptors:
            raise ConfigurationError("At least one sort descriptor is required")
        return cls([normalize(d) for d in descriptors])

    @property
    def head(self) -> NormalizedSortDescriptor:
        return self._descriptors[self._start]

    @property
    def tail(self) -> Optional["BoundaryChain"]:
        if self._start + 1 >= len(self._descriptors):
            return None
        return BoundaryChain(self._descriptors, self._start + 1)

    @property
    def any_nullable(self) -> bool:
        """True if any column from the head onwards is nullable."""
        return self._any_nullable

    @property
    def descriptors(self) -> Tuple[NormalizedSortDescriptor, ...]:
        return self._descriptors[self._start:]

    def __len__(self) -> int:
        return len(self._descriptors) - self._start

    def __repr__(self) -> str:
        columns = ", ".join(d.column for d in self.descriptors)
        return f"BoundaryChain({columns})"

    def order_terms(self) -> List[OrderTerm]:
        """Ordering instructions for the head column and every subsort."""
        if not self._any_nullable:
            return [
                ValueOrder(column=d.column, order=d.order)
                for d in self.descriptors
            ]

        terms: List[OrderTerm] = []
        for d in self.descriptors:
            terms.append(NullPlacementOrder(column=d.column, order=d.null_order))
            terms.append(ValueOrder(column=d.column, order=d.order))
        return terms

    def extract_boundary(self, row: Any) -> List[Any]:
        """Project a row onto the sort key, validating each value.

        Used to mint the cursor for the row after the last one of a page, so
        failures here raise ConfigurationError.
        """
        return [d.extract(row) for d in self.descriptors]

    def apply_boundary(self, values: Sequence[Any]) -> Predicate:
        """Build a predicate selecting the rows that sort after ``values``.

        Values come from a client cursor and are validated as they are
        consumed, so failures here raise InvalidCursorError.
        """
        if len(values) < len(self):
            raise InvalidCursorError(
                "Cursor has too few values",
                info={"values": list(values), "expected_count": len(self)}
            )

        head = self.head
        value = head.validate_value(values[0], ValidationCase.CURSOR)
        rest = values[1:]
        if value is None:
            return self._apply_null_boundary(rest)
        return self._apply_value_boundary(head.to_query_value(value), rest)

    def _apply_value_boundary(self, value: Any, rest: Sequence[Any]) -> Predicate:
        head, tail = self.head, self.tail
        past = compare(head.column, head.operator, value)
        if head.nullable and not head.nulls_first:
            # Inequalities never match nulls, which here still lie ahead.
            past = or_(past, is_null(head.column))
        if tail is None:
            return past
        return or_(
            past,
            and_(compare(head.column, "=", value), tail.apply_boundary(rest))
        )

    def _apply_null_boundary(self, rest: Sequence[Any]) -> Predicate:
        head, tail = self.head, self.tail
        if tail is None:
            # Nulls form one equivalence class. When it comes first, every
            # non-null row follows it; when it comes last, nothing does.
            return is_not_null(head.column) if head.nulls_first else NEVER

        tied = and_(is_null(head.column), tail.apply_boundary(rest))
        if head.nulls_first:
            return or_(is_not_null(head.column), tied)
        return tied
