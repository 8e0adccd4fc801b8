"""Pagination module for keyset (cursor) pagination."""

from .descriptor import (
    ColumnType,
    SortDirection,
    SortDescriptor,
    NormalizedSortDescriptor,
    ValidationCase,
    ValidationResult,
    normalize
)
from .predicates import (
    ValueOrder,
    NullPlacementOrder,
    Comparison,
    IsNull,
    Not,
    And,
    Or
)
from .chain import BoundaryChain
from .cursor import (
    Cursor,
    encode_cursor,
    decode_cursor,
    compute_args_hash
)
from .query import PageQuery, QueryExecutor
from .paginator import (
    Page,
    Paginator,
    PaginatorOptions,
    GetPageOptions
)
from .links import create_link_header

__all__ = [
    "ColumnType",
    "SortDirection",
    "SortDescriptor",
    "NormalizedSortDescriptor",
    "ValidationCase",
    "ValidationResult",
    "normalize",
    "ValueOrder",
    "NullPlacementOrder",
    "Comparison",
    "IsNull",
    "Not",
    "And",
    "Or",
    "BoundaryChain",
    "Cursor",
    "encode_cursor",
    "decode_cursor",
    "compute_args_hash",
    "PageQuery",
    "QueryExecutor",
    "Page",
    "Paginator",
    "PaginatorOptions",
    "GetPageOptions",
    "create_link_header"
]
