"""Paginators: keyset-paginated queries over a declared set of sorts."""

import logging
from abc import ABC, abstractmethod
from typing import (
    Any,
    ClassVar,
    Dict,
    Generic,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    TypeVar
)

from pydantic import BaseModel, ConfigDict, Field

from ..config import get_settings
from ..errors.problem_details import (
    ConfigurationError,
    InvalidCursorError,
    UnknownSortError
)
from .chain import BoundaryChain
from .cursor import Cursor, compute_args_hash, decode_cursor
from .descriptor import SortDescriptorLike
from .query import PageQuery, QueryExecutor

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT")

# Compiled chains per (paginator class, sort name). Entries are only ever
# added whole, so concurrent first uses at worst build a chain twice.
_chains: Dict[Tuple[type, str], BoundaryChain] = {}


def get_boundary_chain(paginator_cls: type, sort: str) -> BoundaryChain:
    """Get the compiled chain for one of a paginator's sorts.

    Raises:
        UnknownSortError: If the paginator does not declare the sort
        ConfigurationError: If the sort's descriptors are malformed
    """
    key = (paginator_cls, sort)
    chain = _chains.get(key)
    if chain is None:
        descriptors = (paginator_cls.sorts or {}).get(sort)
        if descriptors is None:
            raise UnknownSortError(info={"sort": sort})
        chain = _chains.setdefault(key, BoundaryChain.build(descriptors))
        logger.debug(f"Compiled sort '{sort}' for {paginator_cls.__name__}: {chain!r}")
    return chain


class PaginatorOptions(BaseModel):
    """Page size and sort selection."""

    limit: Optional[int] = Field(default=None, ge=1, description="Number of items per page")
    sort: Optional[str] = Field(default=None, description="Name of a declared sort")


class GetPageOptions(PaginatorOptions):
    """Paginator options plus the cursor to resume from."""

    cursor: Optional[str] = Field(default=None, description="Cursor from a previous page")


class Page(BaseModel, Generic[ItemT]):
    """One page of results."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    items: List[ItemT] = Field(description="Items on this page")
    remaining: int = Field(description="Number of items after this page")
    next_cursor: str = Field(description="Cursor for the next page")


class Paginator(ABC, Generic[ItemT]):
    """Base class for keyset-paginated queries.

    Subclasses declare their sorts and implement ``get_base_query``:

        class UserPaginator(Paginator):
            sorts = {
                "default": ["id"],
                "byName": [
                    "last_name",
                    "first_name",
                    {"column": "id", "column_type": "integer"},
                ],
            }

            def get_base_query(self):
                return SqlQuery(from_="users")

    ``query_name`` identifies the query inside cursors and defaults to the
    class name. If results depend on ``args``, cursors carry a fingerprint of
    them; keys in ``vary_args`` are left out of that fingerprint.
    """

    sorts: ClassVar[Optional[Mapping[str, Sequence[SortDescriptorLike]]]] = None
    query_name: ClassVar[Optional[str]] = None
    vary_args: ClassVar[Sequence[str]] = ()

    def __init__(
        self,
        executor: QueryExecutor,
        limit: Optional[int] = None,
        sort: Optional[str] = None,
        args: Any = None
    ):
        settings = get_settings()
        if limit is not None and limit < 1:
            raise ConfigurationError(
                f"Page limit must be positive, got {limit}",
                info={"limit": limit}
            )
        self.executor = executor
        self.limit = limit or settings.default_page_size
        self.sort = sort or settings.default_sort_name
        self.args = args

    @classmethod
    async def get_page(
        cls,
        executor: QueryExecutor,
        options: Optional[GetPageOptions] = None,
        args: Any = None
    ) -> Page[ItemT]:
        """Create a paginator and fetch one page with it."""
        options = options or GetPageOptions()
        paginator = cls(executor, limit=options.limit, sort=options.sort, args=args)
        return await paginator.execute(options.cursor)

    @classmethod
    def get_query_name(cls) -> str:
        return cls.query_name or cls.__name__

    @abstractmethod
    def get_base_query(self) -> Any:
        """Return the unsorted, unlimited query to paginate, in the form the
        executor expects."""

    @property
    def chain(self) -> BoundaryChain:
        return get_boundary_chain(type(self), self.sort)

    def get_args_hash(self) -> Optional[str]:
        return compute_args_hash(self.args, self.vary_args)

    def create_cursor(self, item: Any = None) -> Cursor:
        """Create the cursor that resumes after ``item``, or from the start."""
        return Cursor(
            query=self.get_query_name(),
            sort=self.sort,
            args_hash=self.get_args_hash(),
            values=self.chain.extract_boundary(item) if item is not None else None
        )

    def validate_cursor(self, cursor: Cursor) -> Cursor:
        """Check that a decoded cursor was minted for this query, sort and args.

        Raises:
            InvalidCursorError: If the cursor belongs somewhere else
        """
        query_name = self.get_query_name()
        if cursor.query != query_name:
            logger.info(f"Rejected cursor for query '{cursor.query}', expected '{query_name}'")
            raise InvalidCursorError(
                "Cursor is for a different query",
                info={"cursor_query": cursor.query, "expected_query": query_name}
            )

        if cursor.sort != self.sort:
            logger.info(f"Rejected cursor for sort '{cursor.sort}', expected '{self.sort}'")
            raise InvalidCursorError(
                "Cursor is for a different sort",
                info={"cursor_sort": cursor.sort, "expected_sort": self.sort}
            )

        if cursor.args_hash != self.get_args_hash():
            logger.info(f"Rejected cursor with mismatched args for query '{query_name}'")
            raise InvalidCursorError(
                "Args hash mismatch",
                info={"expected_args": self.args}
            )

        return cursor

    def parse_cursor(self, cursor: str) -> Cursor:
        return self.validate_cursor(decode_cursor(cursor))

    def build_query(self, cursor: Optional[str] = None) -> PageQuery:
        """Build the page query, resuming after ``cursor`` if given."""
        chain = self.chain
        values = self.parse_cursor(cursor).values if cursor is not None else None
        return PageQuery(
            base=self.get_base_query(),
            order=chain.order_terms(),
            boundary=chain.apply_boundary(values) if values is not None else None,
            limit=self.limit
        )

    async def _get_remaining_count(self, query: PageQuery, item_count: int) -> int:
        # A short page proves nothing is left.
        if item_count < self.limit:
            return 0
        return await self.executor.count(query) - item_count

    async def execute(self, cursor: Optional[str] = None) -> Page[ItemT]:
        """Fetch the page after ``cursor``, or the first page."""
        query = self.build_query(cursor)
        items = await self.executor.fetch(query)
        remaining = 0

        if items:
            remaining = await self._get_remaining_count(query, len(items))
            cursor = self.create_cursor(items[-1]).serialize()
        elif cursor is None:
            cursor = self.create_cursor().serialize()

        logger.debug(
            f"{self.get_query_name()} sort '{self.sort}': "
            f"{len(items)} items, {remaining} remaining"
        )
        return Page(items=items, remaining=remaining, next_cursor=cursor)
