"""Page queries and the executor interface that runs them."""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .predicates import OrderTerm, Predicate


class PageQuery(BaseModel):
    """Everything an executor needs to fetch one page.

    ``base`` is the application's base query in whatever form the executor
    understands. ``boundary`` is None for the first page.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    base: Any
    order: List[OrderTerm]
    boundary: Optional[Predicate] = None
    limit: int = Field(ge=1)


class QueryExecutor(ABC):
    """Runs page queries against some backend."""

    @abstractmethod
    async def fetch(self, query: PageQuery) -> List[Any]:
        """Return up to ``query.limit`` rows matching the base query and
        boundary, in order."""

    @abstractmethod
    async def count(self, query: PageQuery) -> int:
        """Count every row matching the base query and boundary, ignoring the
        limit."""
