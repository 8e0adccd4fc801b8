"""PostgreSQL query executor built on asyncpg."""

import logging
from typing import Any, List, Optional, Tuple

import asyncpg
from asyncpg import Pool
from pydantic import BaseModel, Field

from ..db.connection import DatabaseManager, db_manager
from ..errors.problem_details import QueryExecutionError
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


class SqlQuery(BaseModel):
    """A base query for the PostgreSQL executor.

    Usage:
        base = SqlQuery(
            select="users.*, foods.name AS favorite_food_name",
            from_="users LEFT JOIN foods ON foods.id = users.favorite_food_id",
            where="users.suspended = $1",
            params=[False],
        )

    Placeholders in ``where`` are numbered from $1; boundary and limit
    parameters are numbered after them.
    """

    select: str = "*"
    from_: str
    where: Optional[str] = None
    params: List[Any] = Field(default_factory=list)


def quote_identifier(column: str) -> str:
    """Quote a ``column`` or ``table.column`` identifier."""
    return ".".join(
        '"' + part.replace('"', '""') + '"' for part in column.split(".")
    )


class SqlBuilder:
    """Render predicates and order terms into parameterized SQL.

    Args:
        start_idx: Number of the first placeholder this builder allocates.
    """

    def __init__(self, start_idx: int = 1):
        self.params: List[Any] = []
        self._param_idx = start_idx

    def add_param(self, value: Any) -> str:
        placeholder = f"${self._param_idx}"
        self.params.append(value)
        self._param_idx += 1
        return placeholder

    def predicate(self, predicate: Predicate) -> str:
        if isinstance(predicate, Comparison):
            column = quote_identifier(predicate.column)
            return f"{column} {predicate.operator} {self.add_param(predicate.value)}"
        if isinstance(predicate, IsNull):
            return f"{quote_identifier(predicate.column)} IS NULL"
        if isinstance(predicate, Not):
            return f"NOT ({self.predicate(predicate.term)})"
        if isinstance(predicate, And):
            if not predicate.terms:
                return "TRUE"
            return " AND ".join(f"({self.predicate(t)})" for t in predicate.terms)
        if isinstance(predicate, Or):
            if not predicate.terms:
                return "FALSE"
            return " OR ".join(f"({self.predicate(t)})" for t in predicate.terms)
        raise TypeError(f"Unsupported predicate {type(predicate).__name__}")

    @staticmethod
    def order_by(terms: List[OrderTerm]) -> str:
        rendered = []
        for term in terms:
            column = quote_identifier(term.column)
            if isinstance(term, NullPlacementOrder):
                column = f"({column} IS NULL)"
            rendered.append(f"{column} {term.order.upper()}")
        return ", ".join(rendered)


def _build_where(query: PageQuery, builder: SqlBuilder) -> str:
    base: SqlQuery = query.base
    conditions = []
    if base.where:
        conditions.append(f"({base.where})")
    if query.boundary is not None:
        conditions.append(f"({builder.predicate(query.boundary)})")
    if not conditions:
        return ""
    return " WHERE " + " AND ".join(conditions)


def build_page_sql(query: PageQuery) -> Tuple[str, List[Any]]:
    """Build the SQL and parameters that fetch one page."""
    base: SqlQuery = query.base
    builder = SqlBuilder(start_idx=len(base.params) + 1)
    sql = f"SELECT {base.select} FROM {base.from_}{_build_where(query, builder)}"
    if query.order:
        sql += f" ORDER BY {builder.order_by(query.order)}"
    sql += f" LIMIT {builder.add_param(query.limit)}"
    return sql, [*base.params, *builder.params]


def build_count_sql(query: PageQuery) -> Tuple[str, List[Any]]:
    """Build the SQL and parameters that count every row past the boundary."""
    base: SqlQuery = query.base
    builder = SqlBuilder(start_idx=len(base.params) + 1)
    sql = f"SELECT count(*) FROM {base.from_}{_build_where(query, builder)}"
    return sql, [*base.params, *builder.params]


class PostgresExecutor(QueryExecutor):
    """Executes page queries against PostgreSQL.

    Base queries must be SqlQuery instances. Rows are returned as dicts.
    """

    def __init__(self, pool: Optional[Pool] = None, manager: Optional[DatabaseManager] = None):
        self._pool = pool
        self._manager = manager or db_manager

    async def _get_pool(self) -> Pool:
        if self._pool is None:
            return await self._manager.get_pool()
        return self._pool

    async def fetch(self, query: PageQuery) -> List[Any]:
        sql, params = build_page_sql(query)
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                rows = await conn.fetch(sql, *params)
        except asyncpg.PostgresError as e:
            logger.error(f"Database error fetching page: {e}")
            raise QueryExecutionError(f"Database error: {e}", info={"sql": sql}, cause=e)
        logger.debug(f"Fetched {len(rows)} rows")
        return [dict(row) for row in rows]

    async def count(self, query: PageQuery) -> int:
        sql, params = build_count_sql(query)
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                return await conn.fetchval(sql, *params)
        except asyncpg.PostgresError as e:
            logger.error(f"Database error counting rows: {e}")
            raise QueryExecutionError(f"Database error: {e}", info={"sql": sql}, cause=e)
