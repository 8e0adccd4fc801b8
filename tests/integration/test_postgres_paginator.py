"""Integration tests running paginators against PostgreSQL.

Requires a database at PAGINATOR_DATABASE_URL (or the test settings default).
"""

import os
from datetime import datetime, timezone

import asyncpg
import pytest
import pytest_asyncio

from keyset_paginator.errors import QueryExecutionError
from keyset_paginator.executors import PostgresExecutor, SqlQuery
from keyset_paginator.pagination import Paginator

ID = {"column": "users.id", "column_type": "integer", "value_path": "id"}


class UserPaginator(Paginator):
    sorts = {
        "default": [ID],
        "byRole": [
            {"column": "users.role", "value_path": "role"},
            {"column": "users.first_name", "value_path": "first_name"},
            {"column": "users.last_name", "value_path": "last_name"},
            ID,
        ],
        "byFavoriteFoodName": [
            {"column": "foods.name", "nullable": True, "value_path": "favorite_food_name"},
            ID,
        ],
        "byFavoriteFoodNameReversed": [
            {"column": "foods.name", "nullable": True, "direction": "desc", "value_path": "favorite_food_name"},
            {"column": "users.id", "column_type": "integer", "direction": "desc", "value_path": "id"},
        ],
        "byFavoriteFoodNameNullsLast": [
            {"column": "foods.name", "nullable": True, "direction": "desc-nulls-last", "value_path": "favorite_food_name"},
            ID,
        ],
        "byCreatedAt": [{"column": "users.created_at", "column_type": "date", "value_path": "created_at"}, ID],
    }

    def get_base_query(self):
        where = None
        params = []
        if self.args and self.args.get("role"):
            where = "users.role = $1"
            params = [self.args["role"]]
        return SqlQuery(
            select="users.*, foods.name AS favorite_food_name",
            from_="paginator_users AS users LEFT JOIN paginator_foods AS foods ON foods.id = users.favorite_food_id",
            where=where,
            params=params
        )


class MissingTablePaginator(Paginator):
    sorts = {"default": [{"column": "id", "column_type": "integer"}]}

    def get_base_query(self):
        return SqlQuery(from_="paginator_missing")


@pytest_asyncio.fixture
async def pool(test_settings):
    """Connection pool with freshly seeded tables."""
    db_url = os.environ.get("PAGINATOR_DATABASE_URL", test_settings.database_url)
    try:
        pool = await asyncpg.create_pool(db_url, min_size=1, max_size=2, command_timeout=5)
    except (OSError, asyncpg.PostgresError):
        pytest.skip("Database not available for integration tests")

    async with pool.acquire() as conn:
        await conn.execute("DROP TABLE IF EXISTS paginator_users")
        await conn.execute("DROP TABLE IF EXISTS paginator_foods")
        await conn.execute("CREATE TABLE paginator_foods (id integer PRIMARY KEY, name text NOT NULL)")
        await conn.execute(
            """CREATE TABLE paginator_users (
                   id integer PRIMARY KEY,
                   first_name text NOT NULL,
                   last_name text NOT NULL,
                   role text NOT NULL,
                   favorite_food_id integer REFERENCES paginator_foods (id),
                   created_at timestamptz NOT NULL
               )"""
        )
        await conn.executemany(
            "INSERT INTO paginator_foods (id, name) VALUES ($1, $2)",
            [(1, "Tacos"), (2, "Pizza")]
        )
        await conn.executemany(
            """INSERT INTO paginator_users (id, first_name, last_name, role, favorite_food_id, created_at)
               VALUES ($1, $2, $3, $4, $5, $6)""",
            [
                (1, "Steve", "Ripberger", "admin", 2, datetime(2024, 1, 3, tzinfo=timezone.utc)),
                (2, "Terd", "Ferguson", "user", 1, datetime(2024, 1, 1, tzinfo=timezone.utc)),
                (3, "Dude", "Bro", "user", 2, datetime(2024, 1, 2, tzinfo=timezone.utc)),
                (4, "Cool", "Guy", "user", None, datetime(2024, 1, 2, tzinfo=timezone.utc)),
                (5, "Terd", "McGee", "user", None, datetime(2024, 1, 5, tzinfo=timezone.utc)),
            ]
        )

    yield pool

    async with pool.acquire() as conn:
        await conn.execute("DROP TABLE IF EXISTS paginator_users")
        await conn.execute("DROP TABLE IF EXISTS paginator_foods")
    await pool.close()


async def _collect(paginator: Paginator):
    pages = []
    cursor = None
    while True:
        page = await paginator.execute(cursor)
        if not page.items:
            break
        pages.append(([item["id"] for item in page.items], page.remaining))
        cursor = page.next_cursor
    return pages


class TestPostgresPaginator:
    """Page through real queries."""

    @pytest.mark.asyncio
    async def test_default_sort(self, pool):
        paginator = UserPaginator(PostgresExecutor(pool=pool), limit=2)

        assert await _collect(paginator) == [([1, 2], 3), ([3, 4], 1), ([5], 0)]

    @pytest.mark.asyncio
    async def test_tie_break_sort(self, pool):
        paginator = UserPaginator(PostgresExecutor(pool=pool), limit=2, sort="byRole")

        assert await _collect(paginator) == [([1, 4], 3), ([3, 2], 1), ([5], 0)]

    @pytest.mark.asyncio
    async def test_nullable_joined_column(self, pool):
        paginator = UserPaginator(PostgresExecutor(pool=pool), limit=2, sort="byFavoriteFoodName")

        assert await _collect(paginator) == [([4, 5], 3), ([1, 3], 1), ([2], 0)]

    @pytest.mark.asyncio
    async def test_nullable_joined_column_reversed(self, pool):
        paginator = UserPaginator(PostgresExecutor(pool=pool), limit=2, sort="byFavoriteFoodNameReversed")

        assert await _collect(paginator) == [([5, 4], 3), ([2, 3], 1), ([1], 0)]

    @pytest.mark.asyncio
    async def test_nullable_joined_column_nulls_last(self, pool):
        paginator = UserPaginator(PostgresExecutor(pool=pool), limit=2, sort="byFavoriteFoodNameNullsLast")

        assert await _collect(paginator) == [([2, 1], 3), ([3, 4], 1), ([5], 0)]

    @pytest.mark.asyncio
    async def test_date_column(self, pool):
        paginator = UserPaginator(PostgresExecutor(pool=pool), limit=2, sort="byCreatedAt")

        assert await _collect(paginator) == [([2, 3], 3), ([4, 1], 1), ([5], 0)]

    @pytest.mark.asyncio
    async def test_args_filter_base_query(self, pool):
        paginator = UserPaginator(PostgresExecutor(pool=pool), limit=2, args={"role": "user"})

        assert await _collect(paginator) == [([2, 3], 2), ([4, 5], 0)]

    @pytest.mark.asyncio
    async def test_database_error(self, pool):
        paginator = MissingTablePaginator(PostgresExecutor(pool=pool))

        with pytest.raises(QueryExecutionError):
            await paginator.execute()
