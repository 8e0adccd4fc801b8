"""Database access for the PostgreSQL executor."""

from .connection import DatabaseManager, db_manager, get_db_pool

__all__ = [
    "DatabaseManager",
    "db_manager",
    "get_db_pool"
]
