"""Database dialects, limited to engines with an asyncio driver.

PostgreSQL goes through asyncpg and SQLite through aiosqlite; engines
without an async driver (MySQL over pymysql, SQL Server over pyodbc)
have no dialect here.
"""

from .base import Dialect
from .postgres import PostgresDialect
from .sqlite import SqliteDialect

_DIALECT_CLASSES: tuple[type[Dialect], ...] = (
    PostgresDialect,
    SqliteDialect,
)


def get_dialect_for_scheme(scheme: str) -> Dialect:
    """Return a Dialect instance for the given URL scheme (e.g. 'postgresql', 'sqlite')."""
    normalized = (scheme or "").split("+")[0].lower()
    for dialect_cls in _DIALECT_CLASSES:
        if normalized in dialect_cls.SUPPORTED_SCHEMA:
            return dialect_cls()
    supported = ", ".join(s for cls in _DIALECT_CLASSES for s in cls.SUPPORTED_SCHEMA)
    raise ValueError(f"Unsupported database scheme: {scheme} (async drivers exist for: {supported})")


# each name is a dialect backed by an asyncio driver
__all__ = [
    "Dialect",
    "PostgresDialect",
    "SqliteDialect",
    "get_dialect_for_scheme",
]
