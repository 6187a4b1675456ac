"""Named database connections: the single gateway every statement goes through.

A connection is only a registered URL; each execute() call opens a driver
connection, runs one statement, and closes it again. There is no pooling
and no transaction spanning several statements.
"""

import logging
import urllib.parse
from typing import Any, Callable, Sequence

from pydantic import BaseModel

from .dialects import Dialect, get_dialect_for_scheme

logger = logging.getLogger("ormlette")


_urls: dict[str, str | Callable[[], str]] = {}


def connect(database_url: str | Callable[[], str], name: str = "default") -> None:
    """Register a database URL (or a method returning one) under `name`."""
    if not isinstance(database_url, str) and not callable(database_url):
        raise ValueError(
            f"database_url must be a str or a method returning a str, got {type(database_url)}"
        )
    _urls[name] = database_url


def get_connection(name: str = "default") -> "Connection":
    """Return the Connection registered under `name`."""
    try:
        url = _urls[name]
    except KeyError as error:
        raise ValueError(f"No connection configured with name=`{name}`") from error
    if callable(url):
        url = url()
    scheme = urllib.parse.urlparse(url).scheme
    return Connection(name=name, url=url, dialect=get_dialect_for_scheme(scheme))


class Connection(BaseModel):
    """A database URL bound to the dialect that knows how to talk to it."""

    model_config = {"arbitrary_types_allowed": True}

    name: str
    url: str
    dialect: Dialect

    async def execute(self, sql: str, parameters: Sequence[Any] = ()) -> list[dict[str, Any]]:
        """Run one parameterized statement and return its rows as dicts.

        Driver errors are not caught: they propagate to the caller as raised.
        """
        parameters = list(parameters)
        logger.debug("%s %r", sql, parameters)
        raw = await self.dialect.connect(self.url)
        try:
            return await self.dialect.fetch(raw, sql, parameters)
        finally:
            await self.dialect.close(raw)

    async def get_column_names(self, table: str) -> list[str]:
        """Return the column names of `table`, read from the database catalog."""
        rows = await self.execute(self.dialect.columns_sql(table))
        names = [row["column_name"] for row in rows]
        logger.debug("Columns of %s: %s", table, ", ".join(names))
        return names
