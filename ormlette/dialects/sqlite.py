"""SQLite dialect."""

import json
import logging
import re
import urllib.parse
from typing import Any, ClassVar, Optional, Sequence

from ..fragments import build_order_clause
from ..types import OrderBy
from .base import Dialect

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\$(\d+)")


class SqliteDialect(Dialect):
    """Dialect for SQLite (scheme sqlite), through aiosqlite.

    `$n` placeholders become SQLite's numbered `?n` parameters, which bind
    the n-th value of the parameter sequence.
    """

    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("sqlite",)

    async def connect(self, url: str):
        import aiosqlite  # pylint: disable=import-outside-toplevel
        parsed = urllib.parse.urlparse(url)
        path = (parsed.path or "")[1:] or parsed.hostname
        logger.debug("Connecting to SQLite database %s", path)
        connection = await aiosqlite.connect(path)
        connection.row_factory = aiosqlite.Row
        await connection.execute("PRAGMA foreign_keys = ON")
        return connection

    async def fetch(self, connection, sql: str,
                    parameters: Sequence[Any]) -> list[dict[str, Any]]:
        sql = _PLACEHOLDER.sub(r"?\1", sql)
        cursor = await connection.execute(sql, [self.prepare_parameter(p) for p in parameters])
        rows = await cursor.fetchall()
        await cursor.close()
        await connection.commit()
        return [dict(row) for row in rows]

    def columns_sql(self, table: str) -> str:
        return f"SELECT name AS column_name FROM pragma_table_info('{table}') ORDER BY cid"

    def prepare_parameter(self, value: Any) -> Any:
        # SQLite has no array or json column types
        if isinstance(value, (list, tuple, dict)):
            return json.dumps(value, ensure_ascii=False)
        return value

    def select_tail(self, offset: int = 0, order_by: Optional[OrderBy] = None,
                    limit: int = 0) -> str:
        # SQLite only accepts OFFSET after ORDER BY and LIMIT; LIMIT -1 means no limit
        sql = build_order_clause(order_by)
        if limit or offset:
            sql += f" LIMIT {int(limit) or -1}"
        if offset:
            sql += f" OFFSET {int(offset)}"
        return sql
