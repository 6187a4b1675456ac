"""PostgreSQL dialect."""

import json
from typing import Any, ClassVar, Sequence

from .base import Dialect


class PostgresDialect(Dialect):
    """Dialect for PostgreSQL (schemes postgresql, postgres), through asyncpg.

    asyncpg understands `$n` placeholders natively, so statements are sent as built.
    """

    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("postgresql", "postgres")

    COUNT_EXPRESSION: ClassVar[str] = "COUNT(id)::INTEGER AS count"

    async def connect(self, url: str):
        import asyncpg  # pylint: disable=import-outside-toplevel
        scheme, _, rest = url.partition("://")
        # asyncpg rejects driver suffixes such as postgresql+asyncpg://
        return await asyncpg.connect(dsn=scheme.split("+")[0] + "://" + rest)

    async def fetch(self, connection, sql: str,
                    parameters: Sequence[Any]) -> list[dict[str, Any]]:
        records = await connection.fetch(sql, *[self.prepare_parameter(p) for p in parameters])
        return [dict(record) for record in records]

    def columns_sql(self, table: str) -> str:
        return ("SELECT column_name FROM information_schema.columns "
                f"WHERE table_name = '{table}' ORDER BY ordinal_position")

    def prepare_parameter(self, value: Any) -> Any:
        # asyncpg binds lists as arrays, but json columns expect text without a codec
        if isinstance(value, dict):
            return json.dumps(value, ensure_ascii=False)
        return value
