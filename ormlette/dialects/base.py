"""Base Dialect type: subclasses implement connect() and fetch() for each engine."""

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Optional, Sequence

from pydantic import BaseModel

from ..fragments import build_select_tail
from ..types import OrderBy


class Dialect(BaseModel, ABC):
    """Base for database dialects; subclasses open connections and run one statement.

    Statements always use `$1, $2, ...` placeholders; a dialect whose driver
    expects another style translates them in fetch().
    """

    model_config = {"arbitrary_types_allowed": True}

    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ()
    """URL schemes this dialect handles (e.g. ('postgresql', 'postgres'))."""

    COUNT_EXPRESSION: ClassVar[str] = "COUNT(id) AS count"
    """Projection used by QueryBuilder.count(); must yield an integer column named `count`."""

    @abstractmethod
    async def connect(self, url: str) -> Any:
        """Return a new raw driver connection for the given URL."""
        ...  # pylint: disable=unnecessary-ellipsis

    @abstractmethod
    async def fetch(self, connection: Any, sql: str,
                    parameters: Sequence[Any]) -> list[dict[str, Any]]:
        """Run one statement on a raw connection and return every row as a dict."""
        ...  # pylint: disable=unnecessary-ellipsis

    async def close(self, connection: Any) -> None:
        """Close a raw connection returned by connect()."""
        await connection.close()

    @abstractmethod
    def columns_sql(self, table: str) -> str:
        """Return SQL listing the columns of `table`, one `column_name` per row."""
        ...  # pylint: disable=unnecessary-ellipsis

    def prepare_parameter(self, value: Any) -> Any:
        """Convert one bound value to something the driver accepts."""
        return value

    def select_tail(self, offset: int = 0, order_by: Optional[OrderBy] = None,
                    limit: int = 0) -> str:
        """Render the OFFSET, ORDER BY and LIMIT clauses of a SELECT."""
        return build_select_tail(offset=offset, order_by=order_by, limit=limit)
