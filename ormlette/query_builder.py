"""Fluent query builder bound to a Model class.

Chain methods (where, where_in, select, limit, offset, order_by) mutate the
builder and return it; terminal methods (all, first, latest, count, update,
delete) build one statement, send it through the model's connection, and
map returned rows onto fresh model instances.

A builder is a single-owner value: do not share one instance between
concurrently running queries.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, TYPE_CHECKING

from .connection import Connection, get_connection
from .dialects import Dialect
from .fragments import (
    build_delete_statement,
    build_select_statement,
    build_select_tail,
    build_update_statement,
)
from .types import Fragment, QueryData, WhereIn

if TYPE_CHECKING:
    from .model import Model

logger = logging.getLogger("ormlette")


class QueryBuilder:
    """Accumulates constraints for one model and executes them.

    Examples:
        await QueryBuilder(User).where("id", ">", 3).order_by("id", "desc").all()
        await QueryBuilder(User, {"where": [("username", "john")]}).first()
    """

    def __init__(self, model: type[Model],
                 query_data: QueryData | Mapping[str, Any] | None = None,
                 **fields: Any):
        if isinstance(query_data, QueryData):
            if fields:
                raise ValueError("Pass either a QueryData instance or keyword fields, not both")
        else:
            query_data = QueryData.model_validate({**(query_data or {}), **fields})
        self.model = model
        self.data = query_data

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.model.__name__}, {self.data!r})"

    @property
    def connection(self) -> Connection:
        """Connection for this builder's model (from model.connection_name)."""
        return get_connection(self.model.connection_name)

    # chain methods

    def where(self, *constraint: Any, **criteria: Any) -> QueryBuilder:
        """Add AND-ed constraints, in call order.

        Examples:
            where("id", 1)              -> id = $1
            where("age", ">", 18)       -> age > $1
            where(username="john")      -> username = $1
        """
        if constraint:
            if len(constraint) not in (2, 3):
                raise ValueError(
                    "where() takes (field, value) or (field, operator, value), "
                    f"got {len(constraint)} arguments"
                )
            self.data.where.append(tuple(constraint))
        for name, value in criteria.items():
            self.data.where.append((name, value))
        return self

    def where_in(self, field: str, values: Any) -> QueryBuilder:
        """Add an AND-ed `field IN (...)` constraint."""
        self.data.where_in.append(WhereIn(field=field, values=list(values)))
        return self

    def select(self, *fields: str) -> QueryBuilder:
        """Replace the projection; columns not selected keep their model defaults."""
        self.data.select = list(fields) or ["*"]
        return self

    def limit(self, amount: int) -> QueryBuilder:
        """Set LIMIT (0 removes it)."""
        self.data.limit = amount
        return self

    def offset(self, amount: int) -> QueryBuilder:
        """Set OFFSET (0 removes it)."""
        self.data.offset = amount
        return self

    def order_by(self, field: str | tuple[str] | tuple[str, str],
                 direction: Optional[str] = None) -> QueryBuilder:
        """Set the single sort key: order_by("id", "desc") or order_by(("id", "desc"))."""
        if isinstance(field, (tuple, list)):
            order = tuple(field)
        else:
            order = (field, direction) if direction else (field,)
        self.data.order_by = order
        return self

    # SQL

    def to_select(self, dialect: Optional[Dialect] = None) -> Fragment:
        """Return the SELECT statement and parameters all() would run.

        With a dialect, the OFFSET, ORDER BY and LIMIT clauses are placed the
        way that engine accepts them.
        """
        tail = dialect.select_tail if dialect else build_select_tail
        return build_select_statement(
            table=self.model._get_table_name(),
            select=self.data.select,
            where=self.data.where,
            where_in=self.data.where_in,
            offset=self.data.offset,
            order_by=self.data.order_by,
            limit=self.data.limit,
            tail=tail,
        )

    async def _fetch(self, fragment: Fragment,
                     connection: Optional[Connection] = None) -> list[dict[str, Any]]:
        connection = connection or self.connection
        return await connection.execute(fragment.sql, fragment.params)

    async def _select(self) -> list[dict[str, Any]]:
        connection = self.connection
        return await self._fetch(self.to_select(connection.dialect), connection)

    # terminal methods

    async def count(self) -> int:
        """Count matching rows; any previous select() is discarded."""
        connection = self.connection
        self.data.select = [connection.dialect.COUNT_EXPRESSION]
        rows = await self._fetch(self.to_select(connection.dialect), connection)
        return int(rows[0]["count"])

    async def first(self) -> Optional[Model]:
        """Return the first matching record, or None."""
        self.data.limit = 1
        rows = await self._select()
        if not rows:
            return None
        return self.model.from_row(rows[0])

    async def latest(self) -> Optional[Model]:
        """Return the matching record with the highest id, or None."""
        self.data.order_by = ("id", "desc")
        self.data.limit = 1
        rows = await self._select()
        if not rows:
            return None
        return self.model.from_row(rows[0])

    async def all(self) -> list[Model]:
        """Return every matching record, in the order the database returned them."""
        rows = await self._select()
        return [self.model.from_row(row) for row in rows]

    async def update(self, values: Optional[Mapping[str, Any]] = None,
                     **new_values: Any) -> list[Model]:
        """Update matching rows and return them as records.

        Without any where()/where_in() constraint, every row of the table is updated.
        """
        new_values = {**(values or {}), **new_values}
        if not new_values:
            return []
        if not self.data.where and not self.data.where_in:
            logger.warning("Updating every row of %s", self.model._get_table_name())
        fragment = build_update_statement(self.model._get_table_name(), new_values,
                                          self.data.where, self.data.where_in)
        rows = await self._fetch(fragment)
        return [self.model.from_row(row) for row in rows]

    async def delete(self) -> None:
        """Delete matching rows.

        Without any where()/where_in() constraint, every row of the table is deleted.
        """
        if not self.data.where and not self.data.where_in:
            logger.warning("Deleting every row of %s", self.model._get_table_name())
        fragment = build_delete_statement(self.model._get_table_name(),
                                          self.data.where, self.data.where_in)
        await self._fetch(fragment)
