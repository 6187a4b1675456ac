"""Model base class: one subclass per table, one instance per row.

A model declares its table name and its columns as Pydantic fields with
defaults; an instance is built with those defaults and overlaid with the
columns returned by the database. Persistence status follows `id`: a falsy
id means the row has not been inserted yet.

    class User(Model):
        tablename = "users"

        id: int = 0
        username: str = ""
        is_admin: bool = False

        def factory_defaults(self, overrides):
            return {"username": "john", "is_admin": True}

        @relation
        async def articles(self):
            return await Article.where("user_id", self.id).all()

    user = await User.factory(username="jane")
    user.is_admin = False
    await user.save()
    entity = await user.with_relations("articles")
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, ClassVar, Mapping, Optional

from pydantic import BaseModel

from .connection import Connection, get_connection
from .errors import InvalidRelation
from .fragments import (
    build_delete_statement,
    build_insert_statement,
    build_select_statement,
    build_update_statement,
)
from .query_builder import QueryBuilder

logger = logging.getLogger("ormlette")

TIMESTAMP_COLUMNS = ("created_at", "updated_at")


def relation(method: Callable) -> Callable:
    """Mark a zero-argument (async) method as a relation usable by with_relations()."""
    method.__is_relation__ = True
    return method


class Model(BaseModel):
    """Base class for table records; provides row persistence and query shortcuts."""

    model_config = {"extra": "allow", "arbitrary_types_allowed": True}

    tablename: ClassVar[str]
    connection_name: ClassVar[str] = "default"
    __relations__: ClassVar[dict[str, Callable]] = {}

    id: int = 0

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs):
        super().__pydantic_init_subclass__(**kwargs)
        cls.__relations__ = {
            name: member
            for base in reversed(cls.__mro__)
            for name, member in vars(base).items()
            if getattr(member, "__is_relation__", False)
        }

    # helpers

    @classmethod
    def _get_table_name(cls) -> str:
        """Return the table name declared on the class."""
        tablename = getattr(cls, "tablename", None)
        if not tablename:
            raise TypeError(f"{cls.__name__} must define a `tablename` class variable")
        return tablename

    @classmethod
    def _get_connection(cls) -> Connection:
        return get_connection(cls.connection_name)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Model:
        """Build a default instance and overlay every column of `row` onto it."""
        instance = cls()
        instance._overlay(row)
        return instance

    def _overlay(self, row: Mapping[str, Any]) -> None:
        # shallow merge without validation; unknown columns become extra attributes
        fields = type(self).model_fields
        for name, value in row.items():
            if name in fields:
                self.__dict__[name] = value
                self.__pydantic_fields_set__.add(name)
            else:
                self.__pydantic_extra__[name] = value

    def fields(self) -> dict[str, Any]:
        """Return a shallow copy of the record's current column values."""
        return dict(self)

    @classmethod
    def relations(cls) -> tuple[str, ...]:
        """Names of the methods marked with @relation."""
        return tuple(cls.__relations__)

    def factory_defaults(self, overrides: Mapping[str, Any]) -> dict[str, Any]:
        """Return the column values factory() inserts; may be async.

        Subclasses must override this. It may create related rows, e.g. a
        parent record when its foreign key is missing from `overrides`.
        """
        raise NotImplementedError(f"{type(self).__name__} must implement factory_defaults()")

    # instance operations

    async def save(self) -> None:
        """Insert the row if `id` is falsy, update it otherwise.

        The written columns are read from the database catalog on every call;
        `id`, `created_at` and `updated_at` are never written from the instance.
        Columns returned by the statement are overlaid onto the instance.
        """
        table = self._get_table_name()
        connection = self._get_connection()
        columns = await connection.get_column_names(table)
        current = self.fields()
        values = {
            name: current.get(name)
            for name in columns
            if name != "id" and name not in TIMESTAMP_COLUMNS
        }
        if self.id:
            touch = ["updated_at = CURRENT_TIMESTAMP"] if "updated_at" in columns else []
            if not values and not touch:
                return
            fragment = build_update_statement(table, values, where=[("id", self.id)],
                                              raw_assignments=touch)
        else:
            fragment = build_insert_statement(table, values)
        rows = await connection.execute(fragment.sql, fragment.params)
        if rows:
            self._overlay(rows[0])

    async def delete(self) -> None:
        """Delete the row with this id; the instance itself is left untouched."""
        fragment = build_delete_statement(self._get_table_name(), where=[("id", self.id)])
        await self._get_connection().execute(fragment.sql, fragment.params)

    async def exists(self) -> bool:
        """Return whether a row with this id exists."""
        rows = await self._get_connection().execute(
            f"SELECT EXISTS(SELECT 1 FROM {self._get_table_name()} WHERE id = $1) AS found",
            [self.id],
        )
        return bool(rows[0]["found"])

    async def refresh(self) -> None:
        """Reload column values from the database.

        If the row no longer exists, nothing happens: use exists() to detect it.
        """
        fragment = build_select_statement(self._get_table_name(), where=[("id", self.id)])
        rows = await self._get_connection().execute(fragment.sql, fragment.params)
        if not rows:
            return
        self._overlay(rows[0])

    async def with_relations(self, *names: str) -> dict[str, Any]:
        """Return the record's columns plus the result of each named relation.

        Every name is checked before any relation runs: a name that is not a
        callable member raises InvalidRelation without querying the database.
        """
        accessors = {}
        for name in names:
            if name in self.__relations__:
                accessor = self.__relations__[name].__get__(self, type(self))
            else:
                accessor = getattr(self, name, None)
            if not callable(accessor):
                raise InvalidRelation(name, type(self).__name__)
            accessors[name] = accessor
        result = self.fields()
        for name, accessor in accessors.items():
            value = accessor()
            if inspect.isawaitable(value):
                value = await value
            result[name] = value
        return result

    # class operations

    @classmethod
    def query(cls) -> QueryBuilder:
        """Return an empty QueryBuilder for this model."""
        return QueryBuilder(cls)

    @classmethod
    async def all(cls) -> list[Model]:
        return await cls.query().all()

    @classmethod
    async def first(cls) -> Optional[Model]:
        return await cls.query().first()

    @classmethod
    async def latest(cls) -> Optional[Model]:
        return await cls.query().latest()

    @classmethod
    async def count(cls) -> int:
        return await cls.query().count()

    @classmethod
    def where(cls, *constraint: Any, **criteria: Any) -> QueryBuilder:
        return cls.query().where(*constraint, **criteria)

    @classmethod
    def where_in(cls, field: str, values: Any) -> QueryBuilder:
        return cls.query().where_in(field, values)

    @classmethod
    def select(cls, *fields: str) -> QueryBuilder:
        return cls.query().select(*fields)

    @classmethod
    def limit(cls, amount: int) -> QueryBuilder:
        return cls.query().limit(amount)

    @classmethod
    def offset(cls, amount: int) -> QueryBuilder:
        return cls.query().offset(amount)

    @classmethod
    def order_by(cls, field: str | tuple[str] | tuple[str, str],
                 direction: Optional[str] = None) -> QueryBuilder:
        return cls.query().order_by(field, direction)

    @classmethod
    async def factory(cls, overrides: Optional[Mapping[str, Any]] = None,
                      **fields: Any) -> Model:
        """Insert a row built from factory_defaults(), letting overrides win, and return it."""
        overrides = {**(overrides or {}), **fields}
        instance = cls()
        defaults = instance.factory_defaults(overrides)
        if inspect.isawaitable(defaults):
            defaults = await defaults
        data = {**defaults, **overrides}
        fragment = build_insert_statement(cls._get_table_name(), data)
        rows = await cls._get_connection().execute(fragment.sql, fragment.params)
        instance._overlay(rows[0])
        return instance
