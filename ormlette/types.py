"""Constraint model and accumulated query state shared by the builder and fragments."""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


Where = tuple[str, Any] | tuple[str, str, Any]
"""One WHERE constraint: `(field, value)` for equality or `(field, operator, value)`."""

OrderBy = tuple[str] | tuple[str, str]
"""Sort key: `(field,)` (database default direction) or `(field, "asc" | "desc")`."""

ORDER_DIRECTIONS = ("asc", "desc")


class WhereIn(BaseModel):
    """One membership constraint, rendered as `field IN ($n, $n+1, ...)`."""

    field: str
    values: list[Any] = Field(default_factory=list)


class QueryData(BaseModel):
    """Everything a QueryBuilder has accumulated so far.

    `limit` and `offset` use 0 for "unset"; `select` defaults to all columns.
    """

    model_config = {"validate_assignment": True}

    where: list[Where] = Field(default_factory=list)
    where_in: list[WhereIn] = Field(default_factory=list)
    select: list[str] = Field(default_factory=lambda: ["*"])
    limit: int = 0
    offset: int = 0
    order_by: Optional[OrderBy] = None

    @field_validator("order_by")
    @classmethod
    def _check_direction(cls, value: Optional[OrderBy]) -> Optional[OrderBy]:
        # the direction is interpolated into SQL, so only known keywords pass
        if value is not None and len(value) == 2 and value[1].lower() not in ORDER_DIRECTIONS:
            raise ValueError(f"Invalid order direction: {value[1]!r} (expected 'asc' or 'desc')")
        return value


class Fragment(BaseModel):
    """A piece of SQL, its bound parameters, and the next free placeholder number."""

    sql: str = ""
    params: list[Any] = Field(default_factory=list)
    next_placeholder: int = 1

