"""SQL fragment builders.

Pure functions turning constraint lists into SQL text plus the ordered list
of bound parameters. Placeholders use the `$1, $2, ...` style; each function
takes the first free placeholder number and returns the next one, so several
fragments can be chained into one statement while keeping parameter order
identical to placeholder order.

Column names, table names and operators are interpolated as given: only
values are parameterized.
"""

from typing import Any, Callable, Iterable, Mapping, Optional

from .types import Fragment, OrderBy, Where, WhereIn


def placeholder(number: int) -> str:
    """Return the positional marker for the given parameter number."""
    return f"${number}"


def build_where_fragment(constraints: Iterable[Where], start: int = 1) -> Fragment:
    """Build ` WHERE a = $1 AND b > $2` from `[("a", 1), ("b", ">", 2)]`.

    Two-element constraints compare with `=`; three-element constraints use
    their operator verbatim.
    """
    conditions = []
    params = []
    counter = start
    for constraint in constraints:
        *column_and_operator, value = constraint
        if len(column_and_operator) == 1:
            column_and_operator.append("=")
        conditions.append(" ".join((*column_and_operator, placeholder(counter))))
        params.append(value)
        counter += 1
    if not conditions:
        return Fragment(next_placeholder=start)
    return Fragment(sql=" WHERE " + " AND ".join(conditions),
                    params=params,
                    next_placeholder=counter)


def build_where_in_fragment(constraints: Iterable[WhereIn], start: int = 1,
                            after_where: bool = False) -> Fragment:
    """Build ` WHERE a IN ($1, $2) AND b IN ($3)`.

    With `after_where`, the first constraint is joined with `AND` so it can
    follow a WHERE fragment. An empty value list renders `IN (NULL)`, which
    no row satisfies.
    """
    sql = ""
    params = []
    counter = start
    for i, constraint in enumerate(constraints):
        sql += " WHERE " if i == 0 and not after_where else " AND "
        markers = []
        for value in constraint.values:
            markers.append(placeholder(counter))
            params.append(value)
            counter += 1
        sql += f"{constraint.field} IN ({', '.join(markers) or 'NULL'})"
    return Fragment(sql=sql, params=params, next_placeholder=counter)


def build_set_fragment(values: Mapping[str, Any], start: int = 1) -> Fragment:
    """Build `a = $1, b = $2` for an UPDATE statement."""
    assignments = []
    params = []
    counter = start
    for name, value in values.items():
        assignments.append(f"{name} = {placeholder(counter)}")
        params.append(value)
        counter += 1
    return Fragment(sql=", ".join(assignments), params=params, next_placeholder=counter)


def _build_filters(where: Iterable[Where], where_in: Iterable[WhereIn], start: int) -> Fragment:
    """WHERE then WHERE-IN, sharing one running placeholder counter."""
    where = list(where)
    where_fragment = build_where_fragment(where, start)
    where_in_fragment = build_where_in_fragment(where_in, where_fragment.next_placeholder,
                                                after_where=bool(where))
    return Fragment(sql=where_fragment.sql + where_in_fragment.sql,
                    params=where_fragment.params + where_in_fragment.params,
                    next_placeholder=where_in_fragment.next_placeholder)


def build_order_clause(order_by: Optional[OrderBy]) -> str:
    """Build ` ORDER BY f [ASC|DESC]`, or nothing when unset."""
    if not order_by:
        return ""
    sql = f" ORDER BY {order_by[0]}"
    if len(order_by) == 2:
        sql += f" {order_by[1].upper()}"
    return sql


def build_select_tail(offset: int = 0, order_by: Optional[OrderBy] = None,
                      limit: int = 0) -> str:
    """Build the clauses following the filters: OFFSET, ORDER BY, LIMIT, in that order."""
    sql = ""
    if offset:
        sql += f" OFFSET {int(offset)}"
    sql += build_order_clause(order_by)
    if limit:
        sql += f" LIMIT {int(limit)}"
    return sql


def build_select_statement(table: str,
                           select: Iterable[str] = ("*",),
                           where: Iterable[Where] = (),
                           where_in: Iterable[WhereIn] = (),
                           offset: int = 0,
                           order_by: Optional[OrderBy] = None,
                           limit: int = 0,
                           tail: Callable[..., str] = build_select_tail) -> Fragment:
    """Assemble a full SELECT.

    WHERE and WHERE-IN come first; `tail` renders offset, order and limit
    (by default as OFFSET, ORDER BY, LIMIT). Unset clauses are left out.
    """
    filters = _build_filters(where, where_in, 1)
    sql = f"SELECT {', '.join(select)} FROM {table}" + filters.sql
    sql += tail(offset=offset, order_by=order_by, limit=limit)
    return Fragment(sql=sql, params=filters.params, next_placeholder=filters.next_placeholder)


def build_update_statement(table: str,
                           values: Mapping[str, Any],
                           where: Iterable[Where] = (),
                           where_in: Iterable[WhereIn] = (),
                           raw_assignments: Iterable[str] = ()) -> Fragment:
    """Assemble `UPDATE ... SET ... [WHERE ...] RETURNING *`.

    SET placeholders are numbered first; filters continue the same counter.
    `raw_assignments` (e.g. `updated_at = CURRENT_TIMESTAMP`) are appended to
    SET as given and bind nothing. Without constraints every row of the table
    is updated.
    """
    assignments = build_set_fragment(values, 1)
    set_sql = ", ".join(([assignments.sql] if assignments.sql else []) + list(raw_assignments))
    filters = _build_filters(where, where_in, assignments.next_placeholder)
    sql = f"UPDATE {table} SET {set_sql}{filters.sql} RETURNING *"
    return Fragment(sql=sql,
                    params=assignments.params + filters.params,
                    next_placeholder=filters.next_placeholder)


def build_delete_statement(table: str,
                           where: Iterable[Where] = (),
                           where_in: Iterable[WhereIn] = ()) -> Fragment:
    """Assemble `DELETE FROM ... [WHERE ...]`; unconstrained deletes empty the table."""
    filters = _build_filters(where, where_in, 1)
    return Fragment(sql=f"DELETE FROM {table}{filters.sql}",
                    params=filters.params,
                    next_placeholder=filters.next_placeholder)


def build_insert_statement(table: str, values: Mapping[str, Any]) -> Fragment:
    """Assemble `INSERT INTO ... RETURNING *` so generated columns come back."""
    if not values:
        return Fragment(sql=f"INSERT INTO {table} DEFAULT VALUES RETURNING *")
    markers = [placeholder(i) for i in range(1, len(values) + 1)]
    sql = (f"INSERT INTO {table} ({', '.join(values)}) "
           f"VALUES ({', '.join(markers)}) RETURNING *")
    return Fragment(sql=sql, params=list(values.values()), next_placeholder=len(values) + 1)
