"""Tests for ormlette.dialects.postgres."""

from ormlette.dialects import PostgresDialect


def test_count_expression_casts_to_integer():
    assert PostgresDialect.COUNT_EXPRESSION == "COUNT(id)::INTEGER AS count"


def test_columns_sql():
    assert PostgresDialect().columns_sql("users") == (
        "SELECT column_name FROM information_schema.columns "
        "WHERE table_name = 'users' ORDER BY ordinal_position"
    )


def test_prepare_parameter_keeps_values():
    d = PostgresDialect()
    assert d.prepare_parameter(["a", "b"]) == ["a", "b"]
    assert d.prepare_parameter(3) == 3


def test_prepare_parameter_encodes_dicts_as_json():
    assert PostgresDialect().prepare_parameter({"k": "é"}) == '{"k": "é"}'


class _RecordingAsyncpgConnection:

    def __init__(self):
        self.calls = []

    async def fetch(self, sql, *args):
        self.calls.append((sql, args))
        return [{"id": 1}]


async def test_fetch_prepares_every_parameter():
    connection = _RecordingAsyncpgConnection()
    rows = await PostgresDialect().fetch(
        connection, "UPDATE t SET data = $1, tags = $2 WHERE id = $3 RETURNING *",
        [{"a": 1}, ["x", "y"], 3],
    )
    assert rows == [{"id": 1}]
    assert connection.calls == [
        ("UPDATE t SET data = $1, tags = $2 WHERE id = $3 RETURNING *",
         ('{"a": 1}', ["x", "y"], 3)),
    ]


def test_select_tail_keeps_offset_first():
    assert PostgresDialect().select_tail(offset=2, order_by=("id", "desc"), limit=5) == (
        " OFFSET 2 ORDER BY id DESC LIMIT 5"
    )
