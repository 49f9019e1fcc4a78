"""Cursor tests: query round-trips and the three failure points, on fakes."""

from __future__ import annotations

import pytest
from fakes import FakeField, FakeResultSet
from google.api_core import exceptions as gexc
from google.cloud.spanner_v1 import TypeCode, param_types

from spandb.errors import (
    InterfaceError,
    InternalError,
    OperationalError,
    ProgrammingError,
    Stage,
)

ABC = [FakeField("A"), FakeField("B"), FakeField("C")]
ROWS = [["a1", "b1", "c1"], ["a2", "b2", "c2"], ["a3", "b3", "c3"]]


def test_select_entire_table_in_key_order(conn, fake_db):
    sql = "SELECT * FROM TestQueryContext ORDER BY A"
    fake_db.results[sql] = FakeResultSet(ROWS, ABC)

    cur = conn.cursor()
    cur.execute(sql)

    assert [c.name for c in cur.description] == ["A", "B", "C"]
    assert cur.description[0].type_code == "STRING"
    assert cur.fetchall() == [tuple(r) for r in ROWS]
    assert cur.rowcount == 3
    assert fake_db.sessions_out == 0


def test_return_nothing_is_not_an_error(conn, fake_db):
    sql = 'SELECT * FROM TestQueryContext WHERE A = "hihihi"'
    fake_db.results[sql] = FakeResultSet([], ABC)

    cur = conn.execute(sql)

    assert cur.fetchall() == []
    assert [c.name for c in cur.description] == ["A", "B", "C"]
    assert cur.rowcount == 0


def test_syntax_error_surfaces_at_submit(conn, fake_db):
    sql = "SELECT SELECT * FROM TestQueryContext"
    fake_db.results[sql] = FakeResultSet(
        [], [], error=gexc.InvalidArgument("Syntax error: Unexpected keyword SELECT")
    )

    cur = conn.cursor()
    with pytest.raises(ProgrammingError, match="Syntax error") as info:
        cur.execute(sql)

    assert info.value.stage is Stage.SUBMIT
    assert isinstance(info.value.__cause__, gexc.InvalidArgument)
    assert cur.description is None
    assert fake_db.sessions_out == 0


def test_missing_table_surfaces_at_submit(conn, fake_db):
    sql = "SELECT * FROM NonExistent"
    fake_db.submit_errors[sql] = gexc.InvalidArgument("Table not found: NonExistent")

    with pytest.raises(ProgrammingError, match="Table not found") as info:
        conn.execute(sql)
    assert info.value.stage is Stage.SUBMIT
    assert fake_db.sessions_out == 0


def test_empty_query_is_left_to_the_database(conn, fake_db):
    fake_db.results[""] = FakeResultSet([], [], error=gexc.InvalidArgument("Invalid query"))

    with pytest.raises(ProgrammingError):
        conn.execute("")
    assert fake_db.queries[0][0] == ""


def test_stream_error_surfaces_at_fetch(conn, fake_db):
    sql = "SELECT * FROM T"
    fake_db.results[sql] = FakeResultSet(
        ROWS, ABC, error=gexc.ServiceUnavailable("stream reset"), fail_at=2
    )

    cur = conn.execute(sql)
    assert cur.fetchone() == ("a1", "b1", "c1")
    assert cur.fetchone() == ("a2", "b2", "c2")
    with pytest.raises(OperationalError, match="stream reset") as info:
        cur.fetchone()

    assert info.value.stage is Stage.FETCH
    assert fake_db.sessions_out == 0
    # The cursor itself closes cleanly afterwards.
    cur.close()


def test_release_error_surfaces_at_close(conn, fake_db):
    sql = "SELECT * FROM T"
    fake_db.results[sql] = FakeResultSet(ROWS, ABC)
    fake_db.release_error = gexc.Unknown("session release failed")

    cur = conn.execute(sql)
    assert cur.fetchone() == ("a1", "b1", "c1")
    with pytest.raises(InternalError, match="session release failed") as info:
        cur.close()
    assert info.value.stage is Stage.CLOSE


def test_release_error_after_last_row(conn, fake_db):
    sql = "SELECT * FROM T"
    fake_db.results[sql] = FakeResultSet(ROWS[:1], ABC)
    fake_db.release_error = gexc.Unknown("session release failed")

    cur = conn.execute(sql)
    assert cur.fetchone() == ("a1", "b1", "c1")
    with pytest.raises(InternalError) as info:
        cur.fetchone()
    assert info.value.stage is Stage.CLOSE


def test_rows_scan_into_typed_fields(conn, fake_db):
    sql = "SELECT key, n FROM T"
    fake_db.results[sql] = FakeResultSet(
        [["k1", 1], ["k2", 2]], [FakeField("key"), FakeField("n", TypeCode.INT64)]
    )

    got = [row.scan(str, int) for row in conn.execute(sql)]
    assert got == [("k1", 1), ("k2", 2)]


def test_fetchmany(conn, fake_db):
    sql = "SELECT * FROM T"
    fake_db.results[sql] = FakeResultSet(ROWS, ABC)

    cur = conn.execute(sql)
    assert len(cur.fetchmany(2)) == 2
    assert len(cur.fetchmany(2)) == 1
    assert cur.fetchmany(2) == []


def test_fetchmany_defaults_to_arraysize(conn, fake_db):
    sql = "SELECT * FROM T"
    fake_db.results[sql] = FakeResultSet(ROWS, ABC)

    cur = conn.execute(sql)
    cur.arraysize = 2
    assert len(cur.fetchmany()) == 2


def test_rows_know_their_columns(conn, fake_db):
    sql = "SELECT * FROM T"
    fake_db.results[sql] = FakeResultSet(ROWS[:1], ABC)

    row = conn.execute(sql).fetchone()
    assert row.as_dict() == {"A": "a1", "B": "b1", "C": "c1"}


def test_query_params_are_bound(conn, fake_db):
    sql = "SELECT * FROM T WHERE A = @a"
    conn.execute(sql, {"a": "a1"})

    assert fake_db.queries == [(sql, {"a": "a1"}, {"a": param_types.STRING})]


def test_trailing_semicolon_is_stripped(conn, fake_db):
    conn.execute("SELECT 1;")
    assert fake_db.queries[0][0] == "SELECT 1"


def test_new_execute_releases_previous_stream(conn, fake_db):
    fake_db.results["SELECT 1"] = FakeResultSet([[1], [1]], [FakeField("x", TypeCode.INT64)])

    cur = conn.execute("SELECT 1")
    cur.fetchone()
    assert fake_db.sessions_out == 1
    cur.execute("SELECT 2")
    assert fake_db.sessions_out == 1  # only the new snapshot


def test_fetch_before_execute(conn):
    with pytest.raises(ProgrammingError, match="execute a query first"):
        conn.cursor().fetchone()


def test_fetch_after_dml(conn):
    cur = conn.execute("INSERT INTO T (A) VALUES ('a')")
    with pytest.raises(ProgrammingError):
        cur.fetchall()


def test_closed_cursor(conn):
    cur = conn.cursor()
    cur.close()
    cur.close()
    assert cur.closed
    with pytest.raises(InterfaceError, match="cursor is closed"):
        cur.execute("SELECT 1")


def test_cursor_context_manager(conn, fake_db):
    fake_db.results["SELECT 1"] = FakeResultSet([[1]], [FakeField("x", TypeCode.INT64)])
    with conn.cursor() as cur:
        cur.execute("SELECT 1")
    assert cur.closed
    assert fake_db.sessions_out == 0
