"""The `query` command: run a read and print the rows."""

from __future__ import annotations

import time

import click

from spandb._types import StatementType
from spandb.classify import classify
from spandb.cli._output import format_rows
from spandb.cli._shared import fail, parse_db, resolve_sql_stdin
from spandb.client import SpannerClient
from spandb.connection import Connection
from spandb.errors import Error
from spandb.statementlog import cleanup_old_logs


@click.command()
@click.argument("sql", required=False)
@click.option("--db", required=True, envvar="SPANDB_DB", help="DSN or profile name.")
@click.option("--from-stdin", is_flag=True, help="Read SQL from stdin.")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "text"]),
    default="text",
    help="Output format.",
)
def query(sql: str | None, db: str, from_stdin: bool, output_format: str) -> None:
    """Run a query in a read-only snapshot and print the result."""
    text = resolve_sql_stdin(sql, from_stdin)
    if classify(text) is not StatementType.QUERY:
        fail("query is read-only; use `spandb exec` for DDL and DML")

    config = parse_db(db)
    t0 = time.monotonic()
    try:
        with Connection(SpannerClient.open(config), config) as conn:
            cursor = conn.execute(text)
            rows = cursor.fetchall()
            columns = cursor.description or []
    except Error as e:
        fail(str(e))
    finally:
        if config.log_dir is not None:
            cleanup_old_logs(config.log_dir)
    duration_ms = (time.monotonic() - t0) * 1000

    click.echo(format_rows(columns, rows, output_format=output_format, duration_ms=duration_ms))
