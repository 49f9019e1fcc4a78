"""The `classify` command: show how a statement would be routed."""

from __future__ import annotations

import click

from spandb.classify import classify
from spandb.cli._shared import resolve_sql_stdin


@click.command("classify")
@click.argument("sql", required=False)
@click.option("--from-stdin", is_flag=True, help="Read SQL from stdin.")
def classify_cmd(sql: str | None, from_stdin: bool) -> None:
    """Print ddl, dml or query for SQL. Nothing is sent to the database."""
    text = resolve_sql_stdin(sql, from_stdin)
    click.echo(classify(text).value)
