"""The `exec` command: run DDL or DML."""

from __future__ import annotations

import click

from spandb._types import StatementType
from spandb.classify import classify
from spandb.cli._shared import fail, parse_db, resolve_sql_stdin
from spandb.client import SpannerClient
from spandb.connection import Connection
from spandb.errors import Error
from spandb.statementlog import cleanup_old_logs


@click.command("exec")
@click.argument("sql", required=False)
@click.option("--db", required=True, envvar="SPANDB_DB", help="DSN or profile name.")
@click.option("--from-stdin", is_flag=True, help="Read SQL from stdin.")
def exec_cmd(sql: str | None, db: str, from_stdin: bool) -> None:
    """Execute a schema change or a DML statement.

    \b
    Examples:
      spandb exec "CREATE TABLE T (A STRING(1024)) PRIMARY KEY (A)" --db prod
      spandb exec "DELETE FROM T WHERE A = 'x'" --db projects/p/instances/i/databases/d
    """
    text = resolve_sql_stdin(sql, from_stdin)
    kind = classify(text)
    if kind is StatementType.QUERY:
        fail("exec is for DDL and DML; use `spandb query` for reads")

    config = parse_db(db)
    try:
        with Connection(SpannerClient.open(config), config) as conn:
            cursor = conn.execute(text)
            rowcount = cursor.rowcount
    except Error as e:
        fail(str(e))
    finally:
        if config.log_dir is not None:
            cleanup_old_logs(config.log_dir)

    if kind is StatementType.DDL:
        click.echo("schema updated")
    else:
        click.echo(f"{rowcount} rows affected")
