"""Shared helpers for CLI commands."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import NoReturn

import click

from spandb.config import DEFAULT_PROFILES_FILE, ConnectionConfig, resolve
from spandb.errors import Error


def resolve_sql_stdin(sql: str | None, from_stdin: bool) -> str:
    """Resolve SQL from positional argument or stdin. Exactly one source required."""
    if sql and from_stdin:
        raise click.UsageError("Provide SQL as an argument or --from-stdin, not both.")
    if from_stdin:
        if sys.stdin.isatty():
            raise click.UsageError("--from-stdin requires piped input (stdin is a terminal).")
        text = sys.stdin.read().strip()
        if not text:
            raise click.UsageError("--from-stdin: stdin was empty.")
        return text
    if not sql:
        raise click.UsageError("Missing argument 'SQL'. Provide SQL or use --from-stdin.")
    return sql


def parse_db(value: str, profiles: Path | None = None) -> ConnectionConfig:
    """Resolve --db: a profile name from connections.toml, else a DSN."""
    profiles = profiles or DEFAULT_PROFILES_FILE
    try:
        return resolve(value, profiles)
    except Error as e:
        raise click.BadParameter(
            f"{e}\n  Use a DSN (projects/<p>/instances/<i>/databases/<d>) "
            f"or a profile defined in {profiles}",
            param_hint="'--db'",
        ) from e


def fail(message: str) -> NoReturn:
    """Print an error to stderr and exit with status 1."""
    click.echo(f"error: {message}", err=True)
    raise SystemExit(1)
