"""CLI entry point for `spandb`."""

from __future__ import annotations

import click

from spandb.cli.classify import classify_cmd
from spandb.cli.exec import exec_cmd
from spandb.cli.query import query


@click.group()
@click.version_option(package_name="spandb")
def main() -> None:
    """spandb: run SQL against Cloud Spanner through the DB-API driver."""


main.add_command(classify_cmd)
main.add_command(exec_cmd)
main.add_command(query)
