"""Statement preparation: script splitting and parameter binding."""

from __future__ import annotations

import datetime
import decimal
from collections.abc import Mapping

import sqlglot
from google.cloud.spanner_v1 import param_types
from sqlglot.tokens import TokenType

from spandb.errors import ProgrammingError, Stage

# GoogleSQL lexes like BigQuery: double-quoted strings, backtick identifiers.
_DIALECT = "bigquery"


def split_statements(sql: str) -> list[str]:
    """Split a script on top-level semicolons.

    Semicolons inside string literals, quoted identifiers and comments are
    ignored. Comments before a statement and empty fragments are dropped. If
    the script cannot be tokenized the stripped text is returned whole, so the
    database reports the error.
    """
    try:
        tokens = sqlglot.tokenize(sql, read=_DIALECT)
    except sqlglot.errors.SqlglotError:
        stripped = sql.strip()
        return [stripped] if stripped else []

    statements: list[str] = []
    first = last = None
    for token in tokens:
        if token.token_type == TokenType.SEMICOLON:
            if first is not None:
                statements.append(sql[first.start : last.end + 1])
            first = last = None
            continue
        if first is None:
            first = token
        last = token

    if first is not None:
        statements.append(sql[first.start : last.end + 1])
    return statements


def _scalar_type(value: object) -> object | None:
    # bool before int, datetime before date: both are subclasses.
    if isinstance(value, bool):
        return param_types.BOOL
    if isinstance(value, int):
        return param_types.INT64
    if isinstance(value, float):
        return param_types.FLOAT64
    if isinstance(value, str):
        return param_types.STRING
    if isinstance(value, (bytes, bytearray)):
        return param_types.BYTES
    if isinstance(value, datetime.datetime):
        return param_types.TIMESTAMP
    if isinstance(value, datetime.date):
        return param_types.DATE
    if isinstance(value, decimal.Decimal):
        return param_types.NUMERIC
    return None


def infer_param_type(name: str, value: object) -> object | None:
    """Spanner parameter type for a Python value (None for NULL)."""
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        element = next((v for v in value if v is not None), None)
        if element is None:
            raise ProgrammingError(
                f"cannot infer element type of empty array parameter @{name}",
                stage=Stage.SUBMIT,
            )
        inner = _scalar_type(element)
        if inner is None:
            raise ProgrammingError(
                f"unsupported array element type for @{name}: {type(element).__name__}",
                stage=Stage.SUBMIT,
            )
        return param_types.Array(inner)

    scalar = _scalar_type(value)
    if scalar is None:
        raise ProgrammingError(
            f"unsupported parameter type for @{name}: {type(value).__name__}",
            stage=Stage.SUBMIT,
        )
    return scalar


def bind_params(
    params: Mapping[str, object] | None,
) -> tuple[dict[str, object] | None, dict[str, object] | None]:
    """Return (params, param_types) for the Spanner client.

    Parameters are referenced in SQL as @name. A leading "@" on a key is
    accepted and stripped.
    """
    if params is None:
        return None, None
    if not isinstance(params, Mapping):
        raise ProgrammingError(
            "parameters must be a mapping of @name placeholders to values",
            stage=Stage.SUBMIT,
        )

    values: dict[str, object] = {}
    types: dict[str, object] = {}
    for key, value in params.items():
        name = key[1:] if key.startswith("@") else key
        values[name] = list(value) if isinstance(value, tuple) else value
        ptype = infer_param_type(name, value)
        if ptype is not None:
            types[name] = ptype
    return values, types
