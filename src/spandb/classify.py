"""Classify SQL statements by their leading keyword (DDL, DML, QUERY).

The check is lexical only: it does not validate the statement. Anything that
is not positively recognised as DDL goes down the transactional path, and the
database rejects invalid SQL at execution time.
"""

from __future__ import annotations

import re

from spandb._types import StatementType
from spandb.errors import ProgrammingError, Stage

# Leading keywords of Spanner's schema-change statements.
DDL_KEYWORDS: frozenset[str] = frozenset({
    "CREATE",
    "DROP",
    "ALTER",
    "RENAME",
    "GRANT",
    "REVOKE",
    "ANALYZE",
})

DML_KEYWORDS: frozenset[str] = frozenset({
    "INSERT",
    "UPDATE",
    "DELETE",
})

# First run of non-whitespace characters after any leading whitespace.
_LEADING_TOKEN_RE = re.compile(r"\s*(\S+)")


def leading_token(sql: str | bytes) -> str:
    """Return the first whitespace-delimited token, upper-cased ('' if none)."""
    text = statement_text(sql)
    match = _LEADING_TOKEN_RE.match(text)
    if match is None:
        return ""
    return match.group(1).upper()


def is_ddl(sql: str | bytes) -> bool:
    """Return True if the statement begins with a DDL keyword.

    Leading whitespace and keyword case are ignored. The keyword must be the
    whole first token: "CCREATE", "0CREATE" and "x CREATE" are not DDL.
    """
    return leading_token(sql) in DDL_KEYWORDS


def classify(sql: str | bytes) -> StatementType:
    """Classify a statement for routing: DDL, DML or QUERY."""
    token = leading_token(sql)
    if token in DDL_KEYWORDS:
        return StatementType.DDL
    if token in DML_KEYWORDS:
        return StatementType.DML
    return StatementType.QUERY


def statement_text(sql: str | bytes) -> str:
    """Return the statement as str, decoding bytes as UTF-8."""
    if isinstance(sql, bytes):
        try:
            return sql.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProgrammingError(
                f"statement is not valid UTF-8: {e}", stage=Stage.SUBMIT
            ) from e
    if not isinstance(sql, str):
        raise ProgrammingError(
            f"statement must be str or bytes, got {type(sql).__name__}",
            stage=Stage.SUBMIT,
        )
    return sql
