"""spandb: a DB-API 2.0 driver for Cloud Spanner."""

from spandb._types import StatementType
from spandb.classify import DDL_KEYWORDS, DML_KEYWORDS, classify, is_ddl
from spandb.config import ConnectionConfig
from spandb.connection import Connection, connect
from spandb.cursor import Cursor
from spandb.errors import (
    DatabaseError,
    DataError,
    Error,
    IntegrityError,
    InterfaceError,
    InternalError,
    NotSupportedError,
    OperationalError,
    ProgrammingError,
    Stage,
    Warning,
)
from spandb.types import Column, Row

apilevel = "2.0"
threadsafety = 1  # threads may share the module, not connections
paramstyle = "named"  # parameters are referenced as @name

__all__ = [
    "DDL_KEYWORDS",
    "DML_KEYWORDS",
    "Column",
    "Connection",
    "ConnectionConfig",
    "Cursor",
    "DataError",
    "DatabaseError",
    "Error",
    "IntegrityError",
    "InterfaceError",
    "InternalError",
    "NotSupportedError",
    "OperationalError",
    "ProgrammingError",
    "Row",
    "Stage",
    "StatementType",
    "Warning",
    "apilevel",
    "classify",
    "connect",
    "is_ddl",
    "paramstyle",
    "threadsafety",
]
