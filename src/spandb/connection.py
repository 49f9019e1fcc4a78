"""DB-API connection: routes each statement to the matching Spanner call.

DDL goes to the schema-update operation, DML to a read/write transaction,
and everything else is streamed from a read-only snapshot.
"""

from __future__ import annotations

import contextlib
import time
from collections.abc import Callable, Mapping, Sequence

from spandb._types import StatementType
from spandb.classify import classify, is_ddl, statement_text
from spandb.client import QueryStream, SpannerClient
from spandb.config import ConnectionConfig
from spandb.cursor import Cursor
from spandb.errors import Error, InterfaceError, ProgrammingError, Stage
from spandb.statementlog import log_statement
from spandb.statements import bind_params, split_statements

# DML as sent to the client: (sql, params, param_types).
PreparedDML = tuple[str, dict | None, dict | None]


class Connection:
    """A connection to one Spanner database.

    With autocommit on (the default) every DML statement commits on its own.
    With autocommit off, DML is buffered and replayed in a single read/write
    transaction by commit(); rollback() discards it. DDL always runs at once,
    since Spanner schema changes are not transactional.
    """

    def __init__(self, client: SpannerClient, config: ConnectionConfig | None = None) -> None:
        self._client = client
        self._config = config
        self.autocommit = config.autocommit if config is not None else True
        self._pending: list[PreparedDML] = []
        self._streams: set[QueryStream] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def config(self) -> ConnectionConfig | None:
        return self._config

    @property
    def pending(self) -> list[PreparedDML]:
        """DML buffered for the next commit()."""
        return list(self._pending)

    def _ensure_open(self) -> None:
        if self._closed:
            raise InterfaceError("connection is closed", stage=Stage.SUBMIT)

    # -- DB-API ------------------------------------------------------------------

    def cursor(self) -> Cursor:
        self._ensure_open()
        return Cursor(self)

    def execute(self, sql: str | bytes, params: Mapping[str, object] | None = None) -> Cursor:
        """Shortcut: open a cursor, execute, return the cursor."""
        return self.cursor().execute(sql, params)

    def commit(self) -> None:
        self._ensure_open()
        if not self._pending:
            return
        statements, self._pending = self._pending, []
        self._client.batch_update(statements)

    def rollback(self) -> None:
        self._ensure_open()
        self._pending = []

    def close(self) -> None:
        """Close the connection. Uncommitted DML is discarded.

        Snapshots still held by unfinished result streams are released, and
        failures to release them are not reported here.
        """
        if self._closed:
            return
        self._closed = True
        self._pending = []
        streams, self._streams = self._streams, set()
        for stream in streams:
            with contextlib.suppress(Error):
                stream.close()
        self._client.close()

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if not self._closed:
                if exc_type is None:
                    self.commit()
                else:
                    self.rollback()
        finally:
            self.close()

    # -- Spanner extensions ------------------------------------------------------

    def run_in_transaction(self, func: Callable, *args, **kwargs):
        """Run func(transaction, *args, **kwargs) in a read/write transaction.

        The client library retries func when the transaction aborts.
        """
        self._ensure_open()
        return self._client.run_in_transaction(func, *args, **kwargs)

    def execute_batch_dml(
        self,
        statements: Sequence[str | tuple[str, Mapping[str, object] | None]],
    ) -> list[int]:
        """Execute DML statements in one transaction; return per-statement row counts."""
        self._ensure_open()
        prepared = [self._prepare_dml(s) for s in statements]
        return self._client.batch_update(prepared)

    # -- dispatch ------------------------------------------------------------------

    def _prepare_dml(self, statement: str | tuple[str, Mapping[str, object] | None]) -> PreparedDML:
        if isinstance(statement, tuple):
            sql, params = statement
        else:
            sql, params = statement, None
        values, types = bind_params(params)
        return statement_text(sql), values, types

    def _dispatch(
        self, sql: str | bytes, params: Mapping[str, object] | None
    ) -> tuple[QueryStream | None, int]:
        """Route one statement by its classification.

        Returns the result stream (queries only) and the affected row count
        (-1 when not known).
        """
        self._ensure_open()
        text = statement_text(sql)
        kind = classify(text)

        t0 = time.monotonic()
        try:
            if kind is StatementType.DDL:
                stream, rowcount = None, self._execute_ddl(text, params)
            else:
                text = self._single_statement(text)
                values, types = bind_params(params)
                if kind is StatementType.DML:
                    stream, rowcount = None, self._execute_dml(text, values, types)
                else:
                    stream, rowcount = self._client.execute_sql(text, values, types), -1
                    self._track(stream)
        except Error as e:
            self._log(kind, text, t0, error=str(e))
            raise
        self._log(kind, text, t0, row_count=rowcount if rowcount >= 0 else None)
        return stream, rowcount

    def _dispatch_many(
        self, sql: str | bytes, seq_of_params: Sequence[Mapping[str, object]]
    ) -> int:
        self._ensure_open()
        text = self._single_statement(statement_text(sql))
        kind = classify(text)
        if kind is not StatementType.DML:
            raise ProgrammingError(
                f"executemany() only supports DML, got {kind.value.upper()}",
                stage=Stage.SUBMIT,
            )

        prepared = [(text, *bind_params(params)) for params in seq_of_params]
        t0 = time.monotonic()
        if not self.autocommit:
            self._pending.extend(prepared)
            self._log(kind, text, t0)
            return -1
        try:
            counts = self._client.batch_update(prepared)
        except Error as e:
            self._log(kind, text, t0, error=str(e))
            raise
        self._log(kind, text, t0, row_count=sum(counts))
        return sum(counts)

    def _track(self, stream: QueryStream) -> None:
        # Streams stay referenced until finished so close() can release them.
        self._streams = {s for s in self._streams if not s.closed}
        self._streams.add(stream)

    def _execute_ddl(self, text: str, params: Mapping[str, object] | None) -> int:
        if params:
            raise ProgrammingError("DDL statements do not take parameters", stage=Stage.SUBMIT)
        statements = split_statements(text) if ";" in text else [text]
        if not statements:
            statements = [text]
        not_ddl = [s for s in statements if not is_ddl(s)]
        if not_ddl:
            raise ProgrammingError(
                f"cannot mix DDL with other statements in one script: {not_ddl[0][:60]!r}",
                stage=Stage.SUBMIT,
            )
        self._client.update_ddl(statements)
        return -1

    def _execute_dml(self, text: str, values: dict | None, types: dict | None) -> int:
        if not self.autocommit:
            self._pending.append((text, values, types))
            return -1
        return self._client.execute_update(text, values, types)

    def _single_statement(self, text: str) -> str:
        """Strip a trailing semicolon; reject scripts of several statements."""
        if ";" not in text:
            return text
        statements = split_statements(text)
        if len(statements) > 1:
            raise ProgrammingError(
                "multiple statements in one call are only supported for DDL",
                stage=Stage.SUBMIT,
            )
        return statements[0] if statements else text

    def _log(
        self,
        kind: StatementType,
        sql: str,
        t0: float,
        *,
        row_count: int | None = None,
        error: str | None = None,
    ) -> None:
        if self._config is None or self._config.log_dir is None:
            return
        log_statement(
            self._config.log_dir,
            sql=sql,
            kind=kind.value,
            database=self._config.database_path,
            row_count=row_count,
            duration_ms=(time.monotonic() - t0) * 1000,
            error=error,
        )


def connect(
    dsn: str | None = None,
    *,
    config: ConnectionConfig | None = None,
    **options,
) -> Connection:
    """Open a connection from a DSN or an explicit ConnectionConfig.

    Extra keyword options override ConnectionConfig fields, e.g.
    connect("projects/p/instances/i/databases/d", autocommit=False).
    """
    if config is None:
        if dsn is None:
            raise InterfaceError("connect() needs a dsn or a config")
        config = ConnectionConfig.from_dsn(dsn, **options)
    elif dsn is not None:
        raise InterfaceError("pass either dsn or config to connect(), not both")
    elif options:
        config = config.replace(**options)

    return Connection(SpannerClient.open(config), config)
