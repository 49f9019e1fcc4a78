"""Thin wrapper over google-cloud-spanner: the driver's only view of the database.

Each method maps to one client-library call and translates its failures into
driver errors tagged with the stage they surfaced at. Retries, sessions and
transport stay inside the client library.
"""

from __future__ import annotations

import concurrent.futures
import contextlib
from collections.abc import Callable, Iterator, Sequence

from google.api_core import exceptions as gexc
from google.cloud import spanner

from spandb.auth import load_credentials
from spandb.config import ConnectionConfig
from spandb.errors import InterfaceError, OperationalError, Stage, translate
from spandb.types import Column, columns_from_fields

# A DML statement for batch execution: bare SQL or (sql, params, param_types).
BatchStatement = str | tuple[str, dict | None, dict | None]


class QueryStream:
    """Rows streamed from a read-only snapshot.

    The first row is pulled on construction, so errors the server reports
    for the statement itself surface at submission. Errors after that surface
    while fetching. The snapshot's session is returned to the pool on close().
    """

    def __init__(self, stack: contextlib.ExitStack, result_set) -> None:
        self._stack = stack
        self._result_set = result_set
        self._iter: Iterator[list] = iter(result_set)
        self._buffered: list | None = None
        self._exhausted = False
        self._closed = False
        self._prime()

    def _prime(self) -> None:
        try:
            self._buffered = next(self._iter)
        except StopIteration:
            self._exhausted = True
        except Exception as e:
            self._release()
            raise translate(e, Stage.SUBMIT) from e

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def columns(self) -> list[Column]:
        metadata = self._result_set.metadata
        if metadata is None:
            return []
        return columns_from_fields(metadata.row_type.fields)

    def __iter__(self) -> Iterator[list]:
        return self

    def __next__(self) -> list:
        if self._buffered is not None:
            row, self._buffered = self._buffered, None
            return row
        if self._exhausted or self._closed:
            raise StopIteration
        try:
            return next(self._iter)
        except StopIteration:
            self._exhausted = True
            raise
        except Exception as e:
            self._exhausted = True
            self._release()
            raise translate(e, Stage.FETCH) from e

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._buffered = None
        try:
            self._stack.close()
        except Exception as e:
            raise translate(e, Stage.CLOSE) from e

    def _release(self) -> None:
        self._closed = True
        with contextlib.suppress(Exception):
            self._stack.close()


class SpannerClient:
    """Handle on one Spanner database."""

    def __init__(self, database, *, client=None, ddl_timeout: float | None = None) -> None:
        self._database = database
        self._client = client
        self._ddl_timeout = ddl_timeout

    @classmethod
    def open(cls, config: ConnectionConfig) -> SpannerClient:
        credentials = load_credentials(config.credentials_file)
        try:
            client = spanner.Client(project=config.project, credentials=credentials)
            database = client.instance(config.instance).database(config.database)
        except Exception as e:
            raise translate(e, Stage.SUBMIT) from e
        return cls(database, client=client, ddl_timeout=config.ddl_timeout)

    @property
    def database(self):
        if self._database is None:
            raise InterfaceError("Spanner client is closed")
        return self._database

    def close(self) -> None:
        client, self._client = self._client, None
        self._database = None
        if client is None:
            return
        try:
            client.close()
        except Exception as e:
            raise translate(e, Stage.CLOSE) from e

    def update_ddl(self, statements: Sequence[str]) -> None:
        """Apply schema statements and block until the operation finishes."""
        database = self.database
        try:
            operation = database.update_ddl(list(statements))
            operation.result(timeout=self._ddl_timeout)
        except concurrent.futures.TimeoutError as e:
            raise OperationalError(
                f"schema update did not finish within {self._ddl_timeout}s",
                stage=Stage.SUBMIT,
            ) from e
        except Exception as e:
            raise translate(e, Stage.SUBMIT) from e

    def run_in_transaction(self, func: Callable, *args, **kwargs):
        """Run func(transaction, *args, **kwargs) in a read/write transaction."""
        database = self.database
        try:
            return database.run_in_transaction(func, *args, **kwargs)
        except Exception as e:
            raise translate(e, Stage.SUBMIT) from e

    def execute_update(
        self, sql: str, params: dict | None = None, param_types: dict | None = None
    ) -> int:
        """Run one DML statement in its own transaction; return rows affected."""
        return self.run_in_transaction(
            lambda txn: txn.execute_update(sql, params=params, param_types=param_types)
        )

    def batch_update(self, statements: Sequence[BatchStatement]) -> list[int]:
        """Run DML statements in one transaction with a single batch RPC."""
        return self.run_in_transaction(batch_update, list(statements))

    def execute_sql(
        self, sql: str, params: dict | None = None, param_types: dict | None = None
    ) -> QueryStream:
        database = self.database
        stack = contextlib.ExitStack()
        try:
            snapshot = stack.enter_context(database.snapshot())
            result_set = snapshot.execute_sql(sql, params=params, param_types=param_types)
        except Exception as e:
            with contextlib.suppress(Exception):
                stack.close()
            raise translate(e, Stage.SUBMIT) from e
        return QueryStream(stack, result_set)


def batch_update(transaction, statements: Sequence[BatchStatement]) -> list[int]:
    """Batch-execute DML inside an open transaction.

    A non-OK status means statement len(row_counts) failed. It is raised so
    that the transaction rolls back.
    """
    if not statements:
        return []
    status, row_counts = transaction.batch_update(statements)
    if status.code != 0:
        raise gexc.from_grpc_status(status.code, status.message)
    return list(row_counts)
