"""DB-API cursor over a Spanner connection."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from typing import TYPE_CHECKING

from spandb.client import QueryStream
from spandb.errors import InterfaceError, ProgrammingError, Stage
from spandb.types import Column, Row

if TYPE_CHECKING:
    from spandb.connection import Connection


class Cursor:
    """Executes statements and fetches query results.

    Failures surface where they happen: execute() raises for rejected
    statements, fetch methods raise for errors while streaming or while
    releasing the snapshot once the stream is exhausted, and close() raises
    if releasing an unfinished stream fails. Each error's `stage` says which.
    """

    arraysize = 1

    def __init__(self, connection: Connection) -> None:
        self._connection = connection
        self._stream: QueryStream | None = None
        self._description: list[Column] | None = None
        self._names: list[str] = []
        self._fetched = 0
        self._closed = False
        self.rowcount = -1
        self.lastrowid = None

    @property
    def connection(self) -> Connection:
        return self._connection

    @property
    def description(self) -> list[Column] | None:
        return self._description

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise InterfaceError("cursor is closed", stage=Stage.SUBMIT)

    def _release_stream(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.close()

    def _reset(self) -> None:
        self._release_stream()
        self._description = None
        self._names = []
        self._fetched = 0
        self.rowcount = -1

    def execute(self, sql: str | bytes, params: Mapping[str, object] | None = None) -> Cursor:
        self._ensure_open()
        self._reset()
        stream, rowcount = self._connection._dispatch(sql, params)  # noqa: SLF001
        self.rowcount = rowcount
        if stream is not None:
            self._stream = stream
            self._description = stream.columns
            self._names = [c.name for c in self._description]
        return self

    def executemany(self, sql: str | bytes, seq_of_params: Sequence[Mapping[str, object]]) -> Cursor:
        """Execute a DML statement once per parameter set, in one batch."""
        self._ensure_open()
        self._reset()
        self.rowcount = self._connection._dispatch_many(sql, seq_of_params)  # noqa: SLF001
        return self

    def fetchone(self) -> Row | None:
        self._ensure_open()
        if self._description is None:
            raise ProgrammingError("no result set: execute a query first", stage=Stage.FETCH)
        if self._stream is None:
            return None
        try:
            values = next(self._stream)
        except StopIteration:
            self.rowcount = self._fetched
            self._release_stream()
            return None
        except Exception:
            self._stream = None
            raise
        self._fetched += 1
        return Row(values, self._names)

    def fetchmany(self, size: int | None = None) -> list[Row]:
        size = self.arraysize if size is None else size
        rows: list[Row] = []
        while len(rows) < size:
            row = self.fetchone()
            if row is None:
                break
            rows.append(row)
        return rows

    def fetchall(self) -> list[Row]:
        return list(self)

    def __iter__(self) -> Iterator[Row]:
        while (row := self.fetchone()) is not None:
            yield row

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._release_stream()

    def setinputsizes(self, sizes) -> None:
        """Accepted for DB-API compatibility; has no effect."""

    def setoutputsize(self, size, column=None) -> None:
        """Accepted for DB-API compatibility; has no effect."""

    def __enter__(self) -> Cursor:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
