"""Fake google-cloud-spanner objects: record calls, replay scripted results."""

from __future__ import annotations

from google.cloud.spanner_v1 import TypeCode


class FakeType:
    def __init__(self, code: TypeCode) -> None:
        self.code = code


class FakeField:
    def __init__(self, name: str, code: TypeCode = TypeCode.STRING) -> None:
        self.name = name
        self.type_ = FakeType(code)


class _RowType:
    def __init__(self, fields: list[FakeField]) -> None:
        self.fields = fields


class _Metadata:
    def __init__(self, fields: list[FakeField]) -> None:
        self.row_type = _RowType(fields)


class FakeResultSet:
    """Streams rows; raises `error` once `fail_at` rows have been yielded."""

    def __init__(
        self,
        rows: list[list[object]],
        fields: list[FakeField],
        *,
        error: Exception | None = None,
        fail_at: int = 0,
    ) -> None:
        self._rows = rows
        self._fields = fields
        self._error = error
        self._fail_at = fail_at
        self.metadata = None

    def __iter__(self):
        self.metadata = _Metadata(self._fields)
        for i, row in enumerate(self._rows):
            if self._error is not None and i == self._fail_at:
                raise self._error
            yield row
        if self._error is not None and self._fail_at >= len(self._rows):
            raise self._error


class FakeSnapshot:
    def __init__(self, db: FakeDatabase) -> None:
        self._db = db

    def execute_sql(self, sql, params=None, param_types=None):
        self._db.queries.append((sql, params, param_types))
        if sql in self._db.submit_errors:
            raise self._db.submit_errors[sql]
        return self._db.results.get(sql) or FakeResultSet([], [])


class FakeCheckout:
    def __init__(self, db: FakeDatabase) -> None:
        self._db = db

    def __enter__(self) -> FakeSnapshot:
        self._db.sessions_out += 1
        return FakeSnapshot(self._db)

    def __exit__(self, exc_type, exc, tb) -> None:
        self._db.sessions_out -= 1
        if self._db.release_error is not None:
            raise self._db.release_error


class FakeOperation:
    def __init__(self, error: BaseException | None = None) -> None:
        self._error = error
        self.timeout = None

    def result(self, timeout=None):
        self.timeout = timeout
        if self._error is not None:
            raise self._error
        return None


class FakeStatus:
    def __init__(self, code: int = 0, message: str = "") -> None:
        self.code = code
        self.message = message


class FakeTransaction:
    def __init__(self, db: FakeDatabase) -> None:
        self._db = db

    def execute_update(self, sql, params=None, param_types=None) -> int:
        self._db.updates.append((sql, params, param_types))
        if sql in self._db.submit_errors:
            raise self._db.submit_errors[sql]
        return self._db.row_counts.get(sql, 1)

    def batch_update(self, statements):
        self._db.batches.append(list(statements))
        if self._db.batch_status is not None:
            status, counts = self._db.batch_status
            return status, counts
        counts = []
        for stmt in statements:
            sql = stmt if isinstance(stmt, str) else stmt[0]
            counts.append(self._db.row_counts.get(sql, 1))
        return FakeStatus(), counts


class FakeDatabase:
    """Records every call; tests script results and errors by SQL text."""

    def __init__(self) -> None:
        self.ddl: list[list[str]] = []
        self.queries: list[tuple] = []
        self.updates: list[tuple] = []
        self.batches: list[list] = []
        self.transactions = 0
        self.sessions_out = 0
        self.results: dict[str, FakeResultSet] = {}
        self.submit_errors: dict[str, Exception] = {}
        self.row_counts: dict[str, int] = {}
        self.ddl_error: BaseException | None = None
        self.release_error: Exception | None = None
        self.batch_status: tuple[FakeStatus, list[int]] | None = None
        self.last_operation: FakeOperation | None = None

    def update_ddl(self, statements):
        self.ddl.append(list(statements))
        self.last_operation = FakeOperation(self.ddl_error)
        return self.last_operation

    def run_in_transaction(self, func, *args, **kwargs):
        self.transactions += 1
        return func(FakeTransaction(self), *args, **kwargs)

    def snapshot(self) -> FakeCheckout:
        return FakeCheckout(self)


class FakeClient:
    def __init__(self) -> None:
        self.closed = False

    def close(self) -> None:
        self.closed = True


