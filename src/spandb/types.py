"""Result metadata and typed row conversion."""

from __future__ import annotations

import decimal
from typing import NamedTuple

from google.cloud.spanner_v1 import TypeCode

from spandb.errors import DataError, Stage


class Column(NamedTuple):
    """One entry of cursor.description (the seven PEP 249 fields)."""

    name: str
    type_code: str
    display_size: int | None = None
    internal_size: int | None = None
    precision: int | None = None
    scale: int | None = None
    null_ok: bool | None = True


def columns_from_fields(fields) -> list[Column]:
    """Build a description from the StructType fields of a result set."""
    return [
        Column(name=field.name, type_code=TypeCode(field.type_.code).name)
        for field in fields
    ]


_CONVERTIBLE = (str, int, float, decimal.Decimal)


def _convert(value: object, target: type, column: str) -> object:
    if target is int and isinstance(value, bool):
        raise DataError(f"cannot scan BOOL into int for column {column!r}", stage=Stage.SCAN)
    if isinstance(value, target):
        return value
    if target is bytes and isinstance(value, str):
        return value.encode("utf-8")
    if target is str and isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DataError(
                f"cannot scan BYTES into str for column {column!r}: {e}", stage=Stage.SCAN
            ) from e
    if target is int and isinstance(value, float) and not value.is_integer():
        raise DataError(
            f"cannot scan {value!r} into int without losing precision for column {column!r}",
            stage=Stage.SCAN,
        )
    if target in _CONVERTIBLE and isinstance(value, _CONVERTIBLE):
        try:
            return target(value)
        except (TypeError, ValueError, ArithmeticError) as e:
            raise DataError(
                f"cannot scan {value!r} into {target.__name__} for column {column!r}",
                stage=Stage.SCAN,
            ) from e
    raise DataError(
        f"cannot scan {type(value).__name__} into {target.__name__} for column {column!r}",
        stage=Stage.SCAN,
    )


class Row(tuple):
    """A result row: a tuple of column values that also knows its column names."""

    def __new__(cls, values, columns: list[str]) -> Row:
        row = super().__new__(cls, values)
        row._columns = columns
        return row

    @property
    def columns(self) -> list[str]:
        return self._columns

    def as_dict(self) -> dict[str, object]:
        return dict(zip(self._columns, self, strict=True))

    def scan(self, *types: type | None, nullable: bool = False) -> tuple[object, ...]:
        """Convert each column into the given Python type.

        A type of None leaves the value untouched. NULL values raise DataError
        unless nullable is True, in which case they scan as None.
        """
        if len(types) != len(self):
            raise DataError(
                f"expected {len(self)} scan targets, got {len(types)}", stage=Stage.SCAN
            )

        out: list[object] = []
        for column, value, target in zip(self._columns, self, types, strict=True):
            if target is None:
                out.append(value)
            elif value is None:
                if not nullable:
                    raise DataError(
                        f"cannot scan NULL into {target.__name__} for column {column!r}",
                        stage=Stage.SCAN,
                    )
                out.append(None)
            else:
                out.append(_convert(value, target, column))
        return tuple(out)
