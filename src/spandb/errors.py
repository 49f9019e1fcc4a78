"""PEP 249 exception hierarchy and translation of Spanner client errors.

Every driver error records the stage at which it surfaced. Submission, row
iteration, scanning and close are independent failure points, so callers can
tell a rejected statement apart from a failure while streaming results.
"""

from __future__ import annotations

import enum

from google.api_core import exceptions as gexc


class Stage(enum.Enum):
    SUBMIT = "submit"  # execute()/executemany()/commit()
    FETCH = "fetch"    # iterating the result stream
    SCAN = "scan"      # converting a row into typed values
    CLOSE = "close"    # releasing the snapshot, cursor or connection


class Warning(Exception):  # noqa: A001 - name mandated by PEP 249
    """Important warnings such as data truncation."""


class Error(Exception):
    """Base class of all driver errors."""

    def __init__(self, message: str, *, stage: Stage | None = None) -> None:
        super().__init__(message)
        self.stage = stage


class InterfaceError(Error):
    """Misuse of the driver itself (closed handles, bad connection strings)."""


class DatabaseError(Error):
    """Errors reported by the database."""


class DataError(DatabaseError):
    """Value out of range or not convertible to the requested type."""


class OperationalError(DatabaseError):
    """Transient or environmental failures: aborts, timeouts, unavailability."""


class IntegrityError(DatabaseError):
    """Relational integrity violations, e.g. dropping a referenced table."""


class InternalError(DatabaseError):
    """The database hit an internal error."""


class ProgrammingError(DatabaseError):
    """Bad SQL, missing or duplicate schema objects, wrong API usage."""


class NotSupportedError(DatabaseError):
    """The operation is not supported by Spanner or by the driver."""


_TRANSLATIONS: tuple[tuple[type[Exception], type[DatabaseError]], ...] = (
    (gexc.AlreadyExists, ProgrammingError),
    (gexc.NotFound, ProgrammingError),
    (gexc.InvalidArgument, ProgrammingError),
    (gexc.FailedPrecondition, IntegrityError),
    (gexc.OutOfRange, DataError),
    (gexc.Aborted, OperationalError),
    (gexc.DeadlineExceeded, OperationalError),
    (gexc.ServiceUnavailable, OperationalError),
    (gexc.ResourceExhausted, OperationalError),
    (gexc.Unauthenticated, OperationalError),
    (gexc.PermissionDenied, OperationalError),
    (gexc.Cancelled, OperationalError),
    (gexc.InternalServerError, InternalError),
    (gexc.Unknown, InternalError),
)


# Spanner reports a duplicate schema object as FAILED_PRECONDITION.
_DUPLICATE_NAME_PREFIX = "Duplicate name in schema"


def _is_duplicate_name(exc: gexc.GoogleAPICallError) -> bool:
    return (exc.message or "").startswith(_DUPLICATE_NAME_PREFIX)


def error_class_for(exc: BaseException) -> type[Error]:
    """Pick the PEP 249 class for a client-library exception."""
    if isinstance(exc, Error):
        return type(exc)
    if isinstance(exc, gexc.FailedPrecondition) and _is_duplicate_name(exc):
        return ProgrammingError
    for source, target in _TRANSLATIONS:
        if isinstance(exc, source):
            return target
    if isinstance(exc, gexc.GoogleAPICallError):
        return DatabaseError
    return OperationalError


def translate(exc: BaseException, stage: Stage) -> Error:
    """Wrap an exception from the client library, keeping its message verbatim.

    Driver errors pass through unchanged, except that a missing stage is
    filled in. Callers raise the result `from` the original exception.
    """
    if isinstance(exc, Error):
        if exc.stage is None:
            exc.stage = stage
        return exc
    message = getattr(exc, "message", None) or str(exc)
    return error_class_for(exc)(message, stage=stage)
