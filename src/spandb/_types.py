"""Internal types shared by the classifier and the execution path."""

from __future__ import annotations

import enum


class StatementType(enum.Enum):
    DDL = "ddl"      # schema change, routed to update_ddl
    DML = "dml"      # INSERT/UPDATE/DELETE, routed to a read/write transaction
    QUERY = "query"  # everything else, streamed from a snapshot

    @property
    def is_ddl(self) -> bool:
        return self is StatementType.DDL
