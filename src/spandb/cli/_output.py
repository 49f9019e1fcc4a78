"""Output formatting for CLI commands."""

from __future__ import annotations

import json

from spandb.types import Column, Row


def format_rows(
    columns: list[Column],
    rows: list[Row],
    *,
    output_format: str = "text",
    duration_ms: float | None = None,
) -> str:
    names = [c.name for c in columns]
    if output_format == "json":
        data = {
            "columns": [{"name": c.name, "type": c.type_code} for c in columns],
            "rows": [row.as_dict() for row in rows],
            "row_count": len(rows),
            "duration_ms": duration_ms,
        }
        return json.dumps(data, indent=2, default=str)

    # Text format: simple tabular output.
    lines: list[str] = []
    if names:
        lines.append(" | ".join(names))
        lines.append("-+-".join("-" * max(len(n), 5) for n in names))
        for row in rows:
            lines.append(" | ".join("NULL" if v is None else str(v) for v in row))

    duration = f", {duration_ms:.0f}ms" if duration_ms is not None else ""
    lines.append(f"\n({len(rows)} rows{duration})")
    return "\n".join(lines)
