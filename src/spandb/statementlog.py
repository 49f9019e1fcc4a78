"""Statement logging: daily JSONL files, with automatic retention cleanup."""

from __future__ import annotations

import contextlib
import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

DEFAULT_RETENTION_DAYS = 30


def _today_file(log_dir: Path) -> Path:
    today = datetime.now(UTC).strftime("%Y-%m-%d")
    return log_dir / f"{today}.jsonl"


def log_statement(
    log_dir: Path,
    *,
    sql: str,
    kind: str,
    database: str | None = None,
    row_count: int | None = None,
    duration_ms: float | None = None,
    error: str | None = None,
) -> None:
    """Append a statement log entry to today's JSONL file."""
    entry = {
        "ts": datetime.now(UTC).isoformat(),
        "database": database,
        "kind": kind,
        "sql": sql,
        "row_count": row_count,
        "duration_ms": duration_ms,
        "error": error,
    }

    log_file = _today_file(log_dir)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    with open(log_file, "a") as f:
        f.write(json.dumps(entry, default=str) + "\n")


def cleanup_old_logs(log_dir: Path, *, retention_days: int = DEFAULT_RETENTION_DAYS) -> int:
    """Delete log files older than retention_days. Returns count of deleted files."""
    cutoff = datetime.now(UTC) - timedelta(days=retention_days)
    deleted = 0

    if not log_dir.exists():
        return 0

    for log_file in log_dir.glob("*.jsonl"):
        # Parse date from filename (YYYY-MM-DD.jsonl)
        try:
            file_date = datetime.strptime(log_file.stem, "%Y-%m-%d").replace(tzinfo=UTC)
        except ValueError:
            continue
        if file_date < cutoff:
            log_file.unlink()
            deleted += 1

    # Remove the directory if nothing is left in it
    with contextlib.suppress(OSError):
        log_dir.rmdir()

    return deleted
