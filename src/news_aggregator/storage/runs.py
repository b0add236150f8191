"""Sync run ledger — one record per completed synchronization cycle."""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone

from news_aggregator.storage.connection import get_connection


def record_run(
    database_path: str,
    started_at: str,
    result: dict,
    error: str | None = None,
) -> None:
    """Insert a sync run record into the sync_runs table."""
    finished_at = datetime.now(timezone.utc).isoformat()
    status = "error" if error else "success"
    with get_connection(database_path) as conn:
        conn.execute(
            "INSERT INTO sync_runs "
            "(id, started_at, finished_at, status, result, error) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                str(uuid.uuid4()),
                started_at,
                finished_at,
                status,
                json.dumps(result),
                error,
            ),
        )


def list_runs(
    database_path: str, page: int = 1, per_page: int = 50
) -> tuple[list[dict], int]:
    """Return a paginated list of sync runs, newest first."""
    offset = (page - 1) * per_page

    with get_connection(database_path) as conn:
        total = conn.execute("SELECT COUNT(*) FROM sync_runs").fetchone()[0]
        rows = conn.execute(
            "SELECT id, started_at, finished_at, status, result, error "
            "FROM sync_runs ORDER BY started_at DESC LIMIT ? OFFSET ?",
            (per_page, offset),
        ).fetchall()

    runs = []
    for r in rows:
        runs.append({
            "id": r["id"],
            "started_at": r["started_at"],
            "finished_at": r["finished_at"],
            "status": r["status"],
            "result": json.loads(r["result"]),
            "error": r["error"],
        })

    return runs, total


def prune_runs(database_path: str, cutoff: datetime) -> int:
    """Delete sync runs started before ``cutoff``. Returns the count."""
    with get_connection(database_path) as conn:
        cursor = conn.execute(
            "DELETE FROM sync_runs WHERE started_at < ?",
            (cutoff.astimezone(timezone.utc).isoformat(),),
        )
        return cursor.rowcount
