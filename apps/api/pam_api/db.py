"""SQLite helpers."""
from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Sequence, Set
from uuid import uuid4

from .config import CONFIG

_DB_PATH = CONFIG.resolved_database_path
_DB_PATH.parent.mkdir(parents=True, exist_ok=True)


def _ensure_column(conn: sqlite3.Connection, table: str, column: str, ddl: str) -> None:
    cursor = conn.execute(f"PRAGMA table_info({table})")
    existing = {row[1] for row in cursor.fetchall()}
    if column not in existing:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}")


def initialize_db() -> None:
    with sqlite3.connect(_DB_PATH) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS activity_events (
                id TEXT PRIMARY KEY,
                child_id TEXT NOT NULL,
                activity_type TEXT NOT NULL,
                activity_subtype TEXT,
                started_at TEXT NOT NULL,
                ended_at TEXT,
                duration_minutes REAL,
                amount_ml REAL,
                created_at TEXT NOT NULL
            );
            """
        )
        _ensure_column(conn, "activity_events", "notes", "TEXT")
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_activity_events_child_start
            ON activity_events (child_id, started_at);
            """
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS checklist_items (
                id TEXT PRIMARY KEY,
                child_id TEXT NOT NULL,
                title TEXT NOT NULL,
                description TEXT,
                due_date TEXT NOT NULL,
                category TEXT NOT NULL,
                priority TEXT NOT NULL,
                is_completed INTEGER DEFAULT 0,
                completed_at TEXT,
                metadata_json TEXT,
                created_at TEXT NOT NULL
            );
            """
        )
        conn.commit()


@contextmanager
def get_connection() -> Iterator[sqlite3.Connection]:
    conn = sqlite3.connect(_DB_PATH)
    try:
        yield conn
    finally:
        conn.close()


def _row_to_dict(row: sqlite3.Row) -> Dict[str, Any]:
    return {key: row[key] for key in row.keys()}


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def insert_activity_event(payload: Dict[str, Any]) -> Dict[str, Any]:
    row = dict(payload)
    row["id"] = row.get("id") or str(uuid4())
    with get_connection() as conn:
        conn.execute(
            """
            INSERT INTO activity_events (
                id,
                child_id,
                activity_type,
                activity_subtype,
                started_at,
                ended_at,
                duration_minutes,
                amount_ml,
                notes,
                created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                row["id"],
                row["child_id"],
                row["activity_type"],
                row.get("activity_subtype"),
                row["started_at"],
                row.get("ended_at"),
                row.get("duration_minutes"),
                row.get("amount_ml"),
                row.get("notes"),
                _utcnow(),
            ),
        )
        conn.commit()
    return row


def list_activity_events(
    child_id: str,
    activity_type: Optional[str],
    start: str,
    end: str,
) -> List[Dict[str, Any]]:
    with get_connection() as conn:
        conn.row_factory = sqlite3.Row
        query = """
            SELECT *
            FROM activity_events
            WHERE child_id = ?
              AND started_at >= ?
              AND started_at <= ?
        """
        params: list = [child_id, start, end]
        if activity_type is not None:
            query += "\n              AND activity_type = ?"
            params.append(activity_type)
        query += "\n            ORDER BY started_at ASC"
        rows = conn.execute(query, tuple(params)).fetchall()
    return [_row_to_dict(row) for row in rows]


def list_checklist_ids(child_id: str) -> Set[str]:
    with get_connection() as conn:
        rows = conn.execute(
            "SELECT id FROM checklist_items WHERE child_id = ?",
            (child_id,),
        ).fetchall()
    return {row[0] for row in rows}


def insert_checklist_rows(rows: Sequence[Dict[str, Any]]) -> None:
    """Insert all rows in one transaction; an id collision rolls back the batch."""
    now = _utcnow()
    with get_connection() as conn:
        try:
            conn.executemany(
                """
                INSERT INTO checklist_items (
                    id,
                    child_id,
                    title,
                    description,
                    due_date,
                    category,
                    priority,
                    is_completed,
                    completed_at,
                    metadata_json,
                    created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        row["id"],
                        row["child_id"],
                        row["title"],
                        row.get("description"),
                        row["due_date"],
                        row["category"],
                        row["priority"],
                        1 if row.get("is_completed") else 0,
                        row.get("completed_at"),
                        json.dumps(row.get("metadata") or {}),
                        now,
                    )
                    for row in rows
                ],
            )
            conn.commit()
        except sqlite3.IntegrityError:
            conn.rollback()
            raise


def _checklist_row(row: sqlite3.Row) -> Dict[str, Any]:
    data = _row_to_dict(row)
    data["is_completed"] = bool(data.get("is_completed"))
    data["metadata"] = json.loads(data.pop("metadata_json") or "{}")
    return data


def list_checklist_rows(child_id: str) -> List[Dict[str, Any]]:
    with get_connection() as conn:
        conn.row_factory = sqlite3.Row
        rows = conn.execute(
            "SELECT * FROM checklist_items WHERE child_id = ? ORDER BY due_date ASC, id ASC",
            (child_id,),
        ).fetchall()
    return [_checklist_row(row) for row in rows]


def update_checklist_completion(item_id: str, completed: bool, completed_at: Optional[str]) -> Dict[str, Any]:
    with get_connection() as conn:
        conn.row_factory = sqlite3.Row
        cursor = conn.execute(
            "UPDATE checklist_items SET is_completed = ?, completed_at = ? WHERE id = ?",
            (1 if completed else 0, completed_at, item_id),
        )
        if cursor.rowcount == 0:
            raise ValueError(f"Checklist item {item_id} not found")
        conn.commit()
        row = conn.execute("SELECT * FROM checklist_items WHERE id = ?", (item_id,)).fetchone()
    return _checklist_row(row)


def delete_checklist_rows(child_id: str) -> int:
    with get_connection() as conn:
        cursor = conn.execute("DELETE FROM checklist_items WHERE child_id = ?", (child_id,))
        conn.commit()
        return cursor.rowcount
