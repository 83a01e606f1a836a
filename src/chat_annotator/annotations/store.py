from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from pathlib import Path


class SlotStore:
    """One opaque text slot per key, backed by a single sqlite file."""

    def __init__(self, db_path: str):
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._initialize_schema()

    def close(self) -> None:
        self._conn.close()

    def get(self, key: str) -> str | None:
        row = self._conn.execute(
            "SELECT value_json FROM slots WHERE key = ? LIMIT 1",
            (key,),
        ).fetchone()
        if row is None:
            return None
        return str(row["value_json"])

    def put(self, key: str, value: str) -> None:
        now = datetime.now(UTC).isoformat(timespec="seconds")
        self._conn.execute(
            """
            INSERT INTO slots (key, value_json, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value_json = excluded.value_json, updated_at = excluded.updated_at
            """,
            (key, value, now),
        )
        self._conn.commit()

    def delete(self, key: str) -> None:
        self._conn.execute("DELETE FROM slots WHERE key = ?", (key,))
        self._conn.commit()

    def keys(self) -> list[str]:
        rows = self._conn.execute("SELECT key FROM slots ORDER BY updated_at DESC, key ASC").fetchall()
        return [str(row["key"]) for row in rows]

    def _initialize_schema(self) -> None:
        self._conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS slots (
                key TEXT PRIMARY KEY,
                value_json TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            """
        )
        self._conn.commit()
