from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

from .runtime import BatchSummary, utc_now


def _resolve_db_path(db_path: str) -> str:
    """Return a file path usable by sqlite.

    If the configured path is a directory (a bind-mounted path that did not
    exist is created as a directory by Docker), the DB file is placed inside it.
    """
    p = os.path.abspath(db_path)

    if os.path.isdir(p):
        p = os.path.join(p, "dcu.db")

    parent = os.path.dirname(p)
    if parent and not os.path.exists(parent):
        os.makedirs(parent, exist_ok=True)

    return p


@dataclass(frozen=True)
class RunRow:
    id: int
    started_at: str
    finished_at: str
    total: int
    success: int
    failed: int
    updated: str


class Journal:
    """SQLite journal of report events and batch summaries."""

    def __init__(self, db_path: str) -> None:
        self.path = _resolve_db_path(db_path)
        self.init_db()

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create tables if they do not exist."""
        with self.connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS events (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  ts TEXT NOT NULL,
                  level TEXT NOT NULL,
                  container TEXT,
                  message TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS runs (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  started_at TEXT NOT NULL,
                  finished_at TEXT NOT NULL,
                  total INTEGER NOT NULL,
                  success INTEGER NOT NULL,
                  failed INTEGER NOT NULL,
                  updated TEXT NOT NULL -- comma separated container names
                );

                CREATE INDEX IF NOT EXISTS idx_events_ts ON events(ts);
                """
            )

    def log_event(self, level: str, message: str, container: str | None = None) -> None:
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO events (ts, level, container, message) VALUES (?, ?, ?, ?)",
                (utc_now(), level.upper(), container, message),
            )

    def record_run(self, summary: BatchSummary) -> RunRow:
        with self.connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO runs (started_at, finished_at, total, success, failed, updated)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    summary.started_at,
                    utc_now(),
                    summary.total,
                    summary.success,
                    summary.failed,
                    ",".join(summary.updated),
                ),
            )
            row = conn.execute("SELECT * FROM runs WHERE id=?", (cur.lastrowid,)).fetchone()
            return RunRow(**dict(row))

    def latest_events(self, limit: int = 100) -> list[dict[str, Any]]:
        with self.connect() as conn:
            rows = conn.execute("SELECT * FROM events ORDER BY id DESC LIMIT ?", (limit,)).fetchall()
            return [dict(r) for r in rows]

    def latest_runs(self, limit: int = 10) -> list[RunRow]:
        with self.connect() as conn:
            rows = conn.execute("SELECT * FROM runs ORDER BY id DESC LIMIT ?", (limit,)).fetchall()
            return [RunRow(**dict(r)) for r in rows]
