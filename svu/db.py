from __future__ import annotations

import logging
import os
import sqlite3
from datetime import datetime, timezone
from typing import Any

from .settings import settings


logger = logging.getLogger("svu")


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _resolve_db_path(db_path: str) -> str:
    """Return a file path usable by sqlite.

    If the configured path is a directory (e.g. a CI cache mount), the journal
    lives inside it as ``svu.db``.
    """
    p = os.path.abspath(db_path)
    if os.path.isdir(p):
        p = os.path.join(p, "svu.db")

    parent = os.path.dirname(p)
    if parent and not os.path.exists(parent):
        os.makedirs(parent, exist_ok=True)

    return p


SCHEMA = """
            CREATE TABLE IF NOT EXISTS events (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              ts TEXT NOT NULL,
              level TEXT NOT NULL,
              service_name TEXT,
              version TEXT,
              message TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_events_ts ON events(ts);
            """


def connect(db_path: str | None = None) -> sqlite3.Connection | None:
    """Open the event journal, or return None when journaling is disabled."""
    path = db_path or settings.db_path
    if not path:
        return None
    conn = sqlite3.connect(_resolve_db_path(path))
    conn.row_factory = sqlite3.Row
    conn.executescript(SCHEMA)
    return conn


def init_db(db_path: str | None = None) -> bool:
    """Create the journal if enabled. Returns whether journaling is on."""
    conn = connect(db_path)
    if conn is None:
        return False
    conn.close()
    return True


def log_event(
    level: str,
    message: str,
    service_name: str | None = None,
    version: str | None = None,
    db_path: str | None = None,
) -> None:
    level = level.upper()
    text = f"{service_name}: {message}" if service_name else message
    logger.log(logging.getLevelName(level), text)

    conn = connect(db_path)
    if conn is None:
        return
    with conn:
        conn.execute(
            "INSERT INTO events (ts, level, service_name, version, message) VALUES (?, ?, ?, ?, ?)",
            (utc_now(), level, service_name, version, message),
        )
    conn.close()


def latest_events(limit: int = 100, db_path: str | None = None) -> list[dict[str, Any]]:
    conn = connect(db_path)
    if conn is None:
        return []
    with conn:
        rows = conn.execute("SELECT * FROM events ORDER BY id DESC LIMIT ?", (limit,)).fetchall()
    conn.close()
    return [dict(r) for r in rows]
