"""Durable key/value storage for the device identity."""

from __future__ import annotations

from contextlib import closing
import logging
from pathlib import Path
import sqlite3

from .const import IDENTITY_KEY

_LOGGER = logging.getLogger(__name__)

STATE_TABLE = "client_state"


def connect(db_path: str | Path) -> sqlite3.Connection:
    """
    Connect to the SQLite database, creating parent directories and the table.
    """
    db_file = Path(db_path)
    if not db_file.is_absolute():
        db_file = Path.cwd() / db_file
    db_file.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_file)
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA busy_timeout=5000;")
    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS {STATE_TABLE} (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
        """
    )
    return conn


def get_value(conn: sqlite3.Connection, key: str) -> str | None:
    row = conn.execute(
        f"SELECT value FROM {STATE_TABLE} WHERE key = ?",
        (key,),
    ).fetchone()
    return row[0] if row else None


def set_value(conn: sqlite3.Connection, key: str, value: str) -> None:
    conn.execute(
        f"""
        INSERT INTO {STATE_TABLE} (key, value)
        VALUES (?, ?)
        ON CONFLICT(key) DO UPDATE SET
          value=excluded.value
        """,
        (key, value),
    )
    conn.commit()


class IdentityStore:
    """Persist the device identity across restarts."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = db_path

    def load(self) -> str | None:
        """Return the stored identity, if any."""
        with closing(connect(self.db_path)) as conn:
            return get_value(conn, IDENTITY_KEY)

    def save(self, identity: str) -> None:
        """Store the identity, replacing any previous one."""
        with closing(connect(self.db_path)) as conn:
            set_value(conn, IDENTITY_KEY, identity)
        _LOGGER.debug("Stored device identity in %s", self.db_path)


class MemoryIdentityStore:
    """Identity store kept in memory, used when no database is configured."""

    def __init__(self, identity: str | None = None) -> None:
        self._identity = identity

    def load(self) -> str | None:
        """Return the stored identity, if any."""
        return self._identity

    def save(self, identity: str) -> None:
        """Store the identity."""
        self._identity = identity
