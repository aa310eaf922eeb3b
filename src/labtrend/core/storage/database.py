"""SQLite access for the metric snapshot store.

The schema is a single key/value table holding one whole-collection
snapshot per key. Row-level reads and writes live here; serialization and
encryption of the payload belong to :mod:`labtrend.core.storage.metric_store`.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

_SCHEMA_V1 = """
-- One row per snapshot key; the value is overwritten wholesale on every save
CREATE TABLE IF NOT EXISTS snapshots (
    key        TEXT PRIMARY KEY,
    payload    TEXT NOT NULL,
    encrypted  INTEGER NOT NULL DEFAULT 0,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""

_UPSERT_SNAPSHOT = """
INSERT INTO snapshots (key, payload, encrypted, updated_at)
VALUES (?, ?, ?, ?)
ON CONFLICT(key) DO UPDATE SET
    payload = excluded.payload,
    encrypted = excluded.encrypted,
    updated_at = excluded.updated_at
"""


class DatabaseError(Exception):
    """Raised when database operations fail."""


@dataclass(frozen=True)
class SnapshotRow:
    key: str
    payload: str
    encrypted: bool
    updated_at: str


class SnapshotDatabase:
    """Owns the SQLite connection and the ``snapshots`` table.

    ``db_path`` may be ``":memory:"`` (tests) or a file path; ``~`` is
    expanded and missing parent directories are created.

    Usage::

        with SnapshotDatabase("~/.labtrend/metrics.db") as db:
            db.write_snapshot("health_metrics", "[]", encrypted=False)
            row = db.read_snapshot("health_metrics")
    """

    def __init__(self, db_path: str = ":memory:") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        """The open connection.

        Raises:
            DatabaseError: Before :meth:`initialize` or after :meth:`close`.
        """
        if self._conn is None:
            raise DatabaseError("Database not initialized. Call initialize() first.")
        return self._conn

    def initialize(self) -> None:
        """Open the connection and create the schema. Idempotent."""
        if self._conn is not None:
            return

        target = self._db_path
        if target != ":memory:":
            db_file = Path(target).expanduser()
            db_file.parent.mkdir(parents=True, exist_ok=True)
            target = str(db_file)

        conn = sqlite3.connect(target)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        self._conn = conn

        self._apply_schema()
        logger.info("Snapshot database initialized: %s", self._db_path)

    def _apply_schema(self) -> None:
        conn = self.connection
        conn.executescript(_SCHEMA_V1)
        applied = self.get_schema_version()
        if applied < SCHEMA_VERSION:
            with conn:
                conn.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
            logger.info("Schema updated from version %d to %d", applied, SCHEMA_VERSION)

    def get_schema_version(self) -> int:
        """Highest applied schema version, 0 for a fresh database."""
        (version,) = self.connection.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return version or 0

    def read_snapshot(self, key: str) -> SnapshotRow | None:
        """Return the stored row for ``key``, or None when nothing is stored.

        Raises:
            DatabaseError: If the database is closed or the query fails.
        """
        try:
            row = self.connection.execute(
                "SELECT key, payload, encrypted, updated_at FROM snapshots WHERE key = ?",
                (key,),
            ).fetchone()
        except sqlite3.Error as exc:
            raise DatabaseError(f"Could not read snapshot {key!r}: {exc}") from exc
        if row is None:
            return None
        return SnapshotRow(
            key=row["key"],
            payload=row["payload"],
            encrypted=bool(row["encrypted"]),
            updated_at=row["updated_at"],
        )

    def write_snapshot(self, key: str, payload: str, *, encrypted: bool) -> None:
        """Replace the row for ``key`` in one committed transaction.

        Raises:
            DatabaseError: If the database is closed or the write fails.
        """
        conn = self.connection
        try:
            with conn:
                conn.execute(
                    _UPSERT_SNAPSHOT,
                    (key, payload, int(encrypted), datetime.now(timezone.utc).isoformat()),
                )
        except sqlite3.Error as exc:
            raise DatabaseError(f"Could not write snapshot {key!r}: {exc}") from exc

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.info("Snapshot database closed")

    def __enter__(self) -> SnapshotDatabase:
        self.initialize()
        return self

    def __exit__(self, *args) -> None:
        self.close()
