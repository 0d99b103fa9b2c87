"""SQLite key/value store for the ledger record.

Keeps the serialized ledger as one row of a ``kv_store`` table, keyed by
storage key, the same shape as browser local storage.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from ..domain.models import LedgerState
from .store import DEFAULT_STORAGE_KEY, decode_state, encode_state

logger = logging.getLogger(__name__)


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""


class SqliteStateStore:
    """State store persisting the ledger record in SQLite.

    Example:
        with SqliteStateStore("data/ledger.db") as store:
            state = store.load()
            store.save(state)
    """

    def __init__(
        self,
        db_path: str | Path | None = None,
        storage_key: str = DEFAULT_STORAGE_KEY,
    ) -> None:
        """Initialize store with database connection.

        Args:
            db_path: Path to SQLite database file. Defaults to data/ledger.db
            storage_key: Key the ledger record lives under
        """
        if db_path is None:
            db_path = Path.cwd() / "data" / "ledger.db"
        else:
            db_path = Path(db_path)

        # Ensure directory exists
        db_path.parent.mkdir(parents=True, exist_ok=True)

        self.db_path = str(db_path)
        self.storage_key = storage_key
        self._conn: sqlite3.Connection | None = None
        self._ensure_connection()
        self._ensure_schema()

    def _ensure_connection(self) -> None:
        """Ensure database connection is established."""
        if self._conn is None:
            # Route handlers run in a threadpool
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode = WAL")
            self._conn.execute("PRAGMA synchronous = NORMAL")
            # Wait up to 5 seconds if database is locked
            self._conn.execute("PRAGMA busy_timeout = 5000")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        conn.executescript(SCHEMA_SQL)
        conn.commit()

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection, ensuring it's established."""
        self._ensure_connection()
        assert self._conn is not None
        return self._conn

    def ping(self) -> None:
        """Run a trivial query; raises if the database is unusable."""
        self._get_conn().execute("SELECT 1")

    def load(self) -> LedgerState:
        try:
            row = self._get_conn().execute(
                "SELECT value FROM kv_store WHERE key = ?",
                (self.storage_key,),
            ).fetchone()
        except sqlite3.Error as e:
            logger.warning(f"Could not read ledger record {self.storage_key!r}: {e}")
            return LedgerState()

        return decode_state(row["value"] if row else None, self.storage_key)

    def save(self, state: LedgerState) -> None:
        conn = self._get_conn()
        conn.execute(
            """
            INSERT INTO kv_store (key, value)
            VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = datetime('now')
            """,
            (self.storage_key, encode_state(state)),
        )
        conn.commit()

    def put_raw(self, value: str) -> None:
        """Overwrite the stored record verbatim."""
        conn = self._get_conn()
        conn.execute(
            "INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)",
            (self.storage_key, value),
        )
        conn.commit()

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> SqliteStateStore:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - closes connection."""
        self.close()
