"""
Key-value storage backend (SQLite).

One table, string primary key, value is serialized JSON text. Used by the
HTTP service as its database and by the client as its local cache.
"""
import sqlite3
import json
import logging
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


def _connect(db_path: str) -> sqlite3.Connection:
    """Open a connection in WAL mode."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")
    return conn


class KVStore:
    """SQLite-backed store of JSON values under string keys."""

    def __init__(self, db_path: str = None):
        """Initialize store and create the table if needed."""
        if db_path is None:
            db_path = str(Path.home() / ".local" / "share" / "simplo-kanban" / "kanban.db")
        self.db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _init_schema(self):
        with _connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
            """)
            conn.commit()

    def get(self, key: str, default: Any = None) -> Any:
        """Return the decoded value for key, or default if absent. Raises on DB errors."""
        with _connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
        if row is None or row["value"] is None:
            return default
        return json.loads(row["value"])

    def put(self, key: str, value: Any) -> None:
        """Upsert a JSON-serializable value. Raises on DB or encoding errors."""
        text = json.dumps(value)
        with _connect(self.db_path) as conn:
            conn.execute("""
                INSERT INTO kv_store (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
            """, (key, text))
            conn.commit()

    def delete(self, key: str) -> None:
        """Remove a key. Deleting an absent key is not an error."""
        with _connect(self.db_path) as conn:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()

    # ── Non-raising variants (local cache use) ──────────────────────────────

    def load(self, key: str) -> Optional[Any]:
        """Like get(), but logs and returns None on failure."""
        try:
            return self.get(key)
        except Exception as e:
            logger.error(f"Failed to load {key} from local cache: {e}")
            return None

    def store(self, key: str, value: Any) -> bool:
        """Like put(), but logs and returns False on failure."""
        try:
            self.put(key, value)
            return True
        except Exception as e:
            logger.error(f"Failed to save {key} to local cache: {e}")
            return False
