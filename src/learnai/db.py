"""Key-value store initialization and connection management."""
import sqlite3
from pathlib import Path

from learnai.config import DEFAULT_DB_PATH

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating the key-value table if it doesn't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()


def get_value(db_path: str, key: str, default: str | None = None) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else default


def set_value(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO kv_store (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )
    conn.commit()
    conn.close()


def delete_value(db_path: str, key: str) -> None:
    conn = get_connection(db_path)
    conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
    conn.commit()
    conn.close()


def dump_all(db_path: str) -> dict[str, str]:
    """Every key and its raw value, used to compare store contents."""
    conn = get_connection(db_path)
    rows = conn.execute("SELECT key, value FROM kv_store").fetchall()
    conn.close()
    return {r["key"]: r["value"] for r in rows}
