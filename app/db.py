import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from cryptography.fernet import Fernet, InvalidToken

from app.security import account_ref

DB_PATH = Path("data/sugarmama.db")

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Raised when a read or write against the local store fails."""


def get_connection(db_path: Path = DB_PATH) -> sqlite3.Connection:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def _transaction(db_path: Path) -> Iterator[sqlite3.Connection]:
    try:
        conn = get_connection(db_path)
    except (sqlite3.Error, OSError) as exc:
        raise PersistenceError(f"Cannot open database at {db_path}") from exc
    try:
        with conn:
            yield conn
    except sqlite3.Error as exc:
        raise PersistenceError(str(exc)) from exc
    finally:
        conn.close()


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def init_db(db_path: Path = DB_PATH) -> None:
    with _transaction(db_path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                email TEXT PRIMARY KEY,
                password_salt TEXT NOT NULL,
                password_hash TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS measurements (
                id TEXT PRIMARY KEY,
                owner TEXT NOT NULL,
                recorded_at TEXT NOT NULL,
                payload_encrypted TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_measurements_owner ON measurements(owner, recorded_at)")


def _scoped_key(key: str, owner: str | None) -> str:
    if owner:
        return f"user:{owner}:{key}"
    return key


def get_setting(key: str, default: str | None = None, owner: str | None = None, db_path: Path = DB_PATH) -> str | None:
    scoped = _scoped_key(key, owner)
    with _transaction(db_path) as conn:
        row = conn.execute("SELECT value FROM settings WHERE key = ?", (scoped,)).fetchone()
    if row is None:
        return default
    return row["value"]


def set_setting(key: str, value: str, owner: str | None = None, db_path: Path = DB_PATH) -> None:
    scoped = _scoped_key(key, owner)
    with _transaction(db_path) as conn:
        conn.execute(
            """
            INSERT INTO settings(key, value) VALUES(?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value
            """,
            (scoped, value),
        )


def get_user(email: str, db_path: Path = DB_PATH) -> dict | None:
    with _transaction(db_path) as conn:
        row = conn.execute(
            "SELECT email, password_salt, password_hash, created_at FROM users WHERE email = ?",
            (email,),
        ).fetchone()
    return dict(row) if row else None


def create_user(email: str, password_salt: str, password_hash: str, db_path: Path = DB_PATH) -> None:
    with _transaction(db_path) as conn:
        conn.execute(
            "INSERT INTO users(email, password_salt, password_hash, created_at) VALUES (?, ?, ?, ?)",
            (email, password_salt, password_hash, _utcnow()),
        )
    logger.info("Created account %s", account_ref(email))


def _encrypt(payload: dict, fernet: Fernet) -> str:
    return fernet.encrypt(json.dumps(payload, ensure_ascii=False).encode("utf-8")).decode("utf-8")


def insert_measurement(
    owner: str,
    measurement_id: str,
    recorded_at: str,
    payload: dict,
    fernet: Fernet,
    db_path: Path = DB_PATH,
) -> None:
    now = _utcnow()
    with _transaction(db_path) as conn:
        conn.execute(
            """
            INSERT INTO measurements(id, owner, recorded_at, payload_encrypted, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (measurement_id, owner, recorded_at, _encrypt(payload, fernet), now, now),
        )


def update_measurement(
    owner: str,
    measurement_id: str,
    recorded_at: str,
    payload: dict,
    fernet: Fernet,
    db_path: Path = DB_PATH,
) -> None:
    with _transaction(db_path) as conn:
        cursor = conn.execute(
            """
            UPDATE measurements
            SET recorded_at = ?, payload_encrypted = ?, updated_at = ?
            WHERE id = ? AND owner = ?
            """,
            (recorded_at, _encrypt(payload, fernet), _utcnow(), measurement_id, owner),
        )
        if cursor.rowcount == 0:
            raise PersistenceError(f"Measurement {measurement_id} not found")


def delete_measurement(owner: str, measurement_id: str, db_path: Path = DB_PATH) -> None:
    with _transaction(db_path) as conn:
        conn.execute("DELETE FROM measurements WHERE id = ? AND owner = ?", (measurement_id, owner))


def load_measurements(owner: str, fernet: Fernet, db_path: Path = DB_PATH) -> list[dict[str, Any]]:
    """Decrypted rows for ``owner``, newest first by stored timestamp string.

    A row that does not decrypt with ``fernet`` (changed pepper, corrupted payload)
    fails the whole load with ``PersistenceError``.
    """
    query = """
        SELECT id, recorded_at, payload_encrypted FROM measurements
        WHERE owner = ? ORDER BY recorded_at DESC
    """
    rows: list[dict[str, Any]] = []
    with _transaction(db_path) as conn:
        for row in conn.execute(query, (owner,)).fetchall():
            try:
                decrypted = fernet.decrypt(row["payload_encrypted"].encode("utf-8"))
                payload = json.loads(decrypted.decode("utf-8"))
            except (InvalidToken, ValueError) as exc:
                raise PersistenceError(f"Measurement {row['id']} cannot be decrypted") from exc
            rows.append({"id": row["id"], "recorded_at": row["recorded_at"], **payload})
    return rows
