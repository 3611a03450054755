# src/storage/sqlite_user_store.py — v1
"""SQLite-backed user ledger (USER_DB_PATH).

Uses stdlib sqlite3. Usage increments are a single UPDATE statement, so
concurrent requests never lose an increment.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from snowgoose.core.models import UserRecord
from snowgoose.storage.base_user_store import BaseUserStore, UserNotFoundError

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY,
    username TEXT NOT NULL UNIQUE,
    email TEXT,
    period_usage REAL NOT NULL DEFAULT 0,
    total_usage REAL NOT NULL DEFAULT 0,
    usage_limit REAL,
    has_active_subscription INTEGER NOT NULL DEFAULT 0,
    has_unlimited_credits INTEGER NOT NULL DEFAULT 0,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""

_COLUMNS = (
    "id, username, email, period_usage, total_usage, usage_limit, "
    "has_active_subscription, has_unlimited_credits"
)


class SqliteUserStore(BaseUserStore):
    """User ledger persisted in a SQLite database file."""

    def __init__(self, db_path: Path | str) -> None:
        path = str(db_path)
        if path != ":memory:":
            resolved = Path(db_path).expanduser()
            resolved.parent.mkdir(parents=True, exist_ok=True)
            path = str(resolved)
        self._conn = sqlite3.connect(path)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    def close(self) -> None:
        self._conn.close()

    async def create_user(self, user: UserRecord) -> UserRecord:
        """Insert a user row (id is taken from the record)."""
        self._conn.execute(
            f"INSERT INTO users ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                user.id,
                user.username,
                user.email,
                user.period_usage,
                user.total_usage,
                user.usage_limit,
                int(user.has_active_subscription),
                int(user.has_unlimited_credits),
            ),
        )
        self._conn.commit()
        return user

    async def find_by_id(self, user_id: int) -> UserRecord | None:
        row = self._conn.execute(
            f"SELECT {_COLUMNS} FROM users WHERE id = ?", (user_id,)
        ).fetchone()
        return _row_to_user(row) if row is not None else None

    async def increment_usage(self, user_id: int, amount: float) -> UserRecord:
        cursor = self._conn.execute(
            """UPDATE users
               SET period_usage = period_usage + ?, total_usage = total_usage + ?
               WHERE id = ?""",
            (amount, amount, user_id),
        )
        self._conn.commit()
        if cursor.rowcount == 0:
            raise UserNotFoundError(f"User with ID {user_id} not found.")
        user = await self.find_by_id(user_id)
        assert user is not None
        return user

    async def reset_period_usage(self, user_id: int) -> UserRecord:
        cursor = self._conn.execute(
            "UPDATE users SET period_usage = 0 WHERE id = ?", (user_id,)
        )
        self._conn.commit()
        if cursor.rowcount == 0:
            raise UserNotFoundError(f"User with ID {user_id} not found.")
        logger.info("Reset period usage for user %s", user_id)
        user = await self.find_by_id(user_id)
        assert user is not None
        return user


def _row_to_user(row: tuple) -> UserRecord:
    return UserRecord(
        id=row[0],
        username=row[1],
        email=row[2],
        period_usage=row[3],
        total_usage=row[4],
        usage_limit=row[5],
        has_active_subscription=bool(row[6]),
        has_unlimited_credits=bool(row[7]),
    )
