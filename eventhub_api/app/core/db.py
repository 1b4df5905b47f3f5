"""
SQLite storage handle and simple migration system.

A ``Database`` object owns the location of the SQLite file and hands out
connections, cursors and write transactions.  One instance is created
per application (see ``main.create_app``) and passed explicitly to every
service; nothing in the code base opens the database behind a
module-level global.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .config import Settings


logger = logging.getLogger(__name__)


MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: Initial schema
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            first_name TEXT NOT NULL,
            last_name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            password TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS events (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            description TEXT NOT NULL,
            date TIMESTAMP NOT NULL,
            location TEXT,
            is_free INTEGER NOT NULL DEFAULT 1,
            price REAL,
            owner_id INTEGER NOT NULL,
            image_url TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(owner_id) REFERENCES users(id)
        );

        -- The composite primary key is the only guard against duplicate
        -- registrations; both the direct and the webhook path rely on it.
        CREATE TABLE IF NOT EXISTS registrations (
            user_id INTEGER NOT NULL,
            event_id INTEGER NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            PRIMARY KEY (user_id, event_id),
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE,
            FOREIGN KEY(event_id) REFERENCES events(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS comments (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            content TEXT NOT NULL,
            user_id INTEGER NOT NULL,
            event_id INTEGER NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE,
            FOREIGN KEY(event_id) REFERENCES events(id) ON DELETE CASCADE
        );
        """,
    ),
    # Migration 2: indices for the common lookups
    (
        2,
        """
        CREATE INDEX IF NOT EXISTS idx_events_date ON events(date);
        CREATE INDEX IF NOT EXISTS idx_events_owner_id ON events(owner_id);
        CREATE INDEX IF NOT EXISTS idx_registrations_event_id ON registrations(event_id);
        CREATE INDEX IF NOT EXISTS idx_comments_event_id ON comments(event_id);
        """,
    ),
]


def get_database_path(database_url: str) -> str:
    """Compute the path to the SQLite database file.

    Absolute paths are used as is; anything else is resolved relative
    to the project root.
    """
    if os.path.isabs(database_url):
        return database_url
    base_dir = Path(__file__).resolve().parent.parent.parent.parent
    return str((base_dir / database_url).resolve())


def _is_in_memory(path: str) -> bool:
    return ":memory:" in path or "mode=memory" in path


def is_unique_violation(exc: sqlite3.IntegrityError) -> bool:
    """Return True if ``exc`` was raised by a UNIQUE or PRIMARY KEY constraint."""
    name = getattr(exc, "sqlite_errorname", "")
    if name in ("SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY"):
        return True
    return str(exc).startswith("UNIQUE constraint failed")


def is_foreign_key_violation(exc: sqlite3.IntegrityError) -> bool:
    """Return True if ``exc`` was raised by a FOREIGN KEY constraint."""
    if getattr(exc, "sqlite_errorname", "") == "SQLITE_CONSTRAINT_FOREIGNKEY":
        return True
    return "FOREIGN KEY constraint failed" in str(exc)


class Database:
    """Explicit handle on the SQLite database.

    Each call to ``connect`` returns a fresh connection, so a single
    ``Database`` can be shared by concurrent requests.  Writers should go
    through ``transaction`` which takes the write lock up front
    (``BEGIN IMMEDIATE``); two writers then queue on the busy timeout
    instead of failing on a read-to-write lock upgrade.
    """

    def __init__(self, path: str, timeout: float = 30.0) -> None:
        if _is_in_memory(path):
            # Every call opens its own connection, and an in-memory
            # database lives only as long as the connection that made it.
            raise ValueError(
                f"An in-memory SQLite database cannot be used (got {path!r}); use a file path"
            )
        self.path = path
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(get_database_path(settings.database_url), timeout=settings.database_timeout)

    def connect(self) -> sqlite3.Connection:
        """Create and return a new SQLite connection.

        Rows are returned as ``sqlite3.Row`` so columns can be accessed
        by name.  Foreign keys are switched on for the lifetime of the
        connection; SQLite leaves them off by default.
        """
        conn = sqlite3.connect(self.path, timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def cursor(self) -> Iterator[sqlite3.Cursor]:
        """Yield a cursor and close the connection on exit."""
        conn = self.connect()
        try:
            yield conn.cursor()
            conn.commit()
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Cursor]:
        """Yield a cursor inside an immediate write transaction.

        Commits on normal exit and rolls back if the block raises.
        """
        conn = self.connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn.cursor()
            except BaseException:
                conn.rollback()
                raise
            conn.commit()
        finally:
            conn.close()

    def init(self) -> None:
        """Create the database if needed and apply pending migrations."""
        with self.cursor() as cursor:
            cursor.execute(
                "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
            )
            cursor.execute("SELECT MAX(version) as version FROM migrations")
            row = cursor.fetchone()
            current_version = row["version"] if row and row["version"] is not None else 0

            for version, sql in MIGRATIONS:
                if version > current_version:
                    logger.info("Applying migration %s to %s", version, self.path)
                    cursor.executescript(sql)
                    cursor.execute(
                        "INSERT INTO migrations (version) VALUES (?)", (version,)
                    )
                    current_version = version
