"""
SQLite database integration and simple migration system.

The :class:`Database` facade owns the connection lifecycle: every
operation opens a short-lived connection, runs parameterized
statements and closes it again.  Migrations are applied on
application start (:meth:`Database.init`); applied versions are
recorded in the ``migrations`` table and new ones run in order.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from fastapi import Request

logger = logging.getLogger(__name__)


MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: Initial schema
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            password TEXT NOT NULL,
            phone TEXT,
            role TEXT NOT NULL DEFAULT 'client',
            is_active INTEGER NOT NULL DEFAULT 1,
            address TEXT,
            profile_image TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            CHECK (role IN ('client', 'lawyer', 'admin'))
        );

        CREATE TABLE IF NOT EXISTS lawyers (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL UNIQUE,
            specialization TEXT NOT NULL,
            bar_council_number TEXT,
            experience INTEGER DEFAULT 0,
            education TEXT,
            about TEXT,
            consultation_fee REAL NOT NULL DEFAULT 0,
            languages TEXT,
            location TEXT,
            practice_areas TEXT,
            rating REAL NOT NULL DEFAULT 0,
            total_reviews INTEGER NOT NULL DEFAULT 0,
            total_bookings INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(user_id) REFERENCES users(id)
        );

        CREATE TABLE IF NOT EXISTS availability (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            lawyer_id INTEGER NOT NULL,
            day_of_week TEXT NOT NULL,
            time_slot TEXT NOT NULL,
            is_available INTEGER NOT NULL DEFAULT 1,
            FOREIGN KEY(lawyer_id) REFERENCES lawyers(id)
        );

        CREATE TABLE IF NOT EXISTS bookings (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            client_id INTEGER NOT NULL,
            lawyer_id INTEGER NOT NULL,
            booking_date TEXT NOT NULL,
            time_slot TEXT NOT NULL,
            date_time TEXT,
            case_type TEXT,
            description TEXT,
            urgency TEXT NOT NULL DEFAULT 'normal',
            consultation_fee REAL,
            status TEXT NOT NULL DEFAULT 'pending',
            cancellation_reason TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(client_id) REFERENCES users(id),
            FOREIGN KEY(lawyer_id) REFERENCES lawyers(id),
            CHECK (status IN ('pending', 'confirmed', 'completed', 'cancelled'))
        );

        CREATE TABLE IF NOT EXISTS reviews (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            booking_id INTEGER NOT NULL UNIQUE,
            client_id INTEGER NOT NULL,
            lawyer_id INTEGER NOT NULL,
            rating INTEGER NOT NULL,
            title TEXT,
            comment TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(booking_id) REFERENCES bookings(id),
            FOREIGN KEY(client_id) REFERENCES users(id),
            FOREIGN KEY(lawyer_id) REFERENCES lawyers(id),
            CHECK (rating BETWEEN 1 AND 5)
        );

        CREATE TABLE IF NOT EXISTS legal_info (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            category TEXT NOT NULL,
            summary TEXT,
            content TEXT NOT NULL,
            tags TEXT,
            read_time INTEGER,
            author_id INTEGER,
            views INTEGER NOT NULL DEFAULT 0,
            is_published INTEGER NOT NULL DEFAULT 1,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(author_id) REFERENCES users(id)
        );

        CREATE TABLE IF NOT EXISTS password_resets (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL,
            token TEXT NOT NULL UNIQUE,
            expires_at TIMESTAMP NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );
        """,
    ),
    # Migration 2: indices
    (
        2,
        """
        -- At most one active (non-cancelled) booking per lawyer, date and slot.
        CREATE UNIQUE INDEX IF NOT EXISTS uq_bookings_active_slot
            ON bookings(lawyer_id, booking_date, time_slot)
            WHERE status != 'cancelled';
        CREATE INDEX IF NOT EXISTS idx_bookings_client_id ON bookings(client_id);
        CREATE INDEX IF NOT EXISTS idx_reviews_lawyer_id ON reviews(lawyer_id);
        CREATE INDEX IF NOT EXISTS idx_reviews_client_id ON reviews(client_id);
        CREATE INDEX IF NOT EXISTS idx_availability_lawyer_id ON availability(lawyer_id);
        CREATE INDEX IF NOT EXISTS idx_legal_info_category ON legal_info(category);
        CREATE INDEX IF NOT EXISTS idx_password_resets_token ON password_resets(token);
        """,
    ),
]


def resolve_database_path(db_url: str) -> str:
    """Compute the path to the SQLite database file.

    Absolute paths (and the special ``:memory:`` name) are used as
    they are; relative paths are resolved against the project root.
    """
    if db_url == ":memory:" or os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent.parent
    return str((base_dir / db_url).resolve())


class Database:
    """Query-execution facade over a SQLite database file."""

    def __init__(self, url: str) -> None:
        self.path = resolve_database_path(url)

    def connect(self) -> sqlite3.Connection:
        """Create and return a new SQLite connection.

        Rows are returned as ``sqlite3.Row`` so columns can be accessed
        by name.  Foreign key enforcement is switched on per connection
        because SQLite leaves it disabled by default.
        """
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def cursor(self) -> Iterator[sqlite3.Cursor]:
        """Yield a cursor; commit on success, roll back on error, always close."""
        conn = self.connect()
        try:
            yield conn.cursor()
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init(self) -> None:
        """Initialise the database and apply pending migrations."""
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


def get_db(request: Request) -> Database:
    """Dependency returning the application's :class:`Database`."""
    return request.app.state.db
