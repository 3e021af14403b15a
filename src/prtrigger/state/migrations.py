"""Schema migrations for the build queue database.

Migrations are applied incrementally from the database's recorded
version to ``CURRENT_SCHEMA_VERSION``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import sqlite3
    from collections.abc import Callable

    MigrationFunc = Callable[[sqlite3.Connection], None]

logger = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = 1


def _migration_v1(conn: sqlite3.Connection) -> None:
    """Initial schema: version tracking and the scheduled builds table."""
    cursor = conn.cursor()

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS schema_version (
            version INTEGER PRIMARY KEY,
            applied_at TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # No uniqueness on (job, delivery): the queue does not collapse builds
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS scheduled_builds (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            job_name TEXT NOT NULL,
            cause_type TEXT NOT NULL,
            short_description TEXT NOT NULL,
            cause TEXT NOT NULL,
            delivery_id TEXT,
            scheduled_at TEXT NOT NULL
        )
    """)

    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_scheduled_builds_job
        ON scheduled_builds(job_name)
    """)

    cursor.execute(
        "INSERT OR REPLACE INTO schema_version (version, applied_at) VALUES (?, datetime('now'))",
        (1,),
    )

    conn.commit()
    logger.info("Applied migration v1: initial schema")


MIGRATIONS: dict[int, MigrationFunc] = {
    1: _migration_v1,
}


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Get the current schema version, or 0 if not initialized."""
    cursor = conn.cursor()
    cursor.execute("""
        SELECT name FROM sqlite_master
        WHERE type='table' AND name='schema_version'
    """)
    if cursor.fetchone() is None:
        return 0

    cursor.execute("SELECT MAX(version) FROM schema_version")
    row = cursor.fetchone()
    return row[0] if row[0] is not None else 0


def migrate_database(conn: sqlite3.Connection) -> int:
    """Apply all pending migrations.

    Args:
        conn: SQLite database connection

    Returns:
        The final schema version

    Raises:
        ValueError: If the database is newer than this version supports
    """
    current_version = get_schema_version(conn)
    if current_version > CURRENT_SCHEMA_VERSION:
        msg = f"Database schema v{current_version} is newer than supported v{CURRENT_SCHEMA_VERSION}"
        raise ValueError(msg)
    if current_version == CURRENT_SCHEMA_VERSION:
        logger.debug("Database already at version %d", current_version)
        return current_version

    logger.info("Migrating database from v%d to v%d", current_version, CURRENT_SCHEMA_VERSION)
    for version in range(current_version + 1, CURRENT_SCHEMA_VERSION + 1):
        MIGRATIONS[version](conn)
    return CURRENT_SCHEMA_VERSION
