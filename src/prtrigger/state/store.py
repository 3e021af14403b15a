"""SQLite build queue.

``BuildQueue`` is the scheduler the command line uses: every trigger
decision becomes one row holding the job name and the exported cause.
The database file is created with chmod 600.
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from prtrigger.state.migrations import migrate_database

if TYPE_CHECKING:
    from collections.abc import Iterator

    from prtrigger.adapters.causes import BuildCause
    from prtrigger.jobs.model import Job

logger = logging.getLogger(__name__)


class BuildQueue:
    """SQLite-backed ``BuildScheduler``.

    Args:
        db_path: Path to the SQLite database file

    Example:
        >>> from prtrigger.paths import get_default_state_dir
        >>> queue = BuildQueue(get_default_state_dir() / "builds.db")
        >>> queue.schedule(job, cause, delivery_id="abc")
        >>> queue.list_builds(job="repo/PR-1")
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path).expanduser().resolve()
        self._conn: sqlite3.Connection | None = None

        self._ensure_database()

    def _ensure_database(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        is_new = not self.db_path.exists()

        conn = self._get_connection()
        migrate_database(conn)

        if is_new and self.db_path.exists():
            try:
                os.chmod(self.db_path, 0o600)  # noqa: PTH101
                logger.debug("Set database permissions to 600: %s", self.db_path)
            except OSError as e:
                logger.warning("Could not set database permissions: %s", e)

    def _get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path))
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
        return self._conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for transactional operations.

        Yields:
            The database connection
        """
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> BuildQueue:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def schedule(self, job: Job, cause: BuildCause, *, delivery_id: str | None = None) -> None:
        """Record a build of ``job``.

        Args:
            job: Job to build
            cause: Cause attached to the build
            delivery_id: Webhook delivery that caused it

        Raises:
            sqlite3.Error: If the row cannot be written
        """
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO scheduled_builds
                (job_name, cause_type, short_description, cause, delivery_id, scheduled_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    job.full_name,
                    cause.cause_type,
                    cause.short_description,
                    json.dumps(cause.export()),
                    delivery_id,
                    datetime.now(UTC).isoformat(),
                ),
            )
        logger.debug("Queued build of %s (%s)", job.full_name, cause.short_description)

    def list_builds(self, job: str | None = None, limit: int = 50) -> list[dict[str, Any]]:
        """List recorded builds, newest first.

        Args:
            job: Only return builds of this full job name
            limit: Maximum number of builds to return

        Returns:
            Builds as dictionaries, with ``cause`` decoded
        """
        conn = self._get_connection()

        query = "SELECT * FROM scheduled_builds"
        params: list[Any] = []
        if job is not None:
            query += " WHERE job_name = ?"
            params.append(job)
        query += " ORDER BY id DESC LIMIT ?"
        params.append(limit)

        results = []
        for row in conn.execute(query, params).fetchall():
            entry = dict(row)
            entry["cause"] = json.loads(entry["cause"])
            results.append(entry)
        return results

    def count(self, job: str | None = None) -> int:
        """Count recorded builds, optionally of one job."""
        conn = self._get_connection()
        if job is None:
            row = conn.execute("SELECT COUNT(*) FROM scheduled_builds").fetchone()
        else:
            row = conn.execute(
                "SELECT COUNT(*) FROM scheduled_builds WHERE job_name = ?",
                (job,),
            ).fetchone()
        return row[0] if row else 0
