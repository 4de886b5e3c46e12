"""SQLiteStore — keeps thread pointers in a local database instead of the PR body.

Useful when the bot token cannot edit PR descriptions, or when a CI cache
directory is shared between jobs. One row per (repo, pr_number); set_pointer
is an upsert.
"""

from __future__ import annotations

import logging
import sqlite3

from prthread_store.base import BasePointerStore
from prthread_store.models import ThreadPointer

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS threads (
    repo        TEXT NOT NULL,
    pr_number   INTEGER NOT NULL,
    thread_ts   TEXT NOT NULL,
    status      TEXT,
    PRIMARY KEY (repo, pr_number)
);
"""


class SQLiteStore(BasePointerStore):
    """Stores thread pointers in a SQLite database file, scoped to one repository.

    The database file path defaults to `.prthread.db` in the current working
    directory. Configure via .prthread.yml: `store_path: /path/to/prthread.db`.
    """

    def __init__(self, repo: str, db_path: str = ".prthread.db"):
        self._repo = repo
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def get_pointer(self, pr_number: int) -> ThreadPointer | None:
        row = self._conn.execute(
            "SELECT thread_ts, status FROM threads WHERE repo=? AND pr_number=?",
            (self._repo, pr_number),
        ).fetchone()
        if row is None:
            logger.warning("No Slack thread stored for %s#%d", self._repo, pr_number)
            return None
        return ThreadPointer(thread_ts=row["thread_ts"], status=row["status"])

    def set_pointer(self, pr_number: int, pointer: ThreadPointer) -> None:
        self._conn.execute(
            """
            INSERT INTO threads (repo, pr_number, thread_ts, status)
            VALUES (?, ?, ?, ?)
            ON CONFLICT (repo, pr_number)
            DO UPDATE SET thread_ts = excluded.thread_ts, status = excluded.status
            """,
            (self._repo, pr_number, pointer.thread_ts, pointer.status),
        )
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()
