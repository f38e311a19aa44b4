"""SQLite-backed job queue adapter.

Implements the core TaskQueuePort by appending JSON jobs to a ``jobs``
table. Workers pop jobs out of band; enqueueing never waits for them.

Queues:
- 'notify:mention'     -> mention notification for a local account
- 'notify:reblog'      -> reblog notification for a local status owner
- 'thread:resolve'     -> fetch the parent of an orphaned reply
- 'status:distribute'  -> fan a new status out to followers
- 'media:fetch'        -> download a remote attachment
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Optional

from core.models import Account, Status

LOGGER = logging.getLogger(__name__)

NOTIFY_MENTION = "notify:mention"
NOTIFY_REBLOG = "notify:reblog"
RESOLVE_THREAD = "thread:resolve"
DISTRIBUTE = "status:distribute"
FETCH_ATTACHMENT = "media:fetch"


class SQLiteTaskQueue:
    """Append-only job table that satisfies the TaskQueuePort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS jobs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    queue TEXT NOT NULL,
                    payload TEXT NOT NULL,
                    created_at TIMESTAMP NOT NULL
                )
                """
            )

    def enqueue(self, queue_name: str, job: dict) -> None:
        """Add a job to a queue.

        Example:
            queue.enqueue('status:distribute', {'status_id': 42})
        """

        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO jobs (queue, payload, created_at) VALUES (?, ?, ?)",
                (queue_name, json.dumps(job), now.isoformat()),
            )
        LOGGER.debug("Enqueued %s %s", queue_name, job)

    def pending(self, queue_name: Optional[str] = None) -> list[tuple[str, dict]]:
        """Return queued jobs, oldest first, optionally for one queue."""

        with self._connect() as conn:
            if queue_name is None:
                rows = conn.execute("SELECT queue, payload FROM jobs ORDER BY id").fetchall()
            else:
                rows = conn.execute(
                    "SELECT queue, payload FROM jobs WHERE queue = ? ORDER BY id",
                    (queue_name,),
                ).fetchall()
        return [(row["queue"], json.loads(row["payload"])) for row in rows]

    def pop(self, queue_name: str) -> Optional[dict]:
        """Remove and return the oldest job of a queue, or None when empty."""

        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, payload FROM jobs WHERE queue = ? ORDER BY id LIMIT 1",
                (queue_name,),
            ).fetchone()
            if row is None:
                return None
            conn.execute("DELETE FROM jobs WHERE id = ?", (row["id"],))
        return json.loads(row["payload"])

    def notify_mention(self, account: Account, status: Status) -> None:
        self.enqueue(NOTIFY_MENTION, {"account_id": account.id, "status_id": status.id})

    def notify_reblog(self, status: Status) -> None:
        self.enqueue(
            NOTIFY_REBLOG,
            {
                "account_id": status.reblog.account.id,
                "status_id": status.reblog.id,
                "from_account_id": status.account.id,
            },
        )

    def resolve_thread(self, status_id: int, url: str) -> None:
        self.enqueue(RESOLVE_THREAD, {"status_id": status_id, "url": url})

    def distribute(self, status_id: int) -> None:
        self.enqueue(DISTRIBUTE, {"status_id": status_id})

    def fetch_attachment(self, attachment_id: int, url: str) -> None:
        self.enqueue(FETCH_ATTACHMENT, {"attachment_id": attachment_id, "url": url})
