"""SQLite storage adapter.

Implements the core StoragePort using a simple SQLite database.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Optional

from core.errors import DuplicateStatusError
from core.models import Account, Attachment, Status

_STATUS_COLUMNS = "id, uri, url, account_id, text, created_at, updated_at, reblog_of_id, thread_id"


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the StoragePort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - accounts: local (domain NULL) and remote identities
        - statuses: one row per global id (uri), the dedup key
        - mentions: unique (account, status) pairs
        - attachments: unique (status, remote_url) pairs
        - blocks: account -> blocked account
        """

        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS accounts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    username TEXT NOT NULL,
                    domain TEXT,
                    url TEXT NOT NULL DEFAULT '',
                    display_name TEXT NOT NULL DEFAULT '',
                    note TEXT NOT NULL DEFAULT '',
                    avatar_remote_url TEXT,
                    UNIQUE (username, domain)
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS accounts_url ON accounts (url)")
            # uri is UNIQUE so a second writer for the same global id fails
            # instead of duplicating the status.
            # Fields:
            # - reblog_of_id: reblogs disappear with the status they reblog
            # - thread_id: replies survive their parent and lose the link
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS statuses (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    uri TEXT NOT NULL UNIQUE,
                    url TEXT NOT NULL DEFAULT '',
                    account_id INTEGER NOT NULL REFERENCES accounts (id) ON DELETE CASCADE,
                    text TEXT NOT NULL DEFAULT '',
                    created_at TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP NOT NULL,
                    reblog_of_id INTEGER REFERENCES statuses (id) ON DELETE CASCADE,
                    thread_id INTEGER REFERENCES statuses (id) ON DELETE SET NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS mentions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    account_id INTEGER NOT NULL REFERENCES accounts (id) ON DELETE CASCADE,
                    status_id INTEGER NOT NULL REFERENCES statuses (id) ON DELETE CASCADE,
                    UNIQUE (account_id, status_id)
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS attachments (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    account_id INTEGER REFERENCES accounts (id) ON DELETE SET NULL,
                    status_id INTEGER NOT NULL REFERENCES statuses (id) ON DELETE CASCADE,
                    remote_url TEXT NOT NULL,
                    UNIQUE (status_id, remote_url)
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS blocks (
                    account_id INTEGER NOT NULL REFERENCES accounts (id) ON DELETE CASCADE,
                    target_account_id INTEGER NOT NULL REFERENCES accounts (id) ON DELETE CASCADE,
                    PRIMARY KEY (account_id, target_account_id)
                )
                """
            )

    # Accounts

    @staticmethod
    def _account_from_row(row: sqlite3.Row) -> Account:
        return Account(
            id=row["id"],
            username=row["username"],
            domain=row["domain"],
            url=row["url"],
            display_name=row["display_name"],
            note=row["note"],
            avatar_remote_url=row["avatar_remote_url"],
        )

    def _fetch_account(self, conn: sqlite3.Connection, where: str, params: tuple) -> Optional[Account]:
        row = conn.execute(f"SELECT * FROM accounts WHERE {where}", params).fetchone()
        return self._account_from_row(row) if row else None

    def find_local_account(self, username: str) -> Optional[Account]:
        """Return the local account with this username (case-insensitive)."""

        with self._connect() as conn:
            return self._fetch_account(conn, "domain IS NULL AND lower(username) = lower(?)", (username,))

    def find_account_by_url(self, url: str) -> Optional[Account]:
        with self._connect() as conn:
            return self._fetch_account(conn, "url = ?", (url,))

    def find_account(self, username: str, domain: Optional[str]) -> Optional[Account]:
        if domain is None:
            return self.find_local_account(username)
        with self._connect() as conn:
            return self._fetch_account(
                conn,
                "lower(username) = lower(?) AND lower(domain) = lower(?)",
                (username, domain),
            )

    def save_account(self, account: Account) -> Account:
        """Insert a new account and assign its id."""

        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO accounts (username, domain, url, display_name, note, avatar_remote_url)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    account.username,
                    account.domain,
                    account.url,
                    account.display_name,
                    account.note,
                    account.avatar_remote_url,
                ),
            )
            account.id = cur.lastrowid
        return account

    def update_account(self, account: Account) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                UPDATE accounts
                SET url = ?, display_name = ?, note = ?, avatar_remote_url = ?
                WHERE id = ?
                """,
                (account.url, account.display_name, account.note, account.avatar_remote_url, account.id),
            )

    def add_block(self, account: Account, target: Account) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO blocks (account_id, target_account_id) VALUES (?, ?)",
                (account.id, target.id),
            )

    def is_blocking(self, account: Account, target: Account) -> bool:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM blocks WHERE account_id = ? AND target_account_id = ?",
                (account.id, target.id),
            ).fetchone()
        return row is not None

    # Statuses

    def _status_from_row(self, conn: sqlite3.Connection, row: sqlite3.Row, depth: int = 1) -> Status:
        account = self._fetch_account(conn, "id = ?", (row["account_id"],))
        status = Status(
            id=row["id"],
            uri=row["uri"],
            url=row["url"],
            account=account,
            text=row["text"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
        # Related statuses are loaded one level deep; their own links stay empty.
        if depth > 0:
            status.reblog = self._fetch_status(conn, "id = ?", (row["reblog_of_id"],), depth - 1)
            status.thread = self._fetch_status(conn, "id = ?", (row["thread_id"],), depth - 1)
        return status

    def _fetch_status(
        self, conn: sqlite3.Connection, where: str, params: tuple, depth: int = 1
    ) -> Optional[Status]:
        if params == (None,):
            return None
        row = conn.execute(f"SELECT {_STATUS_COLUMNS} FROM statuses WHERE {where}", params).fetchone()
        return self._status_from_row(conn, row, depth) if row else None

    def find_status_by_uri(self, uri: str) -> Optional[Status]:
        with self._connect() as conn:
            return self._fetch_status(conn, "uri = ?", (uri,))

    def get_status(self, status_id: int) -> Optional[Status]:
        with self._connect() as conn:
            return self._fetch_status(conn, "id = ?", (status_id,))

    def save_status(self, status: Status) -> Status:
        """Insert a status, failing with DuplicateStatusError on a known uri."""

        try:
            with self._connect() as conn:
                cur = conn.execute(
                    """
                    INSERT INTO statuses (
                        uri,
                        url,
                        account_id,
                        text,
                        created_at,
                        updated_at,
                        reblog_of_id,
                        thread_id
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        status.uri,
                        status.url,
                        status.account.id,
                        status.text,
                        status.created_at.isoformat(),
                        status.updated_at.isoformat(),
                        status.reblog.id if status.reblog else None,
                        status.thread.id if status.thread else None,
                    ),
                )
        except sqlite3.IntegrityError as exc:
            if "statuses.uri" in str(exc):
                raise DuplicateStatusError(status.uri) from exc
            raise
        status.id = cur.lastrowid
        return status

    def delete_status(self, status: Status) -> None:
        """Delete a status; mentions, attachments and reblogs cascade."""

        with self._connect() as conn:
            conn.execute("DELETE FROM statuses WHERE id = ?", (status.id,))

    def find_reblogs(self, status: Status) -> list[Status]:
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {_STATUS_COLUMNS} FROM statuses WHERE reblog_of_id = ? ORDER BY id",
                (status.id,),
            ).fetchall()
            return [self._status_from_row(conn, row) for row in rows]

    def count_statuses(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) AS total FROM statuses").fetchone()
        return int(row["total"])

    # Mentions and attachments

    def ensure_mention(self, account: Account, status: Status) -> bool:
        """Insert the (account, status) mention if absent; True when inserted."""

        with self._connect() as conn:
            cur = conn.execute(
                "INSERT OR IGNORE INTO mentions (account_id, status_id) VALUES (?, ?)",
                (account.id, status.id),
            )
            return cur.rowcount == 1

    def list_mentions(self, status: Status) -> list[Account]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT accounts.* FROM mentions
                JOIN accounts ON accounts.id = mentions.account_id
                WHERE mentions.status_id = ?
                ORDER BY mentions.id
                """,
                (status.id,),
            ).fetchall()
        return [self._account_from_row(row) for row in rows]

    def find_attachment(self, status: Status, remote_url: str) -> Optional[Attachment]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id FROM attachments WHERE status_id = ? AND remote_url = ?",
                (status.id, remote_url),
            ).fetchone()
        if row is None:
            return None
        return Attachment(id=row["id"], status=status, remote_url=remote_url, account=status.account)

    def save_attachment(self, attachment: Attachment) -> Attachment:
        account_id = attachment.account.id if attachment.account else None
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO attachments (account_id, status_id, remote_url) VALUES (?, ?, ?)",
                (account_id, attachment.status.id, attachment.remote_url),
            )
            attachment.id = cur.lastrowid
        return attachment

    def list_attachment_urls(self, status: Status) -> list[str]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT remote_url FROM attachments WHERE status_id = ? ORDER BY id",
                (status.id,),
            ).fetchall()
        return [row["remote_url"] for row in rows]
