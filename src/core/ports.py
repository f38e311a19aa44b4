"""Ports (interfaces) used by the ingestion core.

Ports define the minimal contracts for storage, queueing and the remote
collaborators so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Optional, Protocol

from core.models import Account, Attachment, AuthorBlock, Status


class StoragePort(Protocol):
    """Persistence operations required by the ingestion core.

    ``save_status`` must enforce uniqueness of ``Status.uri`` and raise
    ``DuplicateStatusError`` for a second writer.
    """

    def find_status_by_uri(self, uri: str) -> Optional[Status]:
        ...

    def get_status(self, status_id: int) -> Optional[Status]:
        ...

    def save_status(self, status: Status) -> Status:
        ...

    def delete_status(self, status: Status) -> None:
        ...

    def find_reblogs(self, status: Status) -> list[Status]:
        ...

    def find_local_account(self, username: str) -> Optional[Account]:
        ...

    def find_account_by_url(self, url: str) -> Optional[Account]:
        ...

    def find_account(self, username: str, domain: Optional[str]) -> Optional[Account]:
        ...

    def save_account(self, account: Account) -> Account:
        ...

    def update_account(self, account: Account) -> None:
        ...

    def is_blocking(self, account: Account, target: Account) -> bool:
        ...

    def ensure_mention(self, account: Account, status: Status) -> bool:
        """Create the mention if absent; return True when it was created."""
        ...

    def find_attachment(self, status: Status, remote_url: str) -> Optional[Attachment]:
        ...

    def save_attachment(self, attachment: Attachment) -> Attachment:
        ...


class TaskQueuePort(Protocol):
    """Fire-and-forget job emission. Implementations must not block on jobs."""

    def notify_mention(self, account: Account, status: Status) -> None:
        ...

    def notify_reblog(self, status: Status) -> None:
        ...

    def resolve_thread(self, status_id: int, url: str) -> None:
        ...

    def distribute(self, status_id: int) -> None:
        ...

    def fetch_attachment(self, attachment_id: int, url: str) -> None:
        ...


class ProfileUpdaterPort(Protocol):
    def apply(self, author: AuthorBlock, account: Account) -> None:
        ...


class StatusDeleterPort(Protocol):
    def delete(self, status: Status) -> None:
        ...


class RemoteAccountResolverPort(Protocol):
    """Resolve a ``user@domain`` handle or profile URL to a stored Account.

    Raises ``RemoteResolutionError`` when the account cannot be fetched.
    """

    async def resolve(self, handle_or_url: str) -> Account:
        ...
