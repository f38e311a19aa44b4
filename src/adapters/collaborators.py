"""Default collaborators backed by the storage adapter.

These keep the CLI usable without network access: profiles are updated
from the feed author block, deletions go straight to storage, and remote
accounts are derived from their handle or profile URL.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlsplit

from core.errors import RemoteResolutionError
from core.models import Account, AuthorBlock, Status
from core.ports import StoragePort

LOGGER = logging.getLogger(__name__)


class StorageProfileUpdater:
    """Copy the feed author's profile fields onto the account."""

    def __init__(self, storage: StoragePort) -> None:
        self._storage = storage

    def apply(self, author: AuthorBlock, account: Account) -> None:
        if author.uri:
            account.url = author.uri.strip()
        if author.display_name is not None:
            account.display_name = author.display_name
        if author.note is not None:
            account.note = author.note
        if author.avatar_url:
            account.avatar_remote_url = author.avatar_url
        self._storage.update_account(account)
        LOGGER.info("Updated profile for %s", account.acct)


class StorageStatusDeleter:
    """Remove a status together with every reblog of it."""

    def __init__(self, storage: StoragePort) -> None:
        self._storage = storage

    def delete(self, status: Status) -> None:
        for reblog in self._storage.find_reblogs(status):
            self._storage.delete_status(reblog)
        self._storage.delete_status(status)


def split_handle(handle_or_url: str) -> tuple[str, str, str]:
    """Return (username, domain, url) for ``user@domain`` or a profile URL."""

    value = handle_or_url.strip()
    if value.startswith("acct:"):
        value = value[len("acct:"):]

    if "://" in value:
        parsed = urlsplit(value)
        segments = [segment for segment in parsed.path.split("/") if segment]
        username = segments[-1].lstrip("@") if segments else ""
        return username, parsed.hostname or "", value

    username, _, domain = value.lstrip("@").rpartition("@")
    return username, domain, ""


class OfflineAccountResolver:
    """Resolve remote accounts without a network round-trip.

    Known accounts are returned as-is; unknown ones are created from the
    handle or URL alone. Handles pointing at the local domain resolve to
    local accounts only.
    """

    def __init__(self, storage: StoragePort, local_domain: Optional[str] = None) -> None:
        self._storage = storage
        self._local_domain = local_domain.lower() if local_domain else None

    async def resolve(self, handle_or_url: str) -> Account:
        username, domain, url = split_handle(handle_or_url)
        if not username or not domain:
            raise RemoteResolutionError(f"Cannot derive an account from {handle_or_url!r}")

        if domain.lower() == self._local_domain:
            account = self._storage.find_local_account(username)
            if account is None:
                raise RemoteResolutionError(f"No local account named {username}")
            return account

        account = self._storage.find_account(username, domain)
        if account is not None:
            if url and not account.url:
                account.url = url
                self._storage.update_account(account)
            return account

        account = self._storage.save_account(Account(username=username, domain=domain, url=url))
        LOGGER.info("Created remote account %s", account.acct)
        return account
