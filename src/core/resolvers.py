"""Resolution of thread parents and reblog targets.

Both resolvers look a reference up locally first: local tags by decoded
id, anything else by global id. Only the reblog path falls back to
building the target from the inline ``activity:object``.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlsplit

from core.entries import FeedEntry
from core.errors import (
    DuplicateStatusError,
    LocalReferenceError,
    MissingEntryField,
    RemoteResolutionError,
)
from core.models import Account, Status
from core.ports import RemoteAccountResolverPort, StoragePort, TaskQueuePort
from core.tag_manager import TagManager

LOGGER = logging.getLogger(__name__)


class ThreadResolver:
    """Find the Status a reference points at, without any fetching."""

    def __init__(self, storage: StoragePort, tags: TagManager) -> None:
        self._storage = storage
        self._tags = tags

    def find_original_status(self, ref: Optional[str]) -> Optional[Status]:
        """Return the referenced Status, or None when it is not known yet.

        A local tag must resolve: a dangling local reference raises
        ``LocalReferenceError``.
        """

        if ref is None:
            return None

        if self._tags.is_local_id(ref):
            local_id = self._tags.unique_tag_to_local_id(ref)
            status = self._storage.get_status(local_id) if local_id is not None else None
            if status is None:
                raise LocalReferenceError(f"Local status not found for {ref}")
            return status

        return self._storage.find_status_by_uri(ref)

    def resolve(self, entry: FeedEntry) -> Optional[Status]:
        return self.find_original_status(entry.thread_id)


class ReblogResolver:
    """Find or build the Status a share entry reblogs."""

    def __init__(
        self,
        storage: StoragePort,
        queue: TaskQueuePort,
        account_resolver: RemoteAccountResolverPort,
        threads: ThreadResolver,
    ) -> None:
        self._storage = storage
        self._queue = queue
        self._account_resolver = account_resolver
        self._threads = threads

    async def resolve(self, entry: FeedEntry) -> Optional[Status]:
        original = self._threads.find_original_status(entry.target_id)
        if original is None:
            original = await self.fetch_remote_status(entry)
        return original

    async def fetch_remote_status(self, entry: FeedEntry) -> Optional[Status]:
        """Build and store the reblogged Status from the inline object.

        Any failure while doing so means the target stays unresolved.
        """

        target = entry.target
        if target is None:
            return None

        try:
            account = await self._target_account(target)
            if account is None:
                return None

            status = Status(
                uri=target.global_id,
                url=target.alternate_url,
                account=account,
                text=target.content,
                created_at=target.published_at,
                updated_at=target.updated_at,
            )
            # One level only: the parent of a fetched status is never fetched.
            status.thread = self._threads.find_original_status(target.thread_id)
            status = self._storage.save_status(status)
        except (RemoteResolutionError, MissingEntryField, LocalReferenceError, DuplicateStatusError) as exc:
            LOGGER.warning("Could not fetch reblogged status for %s: %s", entry, exc)
            return None

        href = target.thread_href
        if status.thread is None and href is not None:
            self._queue.resolve_thread(status.id, href)

        LOGGER.info("Stored remote status %s for reblog", status.uri)
        return status

    async def _target_account(self, target: FeedEntry) -> Optional[Account]:
        username = target.author_name
        author_uri = target.author_uri
        if not username or not author_uri:
            LOGGER.info("Reblogged object has no usable author")
            return None

        username = username.strip()
        domain = urlsplit(author_uri.strip()).hostname
        if domain is None:
            return None

        account = self._storage.find_account(username, domain)
        if account is None:
            account = await self._account_resolver.resolve(f"{username}@{domain}")
        return account
