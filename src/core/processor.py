"""Core entry processing state machine.

This module is storage-agnostic. It only relies on ports for persistence,
queueing and the remote collaborators, enabling other backends without
changes here.
"""

from __future__ import annotations

import logging
from typing import Optional

from core.attachments import AttachmentExtractor
from core.entries import FeedEntry
from core.errors import DuplicateStatusError
from core.mentions import MentionResolver
from core.models import SUPPORTED_OBJECT_TYPES, Account, Status, Verb
from core.ports import StatusDeleterPort, StoragePort, TaskQueuePort
from core.resolvers import ReblogResolver, ThreadResolver

LOGGER = logging.getLogger(__name__)


class EntryProcessor:
    """Turn one feed entry into at most one new Status."""

    def __init__(
        self,
        storage: StoragePort,
        queue: TaskQueuePort,
        deleter: StatusDeleterPort,
        mentions: MentionResolver,
        attachments: AttachmentExtractor,
        threads: ThreadResolver,
        reblogs: ReblogResolver,
    ) -> None:
        self._storage = storage
        self._queue = queue
        self._deleter = deleter
        self._mentions = mentions
        self._attachments = attachments
        self._threads = threads
        self._reblogs = reblogs

    async def process(self, entry: FeedEntry, account: Account) -> Optional[Status]:
        """Process one entry for ``account``; return the new Status, if any."""

        if entry.object_type not in SUPPORTED_OBJECT_TYPES:
            return None

        verb = entry.verb
        existing = self._storage.find_status_by_uri(entry.global_id)

        if existing is not None and verb == Verb.DELETE:
            self._deleter.delete(existing)
            LOGGER.info("Deleted status %s", existing.uri)
            return None

        # Entry-level idempotency: a known global id has already been handled.
        if existing is not None:
            return None

        # Deleting something we never stored is a no-op.
        if verb == Verb.DELETE:
            return None

        status = Status(
            uri=entry.global_id,
            url=entry.alternate_url,
            account=account,
            text=entry.content,
            created_at=entry.published_at,
            updated_at=entry.updated_at,
        )

        try:
            if verb == Verb.SHARE:
                status = await self._add_reblog(entry, status)
            elif entry.thread_id is None:
                status = self._storage.save_status(status)
            else:
                status = self._add_reply(entry, status)
        except DuplicateStatusError:
            LOGGER.info("Status %s was stored by another writer, skipping", entry.global_id)
            return None

        if status is None:
            return None

        await self._mentions.record(status, entry.mention_links)
        self._attachments.extract(status, entry.enclosure_links)
        if status.reblog is not None and entry.target is not None:
            self._attachments.extract(status.reblog, entry.target.enclosure_links)

        self._queue.distribute(status.id)
        return status

    async def _add_reblog(self, entry: FeedEntry, status: Status) -> Optional[Status]:
        status.reblog = await self._reblogs.resolve(entry)
        if status.reblog is None:
            LOGGER.info("Reblog target for %s could not be resolved, dropping entry", status.uri)
            return None

        status = self._storage.save_status(status)
        original = status.reblog
        if original.is_local and not self._storage.is_blocking(original.account, status.account):
            self._queue.notify_reblog(status)
        return status

    def _add_reply(self, entry: FeedEntry, status: Status) -> Status:
        status.thread = self._threads.resolve(entry)
        status = self._storage.save_status(status)

        href = entry.thread_href
        if status.thread is None and href is not None:
            self._queue.resolve_thread(status.id, href)
        return status
