"""Mention recording for newly created statuses."""

from __future__ import annotations

import logging
from typing import Iterable, Optional
from urllib.parse import urlsplit

from core.config import IngestConfig
from core.errors import RemoteResolutionError
from core.models import Account, Mention, Status
from core.ports import RemoteAccountResolverPort, StoragePort, TaskQueuePort
from core.tag_manager import TagManager

LOGGER = logging.getLogger(__name__)


def local_username_from_path(path: str) -> str:
    """Derive a local username from a profile path such as ``/users/alice``."""

    return path.replace("/users/", "").strip("/")


class MentionResolver:
    """Map ``link[rel=mentioned]`` hrefs to accounts and record mentions.

    Local accounts are looked up by the path of their profile URL and get a
    notification job; remote accounts are matched by exact URL, resolved
    through the remote account resolver when unknown, and never notified.
    """

    def __init__(
        self,
        storage: StoragePort,
        queue: TaskQueuePort,
        account_resolver: RemoteAccountResolverPort,
        tags: TagManager,
        config: IngestConfig,
    ) -> None:
        self._storage = storage
        self._queue = queue
        self._account_resolver = account_resolver
        self._tags = tags
        self._config = config

    async def record(self, status: Status, hrefs: Iterable[str]) -> list[Mention]:
        """Record mentions for ``status`` and return the ones it carries."""

        mentioned: list[Mention] = []
        for href in hrefs:
            if href == self._config.public_collection:
                continue

            parsed = urlsplit(href)
            if self._tags.is_local_domain(parsed.hostname):
                account = self._record_local(status, parsed.path)
            else:
                account = await self._record_remote(status, href)

            if account is not None:
                mentioned.append(Mention(account=account, status=status))
        return mentioned

    def _record_local(self, status: Status, path: str) -> Optional[Account]:
        account = self._storage.find_local_account(local_username_from_path(path))
        if account is None:
            LOGGER.debug("Mention of unknown local path %s ignored", path)
            return None

        created = self._storage.ensure_mention(account, status)
        # Only a fresh mention is announced, so replays stay silent.
        if created and not self._storage.is_blocking(account, status.account):
            self._queue.notify_mention(account, status)
        return account

    async def _record_remote(self, status: Status, href: str) -> Optional[Account]:
        account = self._storage.find_account_by_url(href)
        if account is None:
            try:
                account = await self._account_resolver.resolve(href)
            except RemoteResolutionError as exc:
                LOGGER.warning("Could not resolve mentioned account %s: %s", href, exc)
                return None

        self._storage.ensure_mention(account, status)
        return account
