"""Top-level feed ingestion.

The ingestor enforces a strict order:
1) Parse the document (malformed XML is fatal)
2) Hand the feed author to the profile updater
3) Process entries one at a time, oldest first (reverse document order)
4) Return the statuses actually created, in processing order

Entries run sequentially because later entries may reference statuses
created by earlier ones in the same document.
"""

from __future__ import annotations

import logging
from typing import List

from core.attachments import AttachmentExtractor
from core.config import IngestConfig
from core.document import parse_document
from core.mentions import MentionResolver
from core.models import Account, Status
from core.ports import (
    ProfileUpdaterPort,
    RemoteAccountResolverPort,
    StatusDeleterPort,
    StoragePort,
    TaskQueuePort,
)
from core.processor import EntryProcessor
from core.resolvers import ReblogResolver, ThreadResolver
from core.tag_manager import TagManager

LOGGER = logging.getLogger(__name__)


class FeedIngestor:
    """Wire the resolvers together and ingest whole feed documents."""

    def __init__(
        self,
        config: IngestConfig,
        storage: StoragePort,
        queue: TaskQueuePort,
        profile_updater: ProfileUpdaterPort,
        deleter: StatusDeleterPort,
        account_resolver: RemoteAccountResolverPort,
    ) -> None:
        self._profile_updater = profile_updater
        tags = TagManager(config.local_domain)
        threads = ThreadResolver(storage, tags)
        self._processor = EntryProcessor(
            storage=storage,
            queue=queue,
            deleter=deleter,
            mentions=MentionResolver(storage, queue, account_resolver, tags, config),
            attachments=AttachmentExtractor(storage, queue),
            threads=threads,
            reblogs=ReblogResolver(storage, queue, account_resolver, threads),
        )

    async def ingest(self, body: bytes, account: Account) -> List[Status]:
        """Create local statuses from a feed body belonging to ``account``."""

        document = parse_document(body)
        if document.author is not None:
            self._profile_updater.apply(document.author, account)

        created: List[Status] = []
        for entry in reversed(document.entries):
            status = await self._processor.process(entry, account)
            if status is not None:
                created.append(status)

        LOGGER.info(
            "Ingested feed for %s: entries=%s, created=%s",
            account.acct,
            len(document.entries),
            len(created),
        )
        return created
