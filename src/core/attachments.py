"""Media enclosure extraction."""

from __future__ import annotations

import logging
from typing import Iterable

from core.models import Attachment, Status
from core.ports import StoragePort, TaskQueuePort

LOGGER = logging.getLogger(__name__)


class AttachmentExtractor:
    """Create one attachment per (status, enclosure href) and queue its fetch."""

    def __init__(self, storage: StoragePort, queue: TaskQueuePort) -> None:
        self._storage = storage
        self._queue = queue

    def extract(self, status: Status, hrefs: Iterable[str]) -> list[Attachment]:
        created: list[Attachment] = []
        for href in hrefs:
            if self._storage.find_attachment(status, href) is not None:
                continue

            attachment = self._storage.save_attachment(
                Attachment(status=status, remote_url=href, account=status.account)
            )
            self._queue.fetch_attachment(attachment.id, href)
            LOGGER.debug("Attachment %s queued for %s", href, status.uri)
            created.append(attachment)
        return created
