"""Helpers for telling local identifiers and hosts apart from remote ones."""

from __future__ import annotations

import re
from datetime import date
from typing import Optional

TAG_PREFIX = "tag:"


class TagManager:
    """Mint and decode local unique tags for a single serving domain."""

    def __init__(self, local_domain: str) -> None:
        self._local_domain = local_domain.lower()

    @property
    def local_domain(self) -> str:
        return self._local_domain

    def unique_tag(self, created: date, object_id: int, object_type: str = "Status") -> str:
        """Return the global id this server mints for a local object."""

        return (
            f"{TAG_PREFIX}{self._local_domain},{created.strftime('%Y-%m-%d')}:"
            f"objectId={object_id}:objectType={object_type}"
        )

    def is_local_id(self, global_id: str) -> bool:
        return global_id.lower().startswith(f"{TAG_PREFIX}{self._local_domain},")

    def is_local_domain(self, host: Optional[str]) -> bool:
        # A missing host means a relative reference, which can only be ours.
        if host is None:
            return True
        return host.replace("/", "").lower() == self._local_domain

    def unique_tag_to_local_id(self, tag: str, object_type: str = "Status") -> Optional[int]:
        """Split a local tag into its numeric object id, if it carries one."""

        match = re.search(rf"objectId=(\d+):objectType={re.escape(object_type)}", tag)
        if match is None:
            return None
        return int(match.group(1))
