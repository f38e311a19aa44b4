"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass

PUBLIC_COLLECTION = "http://activityschema.org/collection/public"


@dataclass(frozen=True)
class IngestConfig:
    """Settings for the feed ingestion pipeline."""

    local_domain: str
    public_collection: str = PUBLIC_COLLECTION
