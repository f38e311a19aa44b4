"""Exceptions raised by the ingestion core and its adapters."""

from __future__ import annotations


class FeedIngestError(Exception):
    """Base class for every ingestion failure."""


class FeedParseError(FeedIngestError):
    """The inbound document is not well-formed XML."""


class MissingEntryField(FeedIngestError):
    """A field required to build a Status is absent or unreadable."""

    def __init__(self, field: str, detail: str = "") -> None:
        self.field = field
        message = f"Entry is missing required field: {field}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class LocalReferenceError(FeedIngestError):
    """A local tag points at a Status that does not exist."""


class RemoteResolutionError(FeedIngestError):
    """A remote account or status could not be fetched."""


class DuplicateStatusError(FeedIngestError):
    """Another writer already stored a Status with the same global id."""

    def __init__(self, uri: str) -> None:
        self.uri = uri
        super().__init__(f"Status already exists: {uri}")
