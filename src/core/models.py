"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any storage-specific types. Accounts, statuses and attachments
carry an ``id`` that stays ``None`` until storage assigns one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional, Tuple

if TYPE_CHECKING:
    from core.entries import FeedEntry


class ObjectType(str, Enum):
    """Content kind of an entry."""

    NOTE = "note"
    COMMENT = "comment"
    ACTIVITY = "activity"
    UNSUPPORTED = "unsupported"


class Verb(str, Enum):
    """Action carried by an entry."""

    POST = "post"
    SHARE = "share"
    DELETE = "delete"


SUPPORTED_OBJECT_TYPES = frozenset({ObjectType.NOTE, ObjectType.COMMENT, ObjectType.ACTIVITY})


@dataclass
class Account:
    """Local or remote identity. Local accounts have no domain."""

    username: str
    domain: Optional[str] = None
    url: str = ""
    display_name: str = ""
    note: str = ""
    avatar_remote_url: Optional[str] = None
    id: Optional[int] = None

    @property
    def is_local(self) -> bool:
        return self.domain is None

    @property
    def acct(self) -> str:
        if self.is_local:
            return self.username
        return f"{self.username}@{self.domain}"


@dataclass
class Status:
    """Local representation of a post, reply or reblog."""

    uri: str
    url: str
    account: Account
    text: str
    created_at: datetime
    updated_at: datetime
    reblog: Optional["Status"] = None
    thread: Optional["Status"] = None
    id: Optional[int] = None

    @property
    def is_reblog(self) -> bool:
        return self.reblog is not None

    @property
    def is_local(self) -> bool:
        return self.account.is_local


@dataclass(frozen=True)
class Mention:
    """An account addressed by a status."""

    account: Account
    status: Status


@dataclass
class Attachment:
    """A media enclosure attached to a status, fetched out of band."""

    status: Status
    remote_url: str
    account: Optional[Account] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class ThreadRef:
    """Pointer from a reply to its parent (``thr:in-reply-to``)."""

    ref: Optional[str]
    href: Optional[str]


@dataclass(frozen=True)
class AuthorBlock:
    """Feed-level author profile handed to the profile updater."""

    name: Optional[str]
    uri: Optional[str]
    display_name: Optional[str] = None
    note: Optional[str] = None
    avatar_url: Optional[str] = None


@dataclass(frozen=True)
class FeedDocument:
    """A parsed feed: optional author plus entries in document order."""

    author: Optional[AuthorBlock]
    entries: Tuple["FeedEntry", ...] = field(default_factory=tuple)
