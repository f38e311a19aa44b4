"""Entry classification and field extraction.

A ``FeedEntry`` wraps one ``atom:entry`` (or a nested ``activity:object``)
and exposes its fields through accessors. Optional fields come back as
``None`` or an empty value; only the fields a Status cannot exist without
raise ``MissingEntryField``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from lxml import etree

from core.errors import MissingEntryField
from core.models import ObjectType, ThreadRef, Verb

ATOM_NS = "http://www.w3.org/2005/Atom"
ACTIVITY_NS = "http://activitystrea.ms/spec/1.0/"
THREAD_NS = "http://purl.org/syndication/thread/1.0"
POCO_NS = "http://portablecontacts.net/spec/1.0"

NAMESPACES = {
    "atom": ATOM_NS,
    "activity": ACTIVITY_NS,
    "thr": THREAD_NS,
    "poco": POCO_NS,
}

ACTIVITY_SCHEMA_PREFIX = "http://activitystrea.ms/schema/1.0/"


def _vocabulary_term(raw: Optional[str]) -> Optional[str]:
    if raw is None:
        return None
    term = raw.strip().replace(ACTIVITY_SCHEMA_PREFIX, "")
    return term or None


def classify_object_type(raw: Optional[str]) -> ObjectType:
    """Map an ``activity:object-type`` value onto ``ObjectType``.

    Absent values default to ``note``; anything outside the vocabulary we
    handle becomes ``UNSUPPORTED`` so the caller can skip it.
    """

    term = _vocabulary_term(raw)
    if term is None:
        return ObjectType.NOTE
    try:
        return ObjectType(term)
    except ValueError:
        return ObjectType.UNSUPPORTED


def classify_verb(raw: Optional[str]) -> Verb:
    """Map an ``activity:verb`` value onto ``Verb``, defaulting to ``post``."""

    term = _vocabulary_term(raw)
    if term is None:
        return Verb.POST
    try:
        return Verb(term)
    except ValueError:
        return Verb.POST


def parse_timestamp(raw: str, field_name: str) -> datetime:
    """Parse an Atom date-time, assuming UTC when no offset is given."""

    try:
        value = datetime.fromisoformat(raw.strip())
    except ValueError as exc:
        raise MissingEntryField(field_name, f"unparseable timestamp {raw!r}") from exc
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


class FeedEntry:
    """Accessor layer over one entry element."""

    def __init__(self, element: etree._Element, parent: Optional["FeedEntry"] = None) -> None:
        self._element = element
        self._parent = parent

    def __repr__(self) -> str:
        return f"FeedEntry({self.optional_text('atom:id')!r})"

    def _first(self, path: str) -> Optional[etree._Element]:
        found = self._element.xpath(path, namespaces=NAMESPACES)
        return found[0] if found else None

    def optional_text(self, path: str) -> Optional[str]:
        node = self._first(f"./{path}")
        if node is None:
            return None
        return "".join(node.itertext())

    def required_text(self, path: str, field_name: str) -> str:
        value = self.optional_text(path)
        if value is None:
            raise MissingEntryField(field_name)
        return value

    def _link_hrefs(self, rel: str) -> List[str]:
        hrefs: List[str] = []
        for link in self._element.xpath(f"./atom:link[@rel='{rel}']", namespaces=NAMESPACES):
            href = link.get("href")
            if href is not None:
                hrefs.append(href)
        return hrefs

    @property
    def global_id(self) -> str:
        return self.required_text("atom:id", "id").strip()

    @property
    def alternate_url(self) -> str:
        link = self._first("./atom:link[@rel='alternate']")
        if link is None:
            return ""
        return link.get("href") or ""

    @property
    def content(self) -> str:
        return self.required_text("atom:content", "content")

    @property
    def published_at(self) -> datetime:
        raw = self.optional_text("atom:published")
        if raw is None and self._parent is not None:
            return self._parent.published_at
        if raw is None:
            raise MissingEntryField("published")
        return parse_timestamp(raw, "published")

    @property
    def updated_at(self) -> datetime:
        raw = self.optional_text("atom:updated")
        if raw is None and self._parent is not None:
            return self._parent.updated_at
        if raw is None:
            raise MissingEntryField("updated")
        return parse_timestamp(raw, "updated")

    @property
    def object_type(self) -> ObjectType:
        return classify_object_type(self.optional_text("activity:object-type"))

    @property
    def verb(self) -> Verb:
        return classify_verb(self.optional_text("activity:verb"))

    @property
    def thread_ref(self) -> Optional[ThreadRef]:
        node = self._first("./thr:in-reply-to")
        if node is None:
            return None
        return ThreadRef(ref=node.get("ref"), href=node.get("href"))

    @property
    def thread_id(self) -> Optional[str]:
        ref = self.thread_ref
        return ref.ref if ref else None

    @property
    def thread_href(self) -> Optional[str]:
        ref = self.thread_ref
        return ref.href if ref else None

    @property
    def target(self) -> Optional["FeedEntry"]:
        """The nested ``activity:object`` a share points at."""

        node = self._first("./activity:object")
        if node is None:
            return None
        return FeedEntry(node, parent=self)

    @property
    def target_id(self) -> Optional[str]:
        # Searched at any depth, unlike ``target``, so wrapped objects still
        # yield an id for the local lookup.
        node = self._first(".//activity:object/atom:id")
        if node is None:
            return None
        value = "".join(node.itertext()).strip()
        return value or None

    @property
    def author_name(self) -> Optional[str]:
        return self.optional_text("atom:author/atom:name")

    @property
    def author_uri(self) -> Optional[str]:
        return self.optional_text("atom:author/atom:uri")

    @property
    def mention_links(self) -> List[str]:
        return self._link_hrefs("mentioned")

    @property
    def enclosure_links(self) -> List[str]:
        return self._link_hrefs("enclosure")
