"""Feed document parsing.

Turns raw feed bytes into a ``FeedDocument``: the feed-level author block
(when the root is an Atom feed that declares one) and every entry in
document order.
"""

from __future__ import annotations

import logging
from typing import Optional

from lxml import etree

from core.entries import NAMESPACES, FeedEntry
from core.errors import FeedParseError
from core.models import AuthorBlock, FeedDocument

LOGGER = logging.getLogger(__name__)


def _build_parser() -> etree.XMLParser:
    # Inbound feeds are untrusted: no entity expansion, no network lookups.
    return etree.XMLParser(resolve_entities=False, no_network=True)


def _author_text(author: etree._Element, path: str) -> Optional[str]:
    found = author.xpath(f"./{path}", namespaces=NAMESPACES)
    if not found:
        return None
    return "".join(found[0].itertext()).strip() or None


def parse_author(author: etree._Element) -> AuthorBlock:
    """Read the profile fields the profile updater cares about."""

    avatar = author.xpath("./atom:link[@rel='avatar']", namespaces=NAMESPACES)
    return AuthorBlock(
        name=_author_text(author, "atom:name"),
        uri=_author_text(author, "atom:uri"),
        display_name=_author_text(author, "poco:displayName"),
        note=_author_text(author, "poco:note"),
        avatar_url=avatar[0].get("href") if avatar else None,
    )


def parse_document(body: bytes) -> FeedDocument:
    """Parse a feed body.

    Raises ``FeedParseError`` for anything that is not well-formed XML; the
    caller decides whether that is fatal.
    """

    if not body or not body.strip():
        raise FeedParseError("Feed body is empty")

    try:
        root = etree.fromstring(body, parser=_build_parser())
    except etree.XMLSyntaxError as exc:
        LOGGER.warning("Failed to parse feed document: %s", exc)
        raise FeedParseError(str(exc)) from exc

    author = None
    authors = root.xpath("/atom:feed/atom:author", namespaces=NAMESPACES)
    if authors:
        author = parse_author(authors[0])

    entries = tuple(FeedEntry(node) for node in root.xpath("//atom:entry", namespaces=NAMESPACES))
    LOGGER.debug("Parsed feed document with %s entries", len(entries))
    return FeedDocument(author=author, entries=entries)
