from __future__ import annotations

from datetime import datetime, timezone

import pytest

from core.document import parse_document
from core.entries import FeedEntry, classify_object_type, classify_verb
from core.errors import MissingEntryField
from core.models import ObjectType, ThreadRef, Verb
from fakes import AS_SCHEMA, entry_xml, feed_xml, shared_object_xml


def _entry(xml: str) -> FeedEntry:
    return parse_document(feed_xml(xml)).entries[0]


def test_classify_object_type_defaults_and_prefix() -> None:
    assert classify_object_type(None) == ObjectType.NOTE
    assert classify_object_type("  ") == ObjectType.NOTE
    assert classify_object_type(f"{AS_SCHEMA}comment") == ObjectType.COMMENT
    assert classify_object_type("activity") == ObjectType.ACTIVITY
    assert classify_object_type(f"{AS_SCHEMA}person") == ObjectType.UNSUPPORTED


def test_classify_verb_defaults_to_post() -> None:
    assert classify_verb(None) == Verb.POST
    assert classify_verb(f"{AS_SCHEMA}share") == Verb.SHARE
    assert classify_verb(f"{AS_SCHEMA}delete") == Verb.DELETE
    assert classify_verb(f"{AS_SCHEMA}favorite") == Verb.POST
    assert classify_verb("") == Verb.POST


def test_required_fields() -> None:
    entry = _entry(
        entry_xml(
            "tag:remote.example,2016:1",
            content="&lt;p&gt;hi&lt;/p&gt;",
            url="https://remote.example/1",
        )
    )

    assert entry.global_id == "tag:remote.example,2016:1"
    assert entry.content == "<p>hi</p>"
    assert entry.alternate_url == "https://remote.example/1"
    assert entry.published_at == datetime(2016, 3, 1, 12, 0, tzinfo=timezone.utc)
    assert entry.object_type == ObjectType.NOTE
    assert entry.verb == Verb.POST


def test_optional_fields_fall_back_to_empty_values() -> None:
    entry = _entry(entry_xml("tag:remote.example,2016:2"))

    assert entry.alternate_url == ""
    assert entry.thread_ref is None
    assert entry.thread_id is None
    assert entry.target is None
    assert entry.target_id is None
    assert entry.mention_links == []
    assert entry.enclosure_links == []


def test_missing_content_raises() -> None:
    entry = _entry(entry_xml("tag:remote.example,2016:3", content=None))

    with pytest.raises(MissingEntryField) as excinfo:
        entry.content
    assert excinfo.value.field == "content"


def test_missing_id_raises() -> None:
    entry = _entry("<entry><content>no id</content></entry>")

    with pytest.raises(MissingEntryField):
        entry.global_id


def test_bad_timestamp_raises() -> None:
    entry = _entry(entry_xml("tag:remote.example,2016:4", published="yesterday"))

    with pytest.raises(MissingEntryField) as excinfo:
        entry.published_at
    assert excinfo.value.field == "published"


def test_naive_timestamp_is_utc() -> None:
    entry = _entry(entry_xml("tag:remote.example,2016:5", updated="2016-03-02T08:30:00"))

    assert entry.updated_at.tzinfo == timezone.utc


def test_thread_reference() -> None:
    extra = '<thr:in-reply-to ref="tag:remote.example,2016:parent" href="https://remote.example/p"/>'
    entry = _entry(entry_xml("tag:remote.example,2016:6", extra=extra))

    assert entry.thread_ref == ThreadRef(ref="tag:remote.example,2016:parent", href="https://remote.example/p")
    assert entry.thread_id == "tag:remote.example,2016:parent"
    assert entry.thread_href == "https://remote.example/p"


def test_links_skip_missing_href() -> None:
    extra = (
        '<link rel="mentioned" href="https://remote.example/users/amy"/>'
        '<link rel="mentioned"/>'
        '<link rel="enclosure" href="https://remote.example/media/1.png"/>'
        '<link rel="enclosure" type="image/png"/>'
    )
    entry = _entry(entry_xml("tag:remote.example,2016:7", extra=extra))

    assert entry.mention_links == ["https://remote.example/users/amy"]
    assert entry.enclosure_links == ["https://remote.example/media/1.png"]


def test_shared_object_uses_entry_timestamps() -> None:
    entry = _entry(
        entry_xml(
            "tag:remote.example,2016:8",
            verb="share",
            object_type="activity",
            extra=shared_object_xml("tag:other.example,2016:99"),
        )
    )

    target = entry.target
    assert entry.target_id == "tag:other.example,2016:99"
    assert target.content == "original"
    assert target.author_name == "carol"
    assert target.author_uri == "https://other.example/users/carol"
    assert target.alternate_url == "tag:other.example,2016:99.html"
    assert target.published_at == entry.published_at


def test_xhtml_content_keeps_whitespace_between_elements() -> None:
    xml = entry_xml("tag:remote.example,2016:x", content=None).replace(
        "</entry>",
        '<content type="xhtml"><div xmlns="http://www.w3.org/1999/xhtml">'
        "<b>hello</b> <i>world</i></div></content></entry>",
    )

    assert _entry(xml).content == "hello world"


def test_target_id_is_found_below_a_wrapper() -> None:
    wrapped = (
        "<source>"
        + shared_object_xml("tag:other.example,2016:deep")
        + "</source>"
    )
    entry = _entry(entry_xml("tag:remote.example,2016:share", verb="share", extra=wrapped))

    assert entry.target is None
    assert entry.target_id == "tag:other.example,2016:deep"
