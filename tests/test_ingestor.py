from __future__ import annotations

import pytest

from core.errors import FeedParseError, MissingEntryField
from fakes import LOCAL_DOMAIN, Harness, entry_xml, feed_xml, shared_object_xml

PUBLIC = "http://activityschema.org/collection/public"


def _reply_extra(parent_id: str, href: str = "https://remote.example/statuses/parent") -> str:
    return f'<thr:in-reply-to ref="{parent_id}" href="{href}"/>'


def test_profile_is_updated_before_entries() -> None:
    harness = Harness()

    harness.ingest(feed_xml(entry_xml("tag:remote.example,2016:1")))

    assert len(harness.updater.applied) == 1
    author, account = harness.updater.applied[0]
    assert author.name == "bob"
    assert account is harness.owner


def test_empty_feed_returns_no_statuses() -> None:
    harness = Harness()

    assert harness.ingest(feed_xml()) == []
    assert harness.queue.jobs == []


def test_malformed_feed_raises() -> None:
    harness = Harness()

    with pytest.raises(FeedParseError):
        harness.ingest(b"<feed>")
    assert harness.updater.applied == []


def test_statuses_are_returned_oldest_first() -> None:
    harness = Harness()
    body = feed_xml(entry_xml("tag:remote.example,2016:new"), entry_xml("tag:remote.example,2016:old"))

    created = harness.ingest(body)

    assert [status.uri for status in created] == ["tag:remote.example,2016:old", "tag:remote.example,2016:new"]


def test_second_ingest_is_idempotent() -> None:
    harness = Harness()
    harness.storage.add_local("alice")
    extra = (
        f'<link rel="mentioned" href="https://{LOCAL_DOMAIN}/users/alice"/>'
        '<link rel="enclosure" href="https://remote.example/media/1.png"/>'
    )
    body = feed_xml(entry_xml("tag:remote.example,2016:1", extra=extra))

    first = harness.ingest(body)
    jobs_after_first = list(harness.queue.jobs)
    second = harness.ingest(body)

    assert len(first) == 1
    assert second == []
    assert len(harness.storage.statuses) == 1
    assert len(harness.storage.mentions) == 1
    assert len(harness.storage.attachments) == 1
    assert harness.queue.jobs == jobs_after_first


def test_reply_before_parent_in_document_resolves_parent() -> None:
    harness = Harness()
    parent_id = "tag:remote.example,2016:parent"
    body = feed_xml(
        entry_xml("tag:remote.example,2016:reply", object_type="comment", extra=_reply_extra(parent_id)),
        entry_xml(parent_id),
    )

    parent, reply = harness.ingest(body)

    assert parent.uri == parent_id
    assert reply.thread is parent
    assert "resolve_thread" not in harness.queue.names()


def test_reply_after_parent_in_document_is_resolved_later() -> None:
    harness = Harness()
    parent_id = "tag:remote.example,2016:parent"
    body = feed_xml(
        entry_xml(parent_id),
        entry_xml("tag:remote.example,2016:reply", extra=_reply_extra(parent_id)),
    )

    reply, parent = harness.ingest(body)

    assert reply.thread is None
    assert ("resolve_thread", reply.id, "https://remote.example/statuses/parent") in harness.queue.jobs
    assert parent.uri == parent_id


def test_delete_removes_existing_status() -> None:
    harness = Harness()
    existing = harness.storage.add_status("tag:remote.example,2016:gone", harness.owner)

    created = harness.ingest(feed_xml(entry_xml("tag:remote.example,2016:gone", verb="delete")))

    assert created == []
    assert harness.deleter.deleted == [existing]
    assert harness.storage.find_status_by_uri("tag:remote.example,2016:gone") is None
    assert harness.queue.jobs == []


def test_delete_of_unknown_status_does_nothing() -> None:
    harness = Harness()

    created = harness.ingest(
        feed_xml(entry_xml("tag:remote.example,2016:never", content=None, verb="delete"))
    )

    assert created == []
    assert harness.deleter.deleted == []
    assert harness.storage.statuses == {}
    assert harness.queue.jobs == []


def test_reblog_falls_back_to_inline_object() -> None:
    harness = Harness()
    target_id = "tag:other.example,2016:objectId=5:objectType=Status"
    body = feed_xml(
        entry_xml(
            "tag:remote.example,2016:share",
            verb="share",
            object_type="activity",
            extra=shared_object_xml(target_id, "carol wrote this"),
        )
    )

    created = harness.ingest(body)

    assert len(created) == 1
    reblog = created[0]
    original = reblog.reblog
    assert original.uri == target_id
    assert original.text == "carol wrote this"
    assert original.account.acct == "carol@other.example"
    assert harness.resolver.calls == ["carol@other.example"]
    assert harness.storage.find_status_by_uri(target_id) is original
    assert ("distribute", reblog.id) in harness.queue.jobs


def test_unsupported_object_type_is_skipped() -> None:
    harness = Harness()
    extra = f'<link rel="mentioned" href="https://{LOCAL_DOMAIN}/users/alice"/>'
    harness.storage.add_local("alice")

    created = harness.ingest(feed_xml(entry_xml("tag:remote.example,2016:p", object_type="person", extra=extra)))

    assert created == []
    assert harness.storage.statuses == {}
    assert harness.storage.mentions == []
    assert harness.queue.jobs == []


def test_public_collection_is_not_a_mention() -> None:
    harness = Harness()
    extra = f'<link rel="mentioned" href="{PUBLIC}"/>'

    created = harness.ingest(feed_xml(entry_xml("tag:remote.example,2016:1", extra=extra)))

    assert len(created) == 1
    assert harness.storage.mentions == []
    assert harness.resolver.calls == []


def test_missing_content_aborts_document() -> None:
    harness = Harness()
    body = feed_xml(entry_xml("tag:remote.example,2016:bad", content=None), entry_xml("tag:remote.example,2016:ok"))

    with pytest.raises(MissingEntryField):
        harness.ingest(body)
