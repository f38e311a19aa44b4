from __future__ import annotations

import asyncio
from datetime import date

import pytest

from core.attachments import AttachmentExtractor
from core.document import parse_document
from core.errors import LocalReferenceError
from core.resolvers import ReblogResolver, ThreadResolver
from core.tag_manager import TagManager
from fakes import (
    LOCAL_DOMAIN,
    FakeAccountResolver,
    FakeQueue,
    FakeStorage,
    entry_xml,
    feed_xml,
    shared_object_xml,
)


def _share(object_xml: str):
    body = feed_xml(entry_xml("tag:remote.example,2016:share", verb="share", extra=object_xml))
    return parse_document(body).entries[0]


def test_find_original_status_by_uri_and_local_tag() -> None:
    storage = FakeStorage()
    tags = TagManager(LOCAL_DOMAIN)
    threads = ThreadResolver(storage, tags)
    author = storage.add_local("alice")
    status = storage.add_status("tag:remote.example,2016:x", author)

    assert threads.find_original_status(None) is None
    assert threads.find_original_status("tag:remote.example,2016:x") is status
    assert threads.find_original_status("tag:remote.example,2016:missing") is None
    assert threads.find_original_status(tags.unique_tag(date(2016, 1, 1), status.id)) is status


def test_undecodable_local_tag_raises() -> None:
    threads = ThreadResolver(FakeStorage(), TagManager(LOCAL_DOMAIN))

    with pytest.raises(LocalReferenceError):
        threads.find_original_status(f"tag:{LOCAL_DOMAIN},2016-01-01:objectId=abc:objectType=Status")


def test_fetch_reuses_known_author() -> None:
    storage = FakeStorage()
    queue = FakeQueue()
    resolver = FakeAccountResolver(storage)
    carol = storage.add_remote("carol", "other.example")
    reblogs = ReblogResolver(storage, queue, resolver, ThreadResolver(storage, TagManager(LOCAL_DOMAIN)))

    status = asyncio.run(reblogs.resolve(_share(shared_object_xml("tag:other.example,2016:1"))))

    assert status.account is carol
    assert status.url == "tag:other.example,2016:1.html"
    assert resolver.calls == []


def test_fetch_threads_to_known_parent_without_job() -> None:
    storage = FakeStorage()
    queue = FakeQueue()
    carol = storage.add_remote("carol", "other.example")
    parent = storage.add_status("tag:other.example,2016:parent", carol)
    reblogs = ReblogResolver(
        storage, queue, FakeAccountResolver(storage), ThreadResolver(storage, TagManager(LOCAL_DOMAIN))
    )
    nested = shared_object_xml(
        "tag:other.example,2016:child",
        extra='<thr:in-reply-to ref="tag:other.example,2016:parent" href="https://other.example/p"/>',
    )

    status = asyncio.run(reblogs.resolve(_share(nested)))

    assert status.thread is parent
    assert queue.jobs == []


@pytest.mark.parametrize(
    "nested",
    [
        shared_object_xml("tag:other.example,2016:1", author_uri="not-a-url"),
        shared_object_xml("tag:other.example,2016:1", author_name=""),
        "<activity:object><content>no id</content>"
        "<author><name>carol</name><uri>https://other.example/users/carol</uri></author>"
        "</activity:object>",
    ],
)
def test_unusable_inline_object_yields_nothing(nested: str) -> None:
    storage = FakeStorage()
    reblogs = ReblogResolver(
        storage, FakeQueue(), FakeAccountResolver(storage), ThreadResolver(storage, TagManager(LOCAL_DOMAIN))
    )

    assert asyncio.run(reblogs.resolve(_share(nested))) is None
    assert storage.statuses == {}


def test_attachments_are_created_once() -> None:
    storage = FakeStorage()
    queue = FakeQueue()
    extractor = AttachmentExtractor(storage, queue)
    author = storage.add_remote("bob", "remote.example")
    status = storage.add_status("tag:remote.example,2016:1", author)
    hrefs = ["https://remote.example/a.png", "https://remote.example/b.png", "https://remote.example/a.png"]

    first = extractor.extract(status, hrefs)
    second = extractor.extract(status, hrefs)

    assert [a.remote_url for a in first] == ["https://remote.example/a.png", "https://remote.example/b.png"]
    assert second == []
    assert all(a.account is author for a in first)
    assert [job[0] for job in queue.jobs] == ["fetch_attachment", "fetch_attachment"]
