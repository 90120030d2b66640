from __future__ import annotations

from storefront.catalog.feed import InMemoryCatalogFeed, PollingCatalogFeed
from storefront.models import CatalogItem


class RecordingListener:
    def __init__(self) -> None:
        self.snapshots: list[list[str]] = []

    def __call__(self, items: list[CatalogItem]) -> None:
        self.snapshots.append([item.id for item in items])


class DummyClient:
    def __init__(self, responses: list[list[CatalogItem] | None]) -> None:
        self._responses = responses
        self.calls = 0

    def fetch_products(self) -> list[CatalogItem] | None:
        response = self._responses[min(self.calls, len(self._responses) - 1)]
        self.calls += 1
        return response


def test_subscribe_receives_published_snapshots_until_unsubscribed() -> None:
    feed = InMemoryCatalogFeed()
    listener = RecordingListener()

    unsubscribe = feed.subscribe(listener)
    feed.publish([CatalogItem(id="a")])
    unsubscribe()
    unsubscribe()
    feed.publish([CatalogItem(id="b")])

    assert listener.snapshots == [["a"]]
    assert feed.listener_count == 0


def test_new_subscriber_gets_current_snapshot_immediately() -> None:
    feed = InMemoryCatalogFeed([CatalogItem(id="a"), CatalogItem(id="b")])
    listener = RecordingListener()

    feed.subscribe(listener)

    assert listener.snapshots == [["a", "b"]]


def test_failing_listener_does_not_block_others() -> None:
    feed = InMemoryCatalogFeed()
    listener = RecordingListener()

    def broken(items: list[CatalogItem]) -> None:
        raise RuntimeError("render failed")

    feed.subscribe(broken)
    feed.subscribe(listener)
    feed.publish([CatalogItem(id="a")])

    assert listener.snapshots == [["a"]]


def test_listeners_get_independent_copies() -> None:
    feed = InMemoryCatalogFeed()
    received: list[list[CatalogItem]] = []

    def mutating(items: list[CatalogItem]) -> None:
        items.clear()

    feed.subscribe(mutating)
    feed.subscribe(received.append)
    feed.publish([CatalogItem(id="a")])

    assert [item.id for item in received[0]] == ["a"]
    assert feed.snapshot == [CatalogItem(id="a")]


def test_polling_feed_publishes_only_changes_and_keeps_snapshot_on_failure() -> None:
    first = [CatalogItem(id="a")]
    client = DummyClient([first, list(first), None, [CatalogItem(id="a"), CatalogItem(id="b")]])
    feed = PollingCatalogFeed(client, interval_seconds=3600)
    listener = RecordingListener()
    feed.subscribe(listener)

    assert feed.refresh() is True
    assert feed.refresh() is False
    assert feed.refresh() is False
    assert feed.snapshot == first
    assert feed.refresh() is True

    assert listener.snapshots == [["a"], ["a", "b"]]
    assert client.calls == 4


def test_polling_feed_start_loads_immediately() -> None:
    client = DummyClient([[CatalogItem(id="a")]])
    feed = PollingCatalogFeed(client, interval_seconds=3600)
    listener = RecordingListener()
    feed.subscribe(listener)

    feed.start()
    try:
        assert listener.snapshots == [["a"]]
    finally:
        feed.stop()
