"""Live catalog snapshots delivered to subscribed listeners."""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable

from ..api.client import DocumentStoreClient
from ..models import CatalogItem
from ..scheduler.poller import PollingScheduler

logger = logging.getLogger(__name__)

CatalogListener = Callable[[list[CatalogItem]], None]
Unsubscribe = Callable[[], None]


class CatalogFeed(ABC):
    """Push-style source of full catalog snapshots.

    Listeners receive the complete item list on every change, and a new
    listener is immediately sent the latest snapshot when one is available.
    """

    def __init__(self) -> None:
        self._listeners: dict[int, CatalogListener] = {}
        self._next_token = 0
        self._snapshot: list[CatalogItem] | None = None
        self._lock = threading.Lock()

    @property
    def snapshot(self) -> list[CatalogItem] | None:
        return None if self._snapshot is None else list(self._snapshot)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: CatalogListener) -> Unsubscribe:
        """Register ``listener`` and return a callable that removes it again."""

        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._listeners[token] = listener
            snapshot = self.snapshot

        if snapshot is not None:
            self._deliver(listener, snapshot)

        def unsubscribe() -> None:
            with self._lock:
                self._listeners.pop(token, None)

        return unsubscribe

    def _publish(self, items: Iterable[CatalogItem]) -> None:
        with self._lock:
            self._snapshot = list(items)
            listeners = list(self._listeners.values())
            snapshot = list(self._snapshot)
        for listener in listeners:
            self._deliver(listener, list(snapshot))

    @staticmethod
    def _deliver(listener: CatalogListener, snapshot: list[CatalogItem]) -> None:
        try:
            listener(snapshot)
        except Exception:
            logger.exception("Catalog listener %r failed", listener)

    @abstractmethod
    def start(self) -> None:
        """Begin producing snapshots."""

    @abstractmethod
    def stop(self) -> None:
        """Stop producing snapshots. Subscriptions are kept."""


class InMemoryCatalogFeed(CatalogFeed):
    """Feed driven by explicit ``publish`` calls."""

    def __init__(self, items: Iterable[CatalogItem] | None = None) -> None:
        super().__init__()
        if items is not None:
            self._snapshot = list(items)

    def publish(self, items: Iterable[CatalogItem]) -> None:
        self._publish(items)

    def start(self) -> None:
        return None

    def stop(self) -> None:
        return None


class PollingCatalogFeed(CatalogFeed):
    """Feed that re-reads the product collection on a fixed interval."""

    def __init__(self, client: DocumentStoreClient, interval_seconds: float) -> None:
        super().__init__()
        self._client = client
        self._scheduler = PollingScheduler(interval_seconds, self.refresh)

    def start(self) -> None:
        """Load the catalog once, then keep polling in the background."""

        self.refresh()
        self._scheduler.start()

    def stop(self) -> None:
        self._scheduler.stop()

    def refresh(self) -> bool:
        """Fetch the catalog and notify listeners when it changed.

        Returns ``True`` when a new snapshot was published. A failed fetch
        keeps the previous snapshot.
        """

        items = self._client.fetch_products()
        if items is None:
            return False
        if items == self._snapshot:
            logger.debug("Catalog unchanged (%s items)", len(items))
            return False
        logger.info("Catalog updated: %s items", len(items))
        self._publish(items)
        return True
