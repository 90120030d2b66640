"""Application bootstrapper for the storefront discovery engine."""
from __future__ import annotations

import logging
import threading

from .api.client import DocumentStoreClient
from .catalog.feed import PollingCatalogFeed
from .config import DEFAULT_CONFIG, AppConfig
from .models import CatalogItem
from .services.guest_cart import GuestCartStore
from .services.storefront_service import StorefrontService
from .storage.keyvalue import JsonFileKeyValueStore

logger = logging.getLogger(__name__)


def create_storefront_runtime(config: AppConfig = DEFAULT_CONFIG) -> StorefrontService:
    """Wire the catalog feed, guest cart and storefront session together."""

    config.ensure_data_directories()
    client = DocumentStoreClient(
        documents_url=config.catalog.documents_url,
        api_key=config.catalog.api_key,
        collection=config.catalog.collection,
        page_size=config.catalog.page_size,
    )
    feed = PollingCatalogFeed(client, config.catalog.interval_seconds)
    guest_cart = GuestCartStore(
        JsonFileKeyValueStore(config.storage_directory),
        storage_key=config.guest_cart.storage_key,
        expiry=config.guest_cart.expiry,
    )
    return StorefrontService(
        feed=feed,
        cart=guest_cart,
        discovery_question_count=config.discovery.question_count,
    )


def run() -> None:
    """Entrypoint used by the CLI: follow the catalog and log what is visible."""

    logging.basicConfig(level=logging.INFO)
    storefront = create_storefront_runtime()

    def _report(items: list[CatalogItem]) -> None:
        logger.info(
            "%s of %s items visible (%s active filters)",
            len(storefront.visible_items()),
            len(items),
            storefront.active_filter_count(),
        )

    storefront.open()
    unsubscribe = storefront.feed.subscribe(_report)
    storefront.feed.start()
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        unsubscribe()
        storefront.feed.stop()
        storefront.close()


if __name__ == "__main__":  # pragma: no cover - manual execution only
    run()
