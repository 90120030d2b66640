"""Coordinates the catalog feed, filters and cart for the home screen."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..catalog.facets import FacetMap, extract_facets
from ..catalog.feed import CatalogFeed, Unsubscribe
from ..catalog.filtering import active_filter_count, filter_and_sort
from ..discovery.session import DiscoverySession
from ..models import CatalogItem, FilterCriteria, GuestCartLine, UserContext, default_criteria
from .guest_cart import CartService
from .listing_service import can_manage_listing

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StorefrontService:
    """Holds the current catalog and view settings for one shopper.

    The service owns no filtering logic of its own: every read recomputes the
    result from the latest snapshot and the current criteria.
    """

    feed: CatalogFeed
    cart: CartService
    user: UserContext | None = None
    criteria: FilterCriteria = field(default_factory=default_criteria)
    search_text: str = ""
    sort_key: str = "newest"
    catalog: list[CatalogItem] = field(default_factory=list)
    loading: bool = True
    discovery_question_count: int = 5
    _unsubscribe: Unsubscribe | None = None

    def open(self) -> None:
        """Subscribe to catalog updates."""

        if self._unsubscribe is None:
            self._unsubscribe = self.feed.subscribe(self._on_snapshot)

    def close(self) -> None:
        """Release the catalog subscription."""

        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_snapshot(self, items: list[CatalogItem]) -> None:
        self.catalog = items
        self.loading = False
        logger.debug("Received catalog snapshot with %s items", len(items))

    def visible_items(self) -> list[CatalogItem]:
        return filter_and_sort(self.catalog, self.criteria, self.search_text, self.sort_key)

    def facets(self) -> FacetMap:
        return extract_facets(self.catalog)

    def active_filter_count(self) -> int:
        return active_filter_count(self.criteria)

    def clear_filters(self) -> None:
        self.criteria = default_criteria()
        self.search_text = ""
        self.sort_key = "newest"

    def new_discovery_session(self) -> DiscoverySession:
        session = DiscoverySession(question_count=self.discovery_question_count)
        session.start()
        return session

    def apply_discovery(self, session: DiscoverySession) -> bool:
        """Replace the criteria with the result of a completed finder session."""

        compiled = session.compiled_criteria()
        if compiled is None:
            return False
        self.criteria = compiled
        return True

    def add_to_cart(self, item: CatalogItem, size: str, quantity: int = 1) -> list[GuestCartLine]:
        """Add ``item`` in ``size`` through the injected cart service."""

        if not item.sizes:
            raise ValueError(f"No sizes available for {item.id}")
        if size not in item.sizes:
            raise ValueError(f"Size {size} is not available for {item.id}")
        return self.cart.add_or_increment(item.id, size, quantity, item.to_snapshot())

    def can_manage(self, item: CatalogItem) -> bool:
        return can_manage_listing(self.user, item)
