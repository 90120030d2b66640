"""Service for managing a signed-in shopper's wishlist."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from ..models import CatalogItem, UserContext


@dataclass(slots=True)
class WishlistService:
    """Keeps the ordered product ids a shopper has saved."""

    product_ids: list[str] = field(default_factory=list)

    def toggle(self, user: UserContext | None, product_id: str) -> bool:
        """Save or unsave ``product_id``; returns whether it is now saved."""

        if user is None:
            raise PermissionError("Please login to save to wishlist")
        if product_id in self.product_ids:
            self.product_ids.remove(product_id)
            return False
        self.product_ids.append(product_id)
        return True

    def contains(self, product_id: str) -> bool:
        return product_id in self.product_ids

    def remove(self, product_id: str) -> None:
        if product_id in self.product_ids:
            self.product_ids.remove(product_id)

    def clear(self) -> None:
        self.product_ids = []

    def load(self, product_ids: Iterable[str]) -> None:
        self.product_ids = list(dict.fromkeys(product_ids))

    def items_in(self, catalog: Iterable[CatalogItem]) -> list[CatalogItem]:
        """Resolve saved ids against ``catalog``, skipping removed products."""

        by_id = {item.id: item for item in catalog}
        return [by_id[product_id] for product_id in self.product_ids if product_id in by_id]
