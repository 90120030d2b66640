"""Ordering strategies for the visible product list."""
from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any

from ..models import CatalogItem

_OLDEST = datetime.min.replace(tzinfo=UTC)


def numeric(value: Any) -> float:
    """Coerce a catalog number, treating anything non-numeric as ``0``."""

    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if number == number else 0.0


def _created_at(item: CatalogItem) -> datetime:
    created_at = item.created_at
    if created_at is None:
        return _OLDEST
    return created_at if created_at.tzinfo else created_at.replace(tzinfo=UTC)


# key name -> (sort key, descending)
_STRATEGIES: dict[str, tuple[Callable[[CatalogItem], Any], bool]] = {
    "newest": (_created_at, True),
    "priceHigh": (lambda item: numeric(item.price), True),
    "priceLow": (lambda item: numeric(item.price), False),
    "rating": (lambda item: numeric(item.rating), True),
    "featured": (lambda item: bool(item.featured), True),
}

SORT_KEYS: tuple[str, ...] = tuple(_STRATEGIES)


def sort_items(items: Iterable[CatalogItem], key: str) -> list[CatalogItem]:
    """Return ``items`` ordered by ``key`` without touching the input.

    The sort is stable, so ties keep their original relative order. An
    unknown key returns the items in their original order.
    """

    ordered = list(items)
    strategy = _STRATEGIES.get(key)
    if strategy is None:
        return ordered
    sort_key, descending = strategy
    return sorted(ordered, key=sort_key, reverse=descending)
