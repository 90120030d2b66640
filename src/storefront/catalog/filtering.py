"""Predicate engine that decides which catalog items are displayed."""
from __future__ import annotations

import dataclasses
from collections.abc import Iterable

from ..models import ARRAY_FIELDS, PRICE_CEILING, CatalogItem, FilterCriteria, PriceRange
from .sorting import numeric, sort_items

PRICE_PRESETS: tuple[tuple[float, float], ...] = (
    (0, PRICE_CEILING),
    (0, 100),
    (100, 300),
    (300, 500),
    (500, PRICE_CEILING),
)

_FLAG_FIELDS = ("featured_only", "in_stock_only")

# criteria field -> item attribute, matched by exact membership
_EXACT_FIELDS: dict[str, str] = {
    "brands": "brand",
    "conditions": "condition",
    "categories": "category",
    "genders": "target_gender",
    "age_groups": "age_group",
    "seasons": "season",
    "styles": "style",
}

# matched by case-insensitive containment since items store free text
_CONTAINS_FIELDS: dict[str, str] = {
    "colors": "color",
    "materials": "material",
}


def _matches_search(item: CatalogItem, search_text: str) -> bool:
    if not search_text:
        return True
    needle = search_text.lower()
    haystack = [item.name, item.brand, item.description, item.category, item.color, *item.tags]
    return any(needle in str(value).lower() for value in haystack if value)


def _matches_contains(value: str | None, accepted: tuple[str, ...]) -> bool:
    if not value:
        return False
    lowered = str(value).lower()
    return any(candidate.lower() in lowered for candidate in accepted)


def _matches_price(item: CatalogItem, price_range: PriceRange) -> bool:
    price = numeric(item.price)
    if price < price_range.min:
        return False
    return price_range.is_unbounded or price <= price_range.max


def matches(item: CatalogItem, criteria: FilterCriteria, search_text: str = "") -> bool:
    """Return ``True`` when ``item`` satisfies every active constraint."""

    if not _matches_search(item, search_text):
        return False

    for field_name, attribute in _EXACT_FIELDS.items():
        accepted = getattr(criteria, field_name)
        if accepted and getattr(item, attribute, None) not in accepted:
            return False

    for field_name, attribute in _CONTAINS_FIELDS.items():
        accepted = getattr(criteria, field_name)
        if accepted and not _matches_contains(getattr(item, attribute, None), accepted):
            return False

    if criteria.sizes and not set(item.sizes or ()) & set(criteria.sizes):
        return False

    if not _matches_price(item, criteria.price_range):
        return False

    if criteria.rating and numeric(item.rating) < criteria.rating:
        return False

    if criteria.featured_only and not item.featured:
        return False

    if criteria.in_stock_only and item.in_stock is False:
        return False

    return True


def filter_and_sort(
    catalog: Iterable[CatalogItem],
    criteria: FilterCriteria,
    search_text: str = "",
    sort_key: str = "newest",
) -> list[CatalogItem]:
    """Select the items matching ``criteria`` and order them by ``sort_key``."""

    matched = [item for item in catalog if matches(item, criteria, search_text)]
    return sort_items(matched, sort_key)


def active_filter_count(criteria: FilterCriteria) -> int:
    """Number of non-default constraints, shown as a badge on the filter button."""

    count = sum(len(getattr(criteria, field_name)) for field_name in ARRAY_FIELDS)
    count += 1 if criteria.rating > 0 else 0
    count += 1 if criteria.featured_only else 0
    count += 1 if criteria.in_stock_only else 0
    price_range = criteria.price_range
    count += 1 if price_range.min > 0 or price_range.max < PRICE_CEILING else 0
    return count


def toggle_value(criteria: FilterCriteria, field_name: str, value: str) -> FilterCriteria:
    """Add ``value`` to an array field, or remove it when already selected."""

    if field_name not in ARRAY_FIELDS:
        raise KeyError(f"Unknown filter field: {field_name}")
    current: tuple[str, ...] = getattr(criteria, field_name)
    if value in current:
        updated = tuple(entry for entry in current if entry != value)
    else:
        updated = (*current, value)
    return dataclasses.replace(criteria, **{field_name: updated})


def with_price_range(criteria: FilterCriteria, minimum: float, maximum: float) -> FilterCriteria:
    if minimum < 0 or maximum < minimum:
        raise ValueError(f"Invalid price range: {minimum}-{maximum}")
    return dataclasses.replace(criteria, price_range=PriceRange(min=minimum, max=maximum))


def with_rating(criteria: FilterCriteria, rating: float) -> FilterCriteria:
    if not 0 <= rating <= 5:
        raise ValueError(f"Rating must be between 0 and 5, got {rating}")
    return dataclasses.replace(criteria, rating=rating)


def with_flag(criteria: FilterCriteria, field_name: str, enabled: bool) -> FilterCriteria:
    if field_name not in _FLAG_FIELDS:
        raise KeyError(f"Unknown filter flag: {field_name}")
    return dataclasses.replace(criteria, **{field_name: enabled})
