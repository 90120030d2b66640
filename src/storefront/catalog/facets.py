"""Distinct filter values observed in a catalog snapshot."""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from ..models import CatalogItem

logger = logging.getLogger(__name__)

FacetMap = dict[str, list[str]]

_SINGLE_VALUE_FACETS: dict[str, Callable[[CatalogItem], object]] = {
    "brands": lambda item: item.brand,
    "conditions": lambda item: item.condition,
    "categories": lambda item: item.category,
    "colors": lambda item: item.color,
    "materials": lambda item: item.material,
    "genders": lambda item: item.target_gender,
    "age_groups": lambda item: item.age_group,
    "seasons": lambda item: item.season,
    "styles": lambda item: item.style,
}

FACET_NAMES: tuple[str, ...] = (
    "brands",
    "sizes",
    "conditions",
    "categories",
    "colors",
    "materials",
    "genders",
    "age_groups",
    "seasons",
    "styles",
)


def extract_facets(catalog: Iterable[CatalogItem]) -> FacetMap:
    """Collect the sorted distinct values of every filterable field.

    Blank values never appear in the result. An item whose fields cannot be
    read is skipped; the facets from the remaining items are still returned.
    """

    observed: dict[str, set[str]] = {name: set() for name in FACET_NAMES}
    for item in catalog:
        try:
            contribution = _item_values(item)
        except (AttributeError, TypeError) as exc:
            logger.debug("Skipping malformed catalog item %r: %s", item, exc)
            continue
        for name, values in contribution.items():
            observed[name].update(values)

    return {name: sorted(values) for name, values in observed.items()}


def _item_values(item: CatalogItem) -> dict[str, set[str]]:
    values: dict[str, set[str]] = {"sizes": {str(size) for size in item.sizes if _present(size)}}
    for name, getter in _SINGLE_VALUE_FACETS.items():
        value = getter(item)
        values[name] = {str(value)} if _present(value) else set()
    return values


def _present(value: object) -> bool:
    return value is not None and bool(str(value).strip())
