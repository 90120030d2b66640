from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from storefront.config import AppConfig
from storefront.models import CatalogItem, GuestCartLine, default_criteria, parse_timestamp


def test_from_mapping_tolerates_missing_and_malformed_fields() -> None:
    item = CatalogItem.from_mapping(
        {
            "id": 7,
            "brand": "  ",
            "price": "not a number",
            "rating": "4.5",
            "sizes": "M",
            "tags": ["Summer", None, ""],
            "featured": "yes",
        }
    )

    assert item.id == "7"
    assert item.brand is None
    assert item.price is None
    assert item.rating == 4.5
    assert item.sizes == ()
    assert item.tags == ("Summer",)
    assert item.featured is False
    assert item.in_stock is True
    assert item.created_at is None


def test_from_mapping_respects_explicit_out_of_stock() -> None:
    assert CatalogItem.from_mapping({"inStock": False}).in_stock is False


@pytest.mark.parametrize(
    "value",
    [
        datetime(2024, 1, 1, tzinfo=UTC),
        datetime(2024, 1, 1),
        "2024-01-01T00:00:00Z",
        1704067200000,
        {"seconds": 1704067200, "nanoseconds": 0},
    ],
)
def test_parse_timestamp_shapes(value: object) -> None:
    assert parse_timestamp(value) == datetime(2024, 1, 1, tzinfo=UTC)


def test_parse_timestamp_rejects_garbage() -> None:
    assert parse_timestamp("yesterday") is None
    assert parse_timestamp(None) is None
    assert parse_timestamp({"seconds": "x"}) is None


def test_discount_percentage() -> None:
    assert CatalogItem(id="a", price=75, original_price=100).discount_percentage == 25
    assert CatalogItem(id="b", price=100, original_price=80).discount_percentage == 0
    assert CatalogItem(id="c", price=100).discount_percentage == 0


def test_default_criteria_is_permissive() -> None:
    criteria = default_criteria()

    assert criteria.brands == ()
    assert criteria.price_range.min == 0
    assert criteria.price_range.is_unbounded
    assert criteria.rating == 0
    assert not criteria.featured_only and not criteria.in_stock_only


def test_guest_cart_line_rejects_invalid_quantity() -> None:
    with pytest.raises(ValueError):
        GuestCartLine.from_mapping({"productId": "p", "size": "M", "quantity": 0})
    with pytest.raises(KeyError):
        GuestCartLine.from_mapping({"productId": "p", "quantity": 1})


def test_app_config_creates_directories(tmp_path: Path) -> None:
    config = AppConfig(data_directory=tmp_path / "data")

    config.ensure_data_directories()

    assert config.storage_directory.is_dir()
    assert config.guest_cart.expiry == timedelta(hours=3)
    assert config.catalog.documents_url.endswith("/databases/(default)/documents")
