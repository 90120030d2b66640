"""Domain models used throughout the storefront discovery engine."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal, Optional

Condition = Literal["new", "like-new", "good", "fair", "vintage"]
Gender = Literal["men", "women", "unisex", "kids"]
AgeGroup = Literal["adult", "teen", "child", "toddler", "baby"]
Season = Literal["all-season", "summer", "winter", "spring", "fall"]
Style = Literal["casual", "formal", "business", "party", "vintage", "bohemian", "minimalist", "streetwear"]
Role = Literal["customer", "admin"]

PRICE_CEILING = 2000
"""Upper bound of the price slider; a range ending here has no upper limit."""


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _labels(value: Any) -> tuple[str, ...]:
    if isinstance(value, str) or not isinstance(value, (list, tuple, set, frozenset)):
        return ()
    return tuple(text for text in (_text(entry) for entry in value) if text)


def parse_timestamp(value: Any) -> datetime | None:
    """Best-effort conversion of stored timestamps to aware datetimes.

    Accepts datetimes, ISO-8601 strings, epoch milliseconds and the
    ``{"seconds": ..., "nanoseconds": ...}`` shape used by serialised
    document store timestamps. Anything else yields ``None``.
    """

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, Mapping) and "seconds" in value:
        seconds = _number(value.get("seconds"))
        if seconds is None:
            return None
        nanos = _number(value.get("nanoseconds")) or 0
        return datetime.fromtimestamp(seconds + nanos / 1e9, tz=UTC)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    millis = _number(value)
    if millis is None:
        return None
    try:
        return datetime.fromtimestamp(millis / 1000, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None


@dataclass(slots=True, frozen=True)
class CatalogItem:
    """One product listed in the storefront catalog."""

    id: str
    name: Optional[str] = None
    brand: Optional[str] = None
    description: Optional[str] = None
    tags: tuple[str, ...] = ()
    category: Optional[str] = None
    color: Optional[str] = None
    material: Optional[str] = None
    price: Optional[float] = None
    original_price: Optional[float] = None
    sizes: tuple[str, ...] = ()
    condition: Optional[str] = None
    target_gender: Optional[str] = None
    age_group: Optional[str] = None
    season: Optional[str] = None
    style: Optional[str] = None
    rating: Optional[float] = None
    featured: bool = False
    in_stock: bool = True
    created_at: Optional[datetime] = None
    seller_id: Optional[str] = None
    image: Optional[str] = None

    @classmethod
    def from_mapping(cls, document: Mapping[str, Any], item_id: str | None = None) -> "CatalogItem":
        """Build an item from a raw catalog document.

        Missing or malformed fields fall back to their defaults instead of
        raising, so one bad document never prevents the rest of a snapshot
        from loading.
        """

        in_stock = document.get("inStock")
        return cls(
            id=str(item_id if item_id is not None else document.get("id", "")),
            name=_text(document.get("name")),
            brand=_text(document.get("brand")),
            description=_text(document.get("description")),
            tags=_labels(document.get("tags")),
            category=_text(document.get("category")),
            color=_text(document.get("color")),
            material=_text(document.get("material")),
            price=_number(document.get("price")),
            original_price=_number(document.get("originalPrice")),
            sizes=_labels(document.get("sizes")),
            condition=_text(document.get("condition")),
            target_gender=_text(document.get("targetGender")),
            age_group=_text(document.get("ageGroup")),
            season=_text(document.get("season")),
            style=_text(document.get("style")),
            rating=_number(document.get("rating")),
            featured=document.get("featured") is True,
            in_stock=in_stock is not False,
            created_at=parse_timestamp(document.get("createdAt")),
            seller_id=_text(document.get("sellerId")),
            image=_text(document.get("image")),
        )

    def to_snapshot(self) -> dict[str, Any]:
        """Denormalised copy of the item stored alongside guest cart lines."""

        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand,
            "price": self.price,
            "originalPrice": self.original_price,
            "sizes": list(self.sizes),
            "image": self.image,
            "condition": self.condition,
        }

    @property
    def discount_percentage(self) -> int:
        """Whole-number discount relative to ``original_price``."""

        price = self.price or 0
        if self.original_price and self.original_price > price:
            return round((self.original_price - price) / self.original_price * 100)
        return 0


@dataclass(slots=True, frozen=True)
class PriceRange:
    min: float = 0
    max: float = PRICE_CEILING

    @property
    def is_unbounded(self) -> bool:
        return self.max == PRICE_CEILING


@dataclass(slots=True, frozen=True)
class FilterCriteria:
    """The complete set of active filter constraints.

    Empty tuples mean "no constraint". Instances are immutable; helpers in
    :mod:`storefront.catalog.filtering` return modified copies.
    """

    brands: tuple[str, ...] = ()
    sizes: tuple[str, ...] = ()
    conditions: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    colors: tuple[str, ...] = ()
    materials: tuple[str, ...] = ()
    genders: tuple[str, ...] = ()
    age_groups: tuple[str, ...] = ()
    seasons: tuple[str, ...] = ()
    styles: tuple[str, ...] = ()
    price_range: PriceRange = field(default_factory=PriceRange)
    rating: float = 0
    featured_only: bool = False
    in_stock_only: bool = False


ARRAY_FIELDS: tuple[str, ...] = (
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


def default_criteria() -> FilterCriteria:
    """Return criteria that accept every catalog item."""

    return FilterCriteria()


@dataclass(slots=True, frozen=True)
class GuestCartLine:
    """A single (product, size) line in a guest cart."""

    product_id: str
    size: str
    quantity: int
    product: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "productId": self.product_id,
            "size": self.size,
            "quantity": self.quantity,
            "product": dict(self.product),
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "GuestCartLine":
        quantity = data["quantity"]
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValueError(f"Invalid quantity: {quantity!r}")
        product = data.get("product") or {}
        if not isinstance(product, Mapping):
            raise ValueError("Product snapshot must be an object")
        return cls(
            product_id=str(data["productId"]),
            size=str(data["size"]),
            quantity=quantity,
            product=dict(product),
        )


@dataclass(slots=True, frozen=True)
class GuestCartSnapshot:
    items: tuple[GuestCartLine, ...] = ()
    timestamp: Optional[datetime] = None


@dataclass(slots=True, frozen=True)
class UserContext:
    """Identity of the signed-in shopper, supplied by the auth layer."""

    user_id: str
    role: Role = "customer"
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
