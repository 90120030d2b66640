"""Rules for sellers creating and managing product listings."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..models import CatalogItem, UserContext


@dataclass(slots=True)
class ListingDraft:
    """Form values entered by a seller for a new product."""

    name: str
    brand: str
    price: str
    image_url: str
    sizes: list[str] = field(default_factory=list)
    original_price: str = ""
    description: str = ""
    condition: str = "new"
    category: str = ""
    color: str = ""
    material: str = ""
    target_gender: str = "unisex"
    age_group: str = "adult"
    season: str = "all-season"
    style: str = "casual"
    tags: str = ""
    featured: bool = False


def can_create_listing(user: UserContext | None) -> bool:
    return user is not None and user.role in ("customer", "admin")


def can_manage_listing(user: UserContext | None, item: CatalogItem) -> bool:
    """Admins manage every listing; sellers manage their own."""

    if user is None:
        return False
    if user.is_admin:
        return True
    return item.seller_id is not None and item.seller_id == user.user_id


def _parse_price(value: str) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def validate_listing(draft: ListingDraft) -> list[str]:
    """Return the problems preventing ``draft`` from being published."""

    errors: list[str] = []
    if not all(part.strip() for part in (draft.name, draft.brand, draft.price, draft.image_url)):
        errors.append("Please fill in all required fields: Name, Brand, Price, and Image URL")
    elif (price := _parse_price(draft.price)) is None or not price > 0:
        errors.append("Please enter a valid price greater than 0")
    if not draft.sizes:
        errors.append("Please select at least one available size")
    return errors


def draft_from_item(item: CatalogItem) -> ListingDraft:
    """Pre-fill the edit form with the current values of ``item``."""

    return ListingDraft(
        name=item.name or "",
        brand=item.brand or "",
        price=_format_price(item.price),
        original_price=_format_price(item.original_price),
        image_url=item.image or "",
        sizes=list(item.sizes),
        description=item.description or "",
        condition=item.condition or "new",
        category=item.category or "",
        color=item.color or "",
        material=item.material or "",
        target_gender=item.target_gender or "unisex",
        age_group=item.age_group or "adult",
        season=item.season or "all-season",
        style=item.style or "casual",
        tags=", ".join(item.tags),
        featured=item.featured,
    )


def _format_price(value: float | None) -> str:
    if value is None:
        return ""
    return str(int(value)) if float(value).is_integer() else str(value)


def _require_valid(draft: ListingDraft) -> None:
    errors = validate_listing(draft)
    if errors:
        raise ValueError("; ".join(errors))


def _listing_fields(draft: ListingDraft) -> dict[str, Any]:
    price = float(draft.price)
    original_price = _parse_price(draft.original_price) if draft.original_price.strip() else None
    return {
        "name": draft.name.strip(),
        "brand": draft.brand.strip(),
        "price": price,
        "originalPrice": original_price if original_price is not None else price,
        "image": draft.image_url.strip(),
        "description": draft.description.strip(),
        "condition": draft.condition,
        "category": draft.category,
        "color": draft.color.strip(),
        "material": draft.material.strip(),
        "targetGender": draft.target_gender,
        "ageGroup": draft.age_group,
        "season": draft.season,
        "style": draft.style,
        "sizes": list(draft.sizes),
        "tags": [tag.strip() for tag in draft.tags.split(",") if tag.strip()],
    }


def build_listing_document(draft: ListingDraft, user: UserContext, now: datetime) -> dict[str, Any]:
    """Document stored in the product collection for a validated draft."""

    _require_valid(draft)
    if not can_create_listing(user):
        raise PermissionError("Your role does not allow creating listings")

    return {
        **_listing_fields(draft),
        "featured": draft.featured if user.is_admin else False,
        "rating": 0,
        "ratingCount": 0,
        "views": 0,
        "likes": 0,
        "sellerId": user.user_id,
        "sellerEmail": user.email,
        "sellerRole": user.role,
        "createdAt": now,
        "updatedAt": now,
        "isActive": True,
        "inStock": True,
    }


def build_listing_update(
    draft: ListingDraft, user: UserContext | None, item: CatalogItem, now: datetime
) -> dict[str, Any]:
    """Fields to overwrite on ``item`` after the seller edits it.

    Seller, counters and creation time are left untouched. Only admins can
    change whether a listing is featured.
    """

    if not can_manage_listing(user, item):
        raise PermissionError(f"Not allowed to edit listing {item.id}")
    _require_valid(draft)

    return {
        **_listing_fields(draft),
        "featured": draft.featured if user is not None and user.is_admin else item.featured,
        "updatedAt": now,
    }
