"""Locally persisted cart for shoppers who are not signed in."""
from __future__ import annotations

import dataclasses
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

from ..catalog.sorting import numeric
from ..models import GuestCartLine, GuestCartSnapshot
from ..storage.keyvalue import KeyValueStore, StorageError

logger = logging.getLogger(__name__)

GUEST_CART_KEY = "luxeGuestCart"
GUEST_CART_EXPIRY = timedelta(hours=3)


class CartService(ABC):
    """Interface handed to any collaborator that needs to add items to a cart."""

    @abstractmethod
    def add_or_increment(
        self,
        product_id: str,
        size: str,
        quantity: int = 1,
        product: Mapping[str, Any] | None = None,
    ) -> list[GuestCartLine]:
        """Add ``quantity`` of (``product_id``, ``size``) and return the updated lines."""


def merge_lines(base: Iterable[GuestCartLine], incoming: Iterable[GuestCartLine]) -> list[GuestCartLine]:
    """Fold ``incoming`` into ``base``.

    A line whose (product, size) pair already exists increments the existing
    quantity and keeps the existing product snapshot; other lines are appended
    in order.
    """

    merged = list(base)
    positions = {(line.product_id, line.size): index for index, line in enumerate(merged)}
    for line in incoming:
        key = (line.product_id, line.size)
        position = positions.get(key)
        if position is None:
            positions[key] = len(merged)
            merged.append(line)
        else:
            existing = merged[position]
            merged[position] = dataclasses.replace(existing, quantity=existing.quantity + line.quantity)
    return merged


def total_price(lines: Iterable[GuestCartLine]) -> float:
    """Sum of ``price * quantity`` using each line's product snapshot."""

    return sum(numeric(line.product.get("price")) * line.quantity for line in lines)


def _to_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def _require_whole_number(quantity: Any) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValueError(f"Quantity must be a whole number, got {quantity!r}")
    return quantity


class GuestCartStore(CartService):
    """Guest cart persisted under a single key with lazy expiry.

    The in-memory lines are authoritative: every mutation updates them first
    and then persists on a best-effort basis. Persistence failures are logged
    and never roll the in-memory state back.
    """

    def __init__(
        self,
        store: KeyValueStore,
        storage_key: str = GUEST_CART_KEY,
        expiry: timedelta = GUEST_CART_EXPIRY,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._storage_key = storage_key
        self._expiry = expiry
        self._clock = clock or (lambda: datetime.now(UTC))
        self._snapshot: GuestCartSnapshot | None = None

    @property
    def lines(self) -> list[GuestCartLine]:
        return list(self._current().items)

    def load(self) -> GuestCartSnapshot:
        """Read the persisted cart, returning an empty one when absent or expired."""

        try:
            raw = self._store.get(self._storage_key)
        except StorageError:
            logger.warning("Error loading guest cart", exc_info=True)
            return self._remember(GuestCartSnapshot())

        if raw is None:
            return self._remember(GuestCartSnapshot())

        try:
            snapshot = self._decode(raw)
        except (KeyError, TypeError, ValueError):
            logger.warning("Ignoring unreadable guest cart", exc_info=True)
            return self._remember(GuestCartSnapshot())

        if self._is_expired(snapshot):
            logger.info("Guest cart from %s expired", snapshot.timestamp)
            self._delete()
            return self._remember(GuestCartSnapshot())

        return self._remember(snapshot)

    def save(self, lines: Iterable[GuestCartLine]) -> GuestCartSnapshot:
        """Persist ``lines`` with a fresh timestamp, replacing any previous cart."""

        snapshot = self._remember(GuestCartSnapshot(items=tuple(lines), timestamp=self._clock()))
        payload = {
            "items": [line.to_dict() for line in snapshot.items],
            "timestamp": _to_millis(snapshot.timestamp),
        }
        try:
            self._store.set(self._storage_key, json.dumps(payload, default=str))
        except StorageError:
            logger.warning("Error saving guest cart", exc_info=True)
        return snapshot

    def add_or_increment(
        self,
        product_id: str,
        size: str,
        quantity: int = 1,
        product: Mapping[str, Any] | None = None,
    ) -> list[GuestCartLine]:
        if _require_whole_number(quantity) <= 0:
            raise ValueError(f"Quantity must be positive, got {quantity}")
        line = GuestCartLine(product_id=product_id, size=size, quantity=quantity, product=dict(product or {}))
        updated = merge_lines(self._current().items, [line])
        return list(self.save(updated).items)

    def merge(self, lines: Iterable[GuestCartLine]) -> list[GuestCartLine]:
        """Add a batch of lines using the same increment rule as ``add_or_increment``."""

        incoming = list(lines)
        if not incoming:
            return self.lines
        for line in incoming:
            if _require_whole_number(line.quantity) <= 0:
                raise ValueError(f"Quantity must be positive, got {line.quantity}")
        return list(self.save(merge_lines(self._current().items, incoming)).items)

    def update_quantity(self, product_id: str, size: str, new_quantity: int) -> list[GuestCartLine]:
        if _require_whole_number(new_quantity) <= 0:
            return self.remove(product_id, size)

        current = self._current().items
        if not any(line.product_id == product_id and line.size == size for line in current):
            return list(current)

        updated = [
            dataclasses.replace(line, quantity=new_quantity)
            if line.product_id == product_id and line.size == size
            else line
            for line in current
        ]
        return list(self.save(updated).items)

    def remove(self, product_id: str, size: str) -> list[GuestCartLine]:
        current = self._current().items
        updated = [line for line in current if not (line.product_id == product_id and line.size == size)]
        if len(updated) == len(current):
            return list(current)
        return list(self.save(updated).items)

    def clear(self) -> None:
        """Drop the cart from memory and from persistence."""

        self._remember(GuestCartSnapshot())
        self._delete()

    def _current(self) -> GuestCartSnapshot:
        if self._snapshot is None or self._is_expired(self._snapshot):
            return self.load()
        return self._snapshot

    def _remember(self, snapshot: GuestCartSnapshot) -> GuestCartSnapshot:
        self._snapshot = snapshot
        return snapshot

    def _is_expired(self, snapshot: GuestCartSnapshot) -> bool:
        if snapshot.timestamp is None:
            return False
        return self._clock() - snapshot.timestamp > self._expiry

    def _delete(self) -> None:
        try:
            self._store.remove(self._storage_key)
        except StorageError:
            logger.warning("Error clearing guest cart", exc_info=True)

    @staticmethod
    def _decode(raw: str) -> GuestCartSnapshot:
        payload = json.loads(raw)
        if not isinstance(payload, Mapping):
            raise ValueError("Guest cart payload must be an object")
        millis = payload["timestamp"]
        if isinstance(millis, bool) or not isinstance(millis, (int, float)):
            raise ValueError(f"Invalid guest cart timestamp: {millis!r}")
        items = payload.get("items") or []
        return GuestCartSnapshot(
            items=tuple(GuestCartLine.from_mapping(entry) for entry in items),
            timestamp=datetime.fromtimestamp(millis / 1000, tz=UTC),
        )
