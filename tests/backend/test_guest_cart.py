from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from storefront.models import GuestCartLine
from storefront.services.guest_cart import GUEST_CART_KEY, GuestCartStore, merge_lines, total_price
from storefront.storage.keyvalue import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore, StorageError


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now


class FailingStore(KeyValueStore):
    def __init__(self) -> None:
        self.calls: list[str] = []

    def get(self, key: str) -> str | None:
        self.calls.append("get")
        raise StorageError("disk unavailable")

    def set(self, key: str, value: str) -> None:
        self.calls.append("set")
        raise StorageError("disk unavailable")

    def remove(self, key: str) -> None:
        self.calls.append("remove")
        raise StorageError("disk unavailable")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def cart(store: InMemoryKeyValueStore, clock: FakeClock) -> GuestCartStore:
    return GuestCartStore(store, clock=clock)


def _persisted(store: InMemoryKeyValueStore) -> dict:
    raw = store.get(GUEST_CART_KEY)
    assert raw is not None
    return json.loads(raw)


def test_load_without_persisted_cart_is_empty(cart: GuestCartStore) -> None:
    snapshot = cart.load()

    assert snapshot.items == ()
    assert snapshot.timestamp is None


def test_adding_same_product_and_size_twice_increments(cart: GuestCartStore, store: InMemoryKeyValueStore) -> None:
    product = {"id": "p1", "name": "Tee", "price": 25}

    cart.add_or_increment("p1", "M", 1, product)
    lines = cart.add_or_increment("p1", "M", 1, product)

    assert len(lines) == 1
    assert lines[0].quantity == 2
    payload = _persisted(store)
    assert payload["items"] == [{"productId": "p1", "size": "M", "quantity": 2, "product": product}]
    assert isinstance(payload["timestamp"], int)


def test_different_size_creates_new_line(cart: GuestCartStore) -> None:
    cart.add_or_increment("p1", "M", 1, {"price": 25})
    lines = cart.add_or_increment("p1", "L", 2, {"price": 25})

    assert [(line.size, line.quantity) for line in lines] == [("M", 1), ("L", 2)]


def test_add_rejects_non_positive_quantity(cart: GuestCartStore) -> None:
    with pytest.raises(ValueError):
        cart.add_or_increment("p1", "M", 0)


@pytest.mark.parametrize("quantity", [2.5, True, "2"])
def test_quantities_must_be_whole_numbers(cart: GuestCartStore, quantity: object) -> None:
    cart.add_or_increment("p1", "M", 1, {"price": 10})

    with pytest.raises(ValueError):
        cart.add_or_increment("p1", "M", quantity)  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        cart.update_quantity("p1", "M", quantity)  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        cart.merge([GuestCartLine(product_id="p2", size="S", quantity=quantity)])  # type: ignore[arg-type]

    assert [(line.product_id, line.quantity) for line in cart.lines] == [("p1", 1)]


def test_saved_cart_survives_reload(store: InMemoryKeyValueStore, clock: FakeClock) -> None:
    cart = GuestCartStore(store, clock=clock)
    cart.add_or_increment("p1", "M", 1, {"price": 10})
    cart.update_quantity("p1", "M", 4)

    reloaded = GuestCartStore(store, clock=clock).load()

    assert [(line.product_id, line.quantity) for line in reloaded.items] == [("p1", 4)]


def test_update_quantity_replaces_in_place(cart: GuestCartStore) -> None:
    cart.add_or_increment("p1", "M", 1, {"price": 10})
    cart.add_or_increment("p2", "S", 1, {"price": 20})

    lines = cart.update_quantity("p1", "M", 5)

    assert [(line.product_id, line.quantity) for line in lines] == [("p1", 5), ("p2", 1)]


def test_update_quantity_to_zero_removes_line(cart: GuestCartStore, store: InMemoryKeyValueStore) -> None:
    cart.add_or_increment("1", "M", 1, {"price": 10})

    lines = cart.update_quantity("1", "M", 0)

    assert lines == []
    assert _persisted(store)["items"] == []


def test_update_quantity_for_missing_line_is_noop(cart: GuestCartStore, store: InMemoryKeyValueStore) -> None:
    cart.add_or_increment("p1", "M", 1, {"price": 10})
    before = store.get(GUEST_CART_KEY)

    lines = cart.update_quantity("p9", "M", 3)

    assert [line.product_id for line in lines] == ["p1"]
    assert store.get(GUEST_CART_KEY) == before


def test_remove_filters_matching_line(cart: GuestCartStore) -> None:
    cart.add_or_increment("p1", "M", 1, {"price": 10})
    cart.add_or_increment("p1", "L", 1, {"price": 10})

    lines = cart.remove("p1", "M")

    assert [(line.product_id, line.size) for line in lines] == [("p1", "L")]


def test_clear_deletes_persisted_cart(cart: GuestCartStore, store: InMemoryKeyValueStore) -> None:
    cart.add_or_increment("p1", "M", 1, {"price": 10})

    cart.clear()

    assert store.get(GUEST_CART_KEY) is None
    assert cart.lines == []


def test_expired_cart_is_cleared_on_load(store: InMemoryKeyValueStore, clock: FakeClock) -> None:
    stale = clock.now - timedelta(hours=4)
    store.set(
        GUEST_CART_KEY,
        json.dumps(
            {
                "items": [{"productId": "p1", "size": "M", "quantity": 1, "product": {"price": 10}}],
                "timestamp": int(stale.timestamp() * 1000),
            }
        ),
    )
    cart = GuestCartStore(store, clock=clock)

    snapshot = cart.load()

    assert snapshot.items == ()
    assert snapshot.timestamp is None
    assert store.get(GUEST_CART_KEY) is None


def test_cart_within_expiry_window_is_kept(cart: GuestCartStore, clock: FakeClock) -> None:
    cart.add_or_increment("p1", "M", 1, {"price": 10})
    clock.now += timedelta(hours=2, minutes=59)

    assert [line.product_id for line in cart.load().items] == ["p1"]


def test_in_memory_cart_expires_lazily(cart: GuestCartStore, clock: FakeClock, store: InMemoryKeyValueStore) -> None:
    cart.add_or_increment("p1", "M", 1, {"price": 10})
    clock.now += timedelta(hours=3, seconds=1)

    lines = cart.add_or_increment("p2", "S", 1, {"price": 5})

    assert [line.product_id for line in lines] == ["p2"]
    assert [item["productId"] for item in _persisted(store)["items"]] == ["p2"]


def test_every_write_resets_the_age(cart: GuestCartStore, clock: FakeClock) -> None:
    cart.add_or_increment("p1", "M", 1, {"price": 10})
    clock.now += timedelta(hours=2)
    cart.update_quantity("p1", "M", 2)
    clock.now += timedelta(hours=2)

    assert cart.load().items[0].quantity == 2


def test_unreadable_payload_is_treated_as_empty(store: InMemoryKeyValueStore, clock: FakeClock) -> None:
    store.set(GUEST_CART_KEY, "{not json")
    cart = GuestCartStore(store, clock=clock)

    assert cart.load().items == ()


@pytest.mark.parametrize("content", [b"\xff\xfe{bad", b"{not json", b"[]", b"{\"items\": []}"])
def test_corrupt_cart_file_is_treated_as_empty(tmp_path: Path, clock: FakeClock, content: bytes) -> None:
    store = JsonFileKeyValueStore(tmp_path)
    store.file_path_for(GUEST_CART_KEY).write_bytes(content)
    cart = GuestCartStore(store, clock=clock)

    assert cart.load().items == ()

    lines = cart.add_or_increment("p1", "M", 1, {"price": 10})

    assert [line.product_id for line in lines] == ["p1"]
    assert [line.product_id for line in GuestCartStore(store, clock=clock).load().items] == ["p1"]


def test_persistence_failures_keep_in_memory_state(clock: FakeClock) -> None:
    failing = FailingStore()
    cart = GuestCartStore(failing, clock=clock)

    assert cart.load().items == ()
    cart.add_or_increment("p1", "M", 1, {"price": 10})
    lines = cart.add_or_increment("p1", "M", 2, {"price": 10})
    cart.clear()

    assert lines[0].quantity == 3
    assert cart.lines == []
    assert "set" in failing.calls
    assert "remove" in failing.calls


def test_merge_folds_lines_with_increment_rule(cart: GuestCartStore) -> None:
    cart.add_or_increment("p1", "M", 1, {"price": 10})

    lines = cart.merge(
        [
            GuestCartLine(product_id="p1", size="M", quantity=2, product={"price": 10}),
            GuestCartLine(product_id="p2", size="S", quantity=1, product={"price": 4}),
        ]
    )

    assert [(line.product_id, line.quantity) for line in lines] == [("p1", 3), ("p2", 1)]


def test_merge_lines_keeps_existing_snapshot() -> None:
    base = [GuestCartLine(product_id="p1", size="M", quantity=1, product={"price": 10})]
    incoming = [GuestCartLine(product_id="p1", size="M", quantity=1, product={"price": 12})]

    merged = merge_lines(base, incoming)

    assert merged[0].quantity == 2
    assert merged[0].product == {"price": 10}
    assert base[0].quantity == 1


def test_total_price_multiplies_price_by_quantity() -> None:
    lines = [
        GuestCartLine(product_id="p1", size="M", quantity=2, product={"price": 19.5}),
        GuestCartLine(product_id="p2", size="S", quantity=1, product={"price": "oops"}),
        GuestCartLine(product_id="p3", size="L", quantity=3, product={"price": 10}),
    ]

    assert total_price(lines) == pytest.approx(69.0)
    assert total_price([]) == 0
