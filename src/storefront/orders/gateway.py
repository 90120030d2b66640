"""Destinations for confirmed orders."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Literal


@dataclass(slots=True, frozen=True)
class ShippingInfo:
    full_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""


@dataclass(slots=True, frozen=True)
class OrderLine:
    product_id: str
    size: str
    quantity: int
    price: float
    product_name: str | None = None
    product_brand: str | None = None


@dataclass(slots=True, frozen=True)
class OrderSummary:
    subtotal: float
    shipping: float
    tax: float

    @property
    def total(self) -> float:
        return self.subtotal + self.shipping + self.tax


@dataclass(slots=True, frozen=True)
class Order:
    """Order record handed to the order store."""

    lines: tuple[OrderLine, ...]
    shipping_info: ShippingInfo
    payment_method: str
    summary: OrderSummary
    order_date: datetime
    user_id: str = "guest"
    status: Literal["confirmed"] = "confirmed"


class OrderGateway(ABC):
    """Base class for submitting orders to the order store."""

    @abstractmethod
    def submit(self, order: Order) -> str:
        """Store ``order`` and return its identifier."""


class InMemoryOrderGateway(OrderGateway):
    """Keeps submitted orders in a list; used for development and tests."""

    def __init__(self) -> None:
        self.orders: list[Order] = []

    def submit(self, order: Order) -> str:
        self.orders.append(order)
        return f"order-{len(self.orders)}"
