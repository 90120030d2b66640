"""Order totals and order placement for the checkout screen."""
from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from ..catalog.sorting import numeric
from ..config import CheckoutConfig
from ..models import GuestCartLine, UserContext
from ..orders.gateway import Order, OrderGateway, OrderLine, OrderSummary, ShippingInfo
from .guest_cart import GuestCartStore, total_price

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class CheckoutError(Exception):
    """Raised when an order cannot be placed."""

    def __init__(self, problems: list[str]) -> None:
        super().__init__("; ".join(problems))
        self.problems = problems


def summarize_order(lines: Iterable[GuestCartLine], config: CheckoutConfig | None = None) -> OrderSummary:
    """Compute subtotal, shipping and tax for ``lines``."""

    config = config or CheckoutConfig()
    subtotal = total_price(lines)
    shipping = 0.0 if subtotal > config.free_shipping_threshold else config.shipping_cost
    return OrderSummary(subtotal=subtotal, shipping=shipping, tax=subtotal * config.tax_rate)


def validate_shipping_info(info: ShippingInfo) -> list[str]:
    problems: list[str] = []
    if not all(str(value).strip() for value in dataclasses.astuple(info)):
        problems.append("Please fill in all shipping details")
    elif "@" not in info.email:
        problems.append("Please enter a valid email address")
    return problems


@dataclass(slots=True)
class CheckoutService:
    """Validates checkout input and submits orders through ``gateway``."""

    gateway: OrderGateway
    guest_cart: GuestCartStore
    config: CheckoutConfig = field(default_factory=CheckoutConfig)
    clock: Callable[[], datetime] = _utc_now

    def summary_for(self, lines: Iterable[GuestCartLine]) -> OrderSummary:
        return summarize_order(lines, self.config)

    def place_order(
        self,
        user: UserContext | None,
        lines: Iterable[GuestCartLine],
        shipping_info: ShippingInfo,
        payment_method: str = "card",
    ) -> str:
        """Submit an order for ``lines`` and return the order id.

        A guest's cart is cleared once the order has been accepted.
        """

        cart_lines = list(lines)
        problems = validate_shipping_info(shipping_info)
        if not cart_lines:
            problems.append("Your cart is empty")
        if problems:
            raise CheckoutError(problems)

        order = Order(
            lines=tuple(
                OrderLine(
                    product_id=line.product_id,
                    size=line.size,
                    quantity=line.quantity,
                    price=numeric(line.product.get("price")),
                    product_name=line.product.get("name"),
                    product_brand=line.product.get("brand"),
                )
                for line in cart_lines
            ),
            shipping_info=shipping_info,
            payment_method=payment_method,
            summary=self.summary_for(cart_lines),
            order_date=self.clock(),
            user_id=user.user_id if user else "guest",
        )
        order_id = self.gateway.submit(order)
        logger.info("Placed order %s for %s (%s lines)", order_id, order.user_id, len(order.lines))

        if user is None:
            self.guest_cart.clear()
        return order_id
