"""Cart aggregate with derived pricing and change notifications."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal

from furni.schemas.cart import CartItem
from furni.schemas.catalog import Product
from furni.settings import AppSettings

logger = logging.getLogger(__name__)

CartListener = Callable[["Cart"], None]

_ZERO = Decimal("0")


@dataclass(frozen=True)
class ShippingPolicy:
    """Flat shipping rate, optionally waived from a subtotal threshold."""

    flat_rate: Decimal = _ZERO
    free_threshold: Decimal | None = None

    @classmethod
    def from_settings(cls, settings: AppSettings) -> ShippingPolicy:
        return cls(
            flat_rate=settings.shipping_flat_rate,
            free_threshold=settings.free_shipping_threshold,
        )

    def amount_for(self, subtotal: Decimal, product_count: int) -> Decimal:
        if product_count == 0:
            return _ZERO
        if self.free_threshold is not None and subtotal >= self.free_threshold:
            return _ZERO
        return self.flat_rate


class Cart:
    """Ordered line items; at most one line per product id.

    Every mutation notifies the subscribers synchronously, in subscription
    order, while the mutation lock is still held, so listeners observe the
    changes one at a time.
    """

    def __init__(self, shipping_policy: ShippingPolicy | None = None) -> None:
        self._items: list[CartItem] = []
        self._shipping_policy = shipping_policy or ShippingPolicy()
        self._listeners: list[CartListener] = []
        self._lock = threading.RLock()

    @property
    def items(self) -> tuple[CartItem, ...]:
        """Copies of the line items; mutate the cart through its methods."""

        with self._lock:
            return tuple(item.model_copy() for item in self._items)

    @property
    def shipping_policy(self) -> ShippingPolicy:
        return self._shipping_policy

    def __len__(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def index_of(self, product: Product) -> int | None:
        with self._lock:
            for index, item in enumerate(self._items):
                if item.product.id == product.id:
                    return index
        return None

    # -- Mutations ----------------------------------------------------------

    def add_product(self, product: Product) -> None:
        """Add one unit of ``product``, merging with its existing line."""

        with self._lock:
            index = self.index_of(product)
            if index is None:
                self._items.append(CartItem(product=product, quantity=1))
            else:
                self._items[index].quantity += 1
            self._notify()

    def set_quantity(self, item_index: int, value: int) -> None:
        """Set the absolute quantity of a line; values below 1 become 1."""

        with self._lock:
            self._check_index(item_index)
            item = self._items[item_index]
            item.quantity = max(1, value)
            self._notify()

    def remove_item(self, item_index: int) -> None:
        with self._lock:
            self._check_index(item_index)
            del self._items[item_index]
            self._notify()

    def reset(self) -> None:
        """Empty the cart, typically after a completed checkout."""

        with self._lock:
            self._items.clear()
            self._notify()

    # -- Pricing ------------------------------------------------------------

    def subtotal_amount(self) -> Decimal:
        with self._lock:
            return sum((item.price for item in self._items), _ZERO)

    def shipping_amount(self) -> Decimal:
        with self._lock:
            return self._shipping_policy.amount_for(
                self.subtotal_amount(), self.product_count()
            )

    def total_amount(self) -> Decimal:
        with self._lock:
            return self.subtotal_amount() + self.shipping_amount()

    def product_count(self) -> int:
        with self._lock:
            return sum(item.quantity for item in self._items)

    def _check_index(self, item_index: int) -> None:
        if not 0 <= item_index < len(self._items):
            raise IndexError(
                f"Cart line {item_index} out of range (cart has {len(self._items)} lines)"
            )

    # -- Notifications ------------------------------------------------------

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unregisters it."""

        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Cart listener %r failed", listener)


__all__ = ["Cart", "CartListener", "ShippingPolicy"]
