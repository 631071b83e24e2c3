"""The active session's favorite products, keyed by product id."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

from furni.schemas.catalog import Product, sort_products_by_id_desc


class FavoriteSet:
    """Favorite membership plus the bookkeeping needed for safe rollbacks.

    Each product id carries a write generation that increases on every
    optimistic write or server sync touching it. A pending rollback only
    applies while the generation it captured is still current, so a later
    toggle or sync always wins. Each id also owns an :class:`asyncio.Lock`
    whose FIFO wake-up order keeps the favorite requests for one product in
    initiation order.
    """

    def __init__(self, products: Iterable[Product] = ()) -> None:
        self._products: dict[int, Product] = {product.id: product for product in products}
        self._generations: dict[int, int] = {}
        self._locks: dict[int, asyncio.Lock] = {}

    def contains(self, product_id: int) -> bool:
        return product_id in self._products

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Product):
            return item.id in self._products
        return item in self._products

    def __len__(self) -> int:
        return len(self._products)

    def products(self) -> list[Product]:
        """Return the favorite products, newest (highest id) first."""

        return sort_products_by_id_desc(list(self._products.values()))

    def generation(self, product_id: int) -> int:
        return self._generations.get(product_id, 0)

    def mark(self, product: Product, favorited: bool) -> int:
        """Apply an optimistic write and return its generation."""

        self._apply(product, favorited)
        return self._bump(product.id)

    def revert(self, product: Product, favorited: bool, *, generation: int) -> bool:
        """Write ``favorited`` back unless a newer write superseded ``generation``."""

        if self.generation(product.id) != generation:
            return False
        self._apply(product, favorited)
        return True

    def replace(self, products: Iterable[Product]) -> None:
        """Replace the whole set with the server's view."""

        incoming = {product.id: product for product in products}
        for product_id in set(self._products) | set(incoming):
            self._bump(product_id)
        self._products = incoming

    def lock_for(self, product_id: int) -> asyncio.Lock:
        lock = self._locks.get(product_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[product_id] = lock
        return lock

    def _apply(self, product: Product, favorited: bool) -> None:
        if favorited:
            self._products[product.id] = product
        else:
            self._products.pop(product.id, None)

    def _bump(self, product_id: int) -> int:
        generation = self._generations.get(product_id, 0) + 1
        self._generations[product_id] = generation
        return generation


__all__ = ["FavoriteSet"]
