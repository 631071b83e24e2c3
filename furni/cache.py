"""Keyed in-process store of catalog snapshots.

Collections and products are immutable :mod:`pydantic` snapshots. Every write
replaces the snapshot held under its key and publishes a change event to the
listeners subscribed to that key, so observers never share a mutable object
with the store. All operations are synchronous: a merge runs to completion
before the event loop can schedule anything else.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from furni.schemas.catalog import Collection, Product

logger = logging.getLogger(__name__)

_COLLECTION_LIST_KEY = "collections:list"
_COLLECTION_PREFIX = "collections:detail"
_PRODUCT_PREFIX = "products"

ChangeListener = Callable[[str, Any], None]


def collection_list_key() -> str:
    return _COLLECTION_LIST_KEY


def collection_key(permalink: str) -> str:
    return f"{_COLLECTION_PREFIX}:{permalink.strip()}"


def product_key(product_id: int) -> str:
    return f"{_PRODUCT_PREFIX}:{product_id}"


def merge_products(
    existing: Iterable[Product], fetched: Iterable[Product]
) -> tuple[Product, ...]:
    """Merge ``fetched`` into ``existing`` without duplicating product ids.

    Products already present keep their position but take the fetched
    attributes; unseen ids are appended in fetch order. Duplicate ids inside
    either input collapse onto their first position.
    """

    merged: dict[int, Product] = {}
    for product in existing:
        merged.setdefault(product.id, product)
    for product in fetched:
        merged[product.id] = product
    return tuple(merged.values())


class CatalogStore:
    """Hold the latest collection listing, collection snapshots and products."""

    def __init__(self) -> None:
        self._listing: list[str] = []
        self._collections: dict[str, Collection] = {}
        self._products: dict[int, Product] = {}
        self._listeners: dict[str, list[ChangeListener]] = defaultdict(list)

    # -- Reads --------------------------------------------------------------

    def collections(self) -> list[Collection]:
        """Return the collections of the last listing, in listing order."""

        return [self._collections[permalink] for permalink in self._listing]

    def collection(self, permalink: str) -> Collection | None:
        return self._collections.get(permalink)

    def product(self, product_id: int) -> Product | None:
        return self._products.get(product_id)

    def __len__(self) -> int:
        return len(self._listing)

    # -- Writes -------------------------------------------------------------

    def replace_collections(self, collections: Sequence[Collection]) -> list[Collection]:
        """Replace the listing with ``collections``.

        The first occurrence of a permalink wins. Only the listing order and
        the collection metadata are replaced: products merged into a cached
        collection are carried over, and collections cached by permalink but
        absent from the listing stay reachable through :meth:`collection`.
        """

        listing: list[str] = []
        for collection in collections:
            permalink = collection.permalink
            if permalink in listing:
                logger.debug("Ignoring duplicate collection %s in listing", permalink)
                continue
            listing.append(permalink)
            current = self._collections.get(permalink)
            if current is not None and current.has_products:
                collection = collection.model_copy(update={"products": current.products})
            self._collections[permalink] = collection

        self._listing = listing
        replaced = self.collections()
        self._publish(collection_list_key(), replaced)
        return replaced

    def merge_collection_products(
        self, permalink: str, products: Iterable[Product]
    ) -> Collection:
        """Merge ``products`` into the collection snapshot for ``permalink``.

        A collection that is not cached yet is created with an empty title.
        Returns the new snapshot.
        """

        fetched = list(products)
        current = self._collections.get(permalink) or Collection(permalink=permalink)
        snapshot = current.model_copy(
            update={"products": merge_products(current.products, fetched)}
        )
        self._collections[permalink] = snapshot

        for product in fetched:
            self._products[product.id] = product
            self._publish(product_key(product.id), product)
        self._publish(collection_key(permalink), snapshot)
        return snapshot

    def clear(self) -> None:
        """Remove every snapshot. Subscriptions are kept."""

        self._listing = []
        self._collections = {}
        self._products = {}

    # -- Change events ------------------------------------------------------

    def subscribe(self, key: str, listener: ChangeListener) -> Callable[[], None]:
        """Call ``listener(key, snapshot)`` after every write to ``key``.

        Returns a callable that removes the subscription.
        """

        self._listeners[key].append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key)
            if listeners and listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def _publish(self, key: str, snapshot: Any) -> None:
        for listener in list(self._listeners.get(key, ())):
            try:
                listener(key, snapshot)
            except Exception:
                logger.exception("Catalog listener for %s failed", key)


__all__ = [
    "CatalogStore",
    "ChangeListener",
    "collection_key",
    "collection_list_key",
    "merge_products",
    "product_key",
]
