"""Catalog client serving stale-then-fresh reads of collections and products.

Every read is an async iterator yielding at most two snapshots: the cached
value first, when there is one worth showing, then the value refreshed from
the network. Fetch failures are logged and dropped so that the UI keeps
showing the last good data.

The refresh for a key starts before the cached value is yielded, so it keeps
running (and updates the store) even if the caller stops iterating after the
stale value. Concurrent refreshes of the same key share one request.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator

from pydantic import ValidationError

from furni.cache import CatalogStore, collection_key, collection_list_key
from furni.gateway import GatewayError, RemoteGateway
from furni.schemas.catalog import Collection, Product
from furni.schemas.error import ErrorType
from furni.services.caching import CoalescingService, coalesced
from furni.services.catalog_payloads import (
    collection_endpoint,
    collection_list_endpoint,
    deserialize_collection_list,
    deserialize_collection_products,
)

logger = logging.getLogger(__name__)


class CatalogClient(CoalescingService):
    """Fetch collections through the gateway and keep them in a :class:`CatalogStore`."""

    def __init__(self, gateway: RemoteGateway, store: CatalogStore | None = None) -> None:
        super().__init__()
        self._gateway = gateway
        self._store = store if store is not None else CatalogStore()

    @property
    def store(self) -> CatalogStore:
        return self._store

    def cached_collections(self) -> list[Collection]:
        return self._store.collections()

    def cached_collection(self, permalink: str) -> Collection | None:
        return self._store.collection(permalink)

    def product(self, product_id: int) -> Product | None:
        return self._store.product(product_id)

    async def list_collections(self) -> AsyncIterator[list[Collection]]:
        """Yield the cached listing (if any), then the refreshed listing.

        A successful refresh replaces the cached listing. When it fails only
        the cached listing is yielded, or nothing at all on a cold cache.
        """

        refresh = asyncio.ensure_future(self._refresh_collections())
        cached = self._store.collections()
        if cached:
            yield cached

        fresh = await refresh
        if fresh is not None:
            yield fresh

    async def get_collection(self, permalink: str) -> AsyncIterator[Collection]:
        """Yield the cached collection (if it has products), then the merged one.

        Fetched products are merged into the cached collection by product id,
        so re-fetching a permalink never duplicates entries.
        """

        refresh = asyncio.ensure_future(self._refresh_collection(permalink))
        cached = self._store.collection(permalink)
        if cached is not None and cached.has_products:
            yield cached

        merged = await refresh
        if merged is not None:
            yield merged

    @coalesced(lambda self: collection_list_key())
    async def _refresh_collections(self) -> list[Collection] | None:
        try:
            payload = await self._gateway.get(collection_list_endpoint())
            collections = deserialize_collection_list(payload)
        except GatewayError as exc:
            logger.info(
                "Keeping cached collections after %s: %s", exc.error_type.value, exc
            )
            return None
        except (TypeError, ValidationError) as exc:
            logger.warning(
                "Keeping cached collections after %s: %s",
                ErrorType.PARSE_ERROR.value,
                exc,
            )
            return None

        logger.debug("Fetched %d collections", len(collections))
        return self._store.replace_collections(collections)

    @coalesced(lambda self, permalink: collection_key(permalink))
    async def _refresh_collection(self, permalink: str) -> Collection | None:
        try:
            payload = await self._gateway.get(collection_endpoint(permalink))
            products = deserialize_collection_products(payload, permalink=permalink)
        except GatewayError as exc:
            logger.info(
                "Keeping cached collection %s after %s: %s",
                permalink,
                exc.error_type.value,
                exc,
            )
            return None
        except (TypeError, ValidationError) as exc:
            logger.warning(
                "Keeping cached collection %s after %s: %s",
                permalink,
                ErrorType.PARSE_ERROR.value,
                exc,
            )
            return None

        logger.debug("Fetched %d products for collection %s", len(products), permalink)
        return self._store.merge_collection_products(permalink, products)


__all__ = ["CatalogClient"]
