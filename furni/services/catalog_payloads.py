"""Deserialisation helpers for catalog endpoint payloads.

The catalog endpoints answer with loosely typed JSON documents. The helpers
below check the envelope shape and turn the entries into snapshots. A wrong
envelope raises :class:`TypeError`; malformed entries raise pydantic's
``ValidationError``. :class:`~furni.services.catalog_service.CatalogClient`
treats both as parse failures.
"""

from __future__ import annotations

from typing import Any

from furni.schemas.catalog import Collection, Product


def collection_list_endpoint() -> str:
    return "collections"


def collection_endpoint(permalink: str) -> str:
    return f"collections/{permalink}"


def deserialize_collection_list(payload: Any) -> list[Collection]:
    """Convert a ``{"collections": [...]}`` document into collections."""

    if not isinstance(payload, dict):
        raise TypeError("Expected collection listing to be a mapping")
    entries = payload.get("collections")
    if not isinstance(entries, list):
        raise TypeError("Expected 'collections' to be a list")
    return [Collection.model_validate(entry) for entry in entries]


def deserialize_collection_products(payload: Any, *, permalink: str) -> list[Product]:
    """Convert a ``{"products": [...]}`` document into products of ``permalink``."""

    if not isinstance(payload, dict):
        raise TypeError("Expected collection detail to be a mapping")
    entries = payload.get("products")
    if not isinstance(entries, list):
        raise TypeError("Expected 'products' to be a list")
    products: list[Product] = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise TypeError("Expected every product entry to be a mapping")
        products.append(Product.from_payload(entry, collection_permalink=permalink))
    return products


__all__ = [
    "collection_endpoint",
    "collection_list_endpoint",
    "deserialize_collection_list",
    "deserialize_collection_products",
]
