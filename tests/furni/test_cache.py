"""Tests for the keyed catalog snapshot store."""

from __future__ import annotations

from decimal import Decimal

from furni.cache import (
    CatalogStore,
    collection_key,
    collection_list_key,
    merge_products,
    product_key,
)
from furni.schemas.catalog import Collection, Product


def _product(product_id: int, name: str = "", price: str = "10") -> Product:
    return Product(id=product_id, name=name, price=Decimal(price), collection_permalink="sofas")


def test_merge_keeps_positions_and_takes_fetched_attributes() -> None:
    existing = [_product(1, "old"), _product(2)]
    fetched = [_product(3), _product(1, "new")]

    merged = merge_products(existing, fetched)

    assert [product.id for product in merged] == [1, 2, 3]
    assert merged[0].name == "new"


def test_merge_collapses_duplicate_ids() -> None:
    merged = merge_products([], [_product(4), _product(4, "again"), _product(5)])

    assert [product.id for product in merged] == [4, 5]


def test_merging_same_products_twice_is_idempotent(store: CatalogStore) -> None:
    fetched = [_product(1), _product(2)]

    store.merge_collection_products("sofas", fetched)
    snapshot = store.merge_collection_products("sofas", fetched)

    assert snapshot.product_ids() == [1, 2]


def test_merge_creates_untitled_collection(store: CatalogStore) -> None:
    snapshot = store.merge_collection_products("sofas", [_product(1)])

    assert snapshot.title == ""
    assert store.collection("sofas") is snapshot
    assert store.product(1) == _product(1)


def test_replace_collections_keeps_first_permalink(store: CatalogStore) -> None:
    listing = store.replace_collections(
        [
            Collection(permalink="sofas", title="Sofas"),
            Collection(permalink="chairs", title="Chairs"),
            Collection(permalink="sofas", title="Duplicate"),
        ]
    )

    assert [collection.title for collection in listing] == ["Sofas", "Chairs"]
    assert len(store) == 2


def test_replace_collections_keeps_unlisted_collections(store: CatalogStore) -> None:
    store.merge_collection_products("sofas", [_product(1)])

    store.replace_collections([Collection(permalink="chairs", title="Chairs")])

    assert [c.permalink for c in store.collections()] == ["chairs"]
    assert store.collection("sofas").product_ids() == [1]
    assert store.product(1) is not None


def test_replace_collections_carries_merged_products(store: CatalogStore) -> None:
    store.merge_collection_products("sofas", [_product(1), _product(2)])

    listing = store.replace_collections(
        [Collection(permalink="sofas", title="Sofas", description="Soft seating")]
    )

    assert listing[0].title == "Sofas"
    assert listing[0].description == "Soft seating"
    assert listing[0].product_ids() == [1, 2]
    assert store.collection("sofas") is listing[0]


def test_listeners_receive_key_scoped_events(store: CatalogStore) -> None:
    events: list[tuple[str, object]] = []
    store.subscribe(collection_key("sofas"), lambda key, value: events.append((key, value)))
    store.subscribe(product_key(1), lambda key, value: events.append((key, value)))

    snapshot = store.merge_collection_products("sofas", [_product(1)])
    store.merge_collection_products("chairs", [_product(9)])

    assert events == [
        (product_key(1), _product(1)),
        (collection_key("sofas"), snapshot),
    ]


def test_unsubscribe_stops_events(store: CatalogStore) -> None:
    events: list[str] = []
    unsubscribe = store.subscribe(collection_list_key(), lambda key, value: events.append(key))

    store.replace_collections([Collection(permalink="sofas")])
    unsubscribe()
    store.replace_collections([Collection(permalink="chairs")])

    assert events == [collection_list_key()]


def test_failing_listener_does_not_block_others(store: CatalogStore) -> None:
    received: list[str] = []

    def broken(key: str, value: object) -> None:
        raise RuntimeError("boom")

    store.subscribe(collection_list_key(), broken)
    store.subscribe(collection_list_key(), lambda key, value: received.append(key))

    store.replace_collections([Collection(permalink="sofas")])

    assert received == [collection_list_key()]


def test_clear_drops_snapshots(store: CatalogStore) -> None:
    store.replace_collections([Collection(permalink="sofas")])
    store.merge_collection_products("sofas", [_product(1)])

    store.clear()

    assert store.collections() == []
    assert store.product(1) is None
