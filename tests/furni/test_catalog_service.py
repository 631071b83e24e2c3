"""Tests for the stale-then-fresh catalog client."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Any, TypeVar

import pytest

from furni.cache import CatalogStore
from furni.schemas.catalog import Collection
from furni.services.catalog_service import CatalogClient
from tests.furni.support.fake_gateway import ScriptedGateway

T = TypeVar("T")


async def _collect(iterator: AsyncIterator[T]) -> list[T]:
    return [value async for value in iterator]


@pytest.fixture
def catalog(gateway: ScriptedGateway, store: CatalogStore) -> CatalogClient:
    return CatalogClient(gateway, store)


@pytest.mark.asyncio
async def test_cold_listing_is_delivered_once_then_served_stale_first(
    catalog: CatalogClient, gateway: ScriptedGateway
) -> None:
    gateway.respond("GET", "collections", {"collections": [{"permalink": "sofas", "title": "Sofas"}]})

    first = await _collect(catalog.list_collections())

    assert len(first) == 1
    assert [(c.permalink, c.title) for c in first[0]] == [("sofas", "Sofas")]
    assert len(gateway.calls) == 1

    iterator = catalog.list_collections()
    stale = await anext(iterator)
    # The cached listing arrives before the second fetch reaches the gateway.
    assert len(gateway.calls) == 1
    assert [c.permalink for c in stale] == ["sofas"]

    rest = await _collect(iterator)
    assert len(rest) == 1
    assert len(gateway.calls) == 2


@pytest.mark.asyncio
async def test_listing_failure_on_cold_cache_yields_nothing(
    catalog: CatalogClient, gateway: ScriptedGateway
) -> None:
    gateway.fail("GET", "collections")

    assert await _collect(catalog.list_collections()) == []


@pytest.mark.asyncio
async def test_listing_failure_keeps_cached_value(
    catalog: CatalogClient, gateway: ScriptedGateway
) -> None:
    gateway.respond(
        "GET",
        "collections",
        {"collections": [{"permalink": "sofas", "title": "Sofas"}]},
        {"unexpected": True},
    )
    await _collect(catalog.list_collections())

    emissions = await _collect(catalog.list_collections())

    assert len(emissions) == 1
    assert [c.permalink for c in emissions[0]] == ["sofas"]
    assert catalog.cached_collections() == emissions[0]


@pytest.mark.asyncio
async def test_refetching_a_collection_does_not_duplicate_products(
    catalog: CatalogClient, gateway: ScriptedGateway, sofa_payloads: list[dict[str, Any]]
) -> None:
    gateway.respond("GET", "collections/sofas", {"products": sofa_payloads})

    await _collect(catalog.get_collection("sofas"))
    emissions = await _collect(catalog.get_collection("sofas"))

    assert len(emissions) == 2
    assert emissions[-1].product_ids() == [101, 102]
    assert all(p.collection_permalink == "sofas" for p in emissions[-1].products)


@pytest.mark.asyncio
async def test_refetch_takes_latest_attributes(
    catalog: CatalogClient, gateway: ScriptedGateway, sofa_payloads: list[dict[str, Any]]
) -> None:
    repriced = [dict(sofa_payloads[0], price="799.00")]
    gateway.respond("GET", "collections/sofas", {"products": sofa_payloads}, {"products": repriced})

    await _collect(catalog.get_collection("sofas"))
    emissions = await _collect(catalog.get_collection("sofas"))

    assert emissions[-1].product_ids() == [101, 102]
    assert str(catalog.product(101).price) == "799.00"


@pytest.mark.asyncio
async def test_collection_keeps_listing_metadata(
    catalog: CatalogClient, gateway: ScriptedGateway, sofa_payloads: list[dict[str, Any]]
) -> None:
    gateway.respond("GET", "collections", {"collections": [{"permalink": "sofas", "title": "Sofas"}]})
    gateway.respond("GET", "collections/sofas", {"products": sofa_payloads})
    await _collect(catalog.list_collections())

    emissions = await _collect(catalog.get_collection("sofas"))

    # The listing entry has no products, so it is not worth showing first.
    assert len(emissions) == 1
    assert emissions[0].title == "Sofas"
    assert emissions[0].has_products


@pytest.mark.asyncio
async def test_listing_refresh_keeps_merged_products(
    catalog: CatalogClient, gateway: ScriptedGateway, sofa_payloads: list[dict[str, Any]]
) -> None:
    gateway.respond("GET", "collections/sofas", {"products": sofa_payloads})
    gateway.respond("GET", "collections", {"collections": [{"permalink": "sofas", "title": "Sofas"}]})

    await _collect(catalog.get_collection("sofas"))
    await _collect(catalog.list_collections())
    assert catalog.cached_collection("sofas").product_ids() == [101, 102]

    emissions = await _collect(catalog.get_collection("sofas"))

    assert len(emissions) == 2
    assert emissions[0].product_ids() == [101, 102]
    assert emissions[-1].title == "Sofas"
    assert emissions[-1].product_ids() == [101, 102]


@pytest.mark.asyncio
async def test_concurrent_reads_share_one_fetch(
    catalog: CatalogClient, gateway: ScriptedGateway, sofa_payloads: list[dict[str, Any]]
) -> None:
    gateway.respond("GET", "collections/sofas", {"products": sofa_payloads})
    gate = gateway.hold("GET", "collections/sofas")

    pending = asyncio.gather(
        _collect(catalog.get_collection("sofas")),
        _collect(catalog.get_collection("sofas")),
    )
    for _ in range(5):
        await asyncio.sleep(0)
    assert catalog.inflight_keys() == ["collections:detail:sofas"]
    gate.set()
    first, second = await pending

    assert len(gateway.calls_to("GET", "collections/sofas")) == 1
    assert first == second
    assert first[-1].product_ids() == [101, 102]
    assert catalog.inflight_keys() == []


@pytest.mark.asyncio
async def test_malformed_products_are_dropped(
    catalog: CatalogClient, gateway: ScriptedGateway
) -> None:
    gateway.respond("GET", "collections/sofas", {"products": [{"name": "missing id"}]})

    assert await _collect(catalog.get_collection("sofas")) == []
    assert catalog.cached_collection("sofas") is None


@pytest.mark.asyncio
async def test_abandoned_iteration_still_refreshes_the_store(
    catalog: CatalogClient, gateway: ScriptedGateway, sofa_payloads: list[dict[str, Any]]
) -> None:
    gateway.respond("GET", "collections/sofas", {"products": sofa_payloads[:1]}, {"products": sofa_payloads})
    await _collect(catalog.get_collection("sofas"))

    iterator = catalog.get_collection("sofas")
    stale = await anext(iterator)
    await iterator.aclose()
    for _ in range(5):
        await asyncio.sleep(0)

    assert stale.product_ids() == [101]
    assert catalog.cached_collection("sofas").product_ids() == [101, 102]


def test_cached_accessors_start_empty(catalog: CatalogClient) -> None:
    assert catalog.cached_collections() == []
    assert catalog.cached_collection("sofas") is None
    assert catalog.product(101) is None
    assert isinstance(catalog.store, CatalogStore)
    assert Collection(permalink="sofas").has_products is False
