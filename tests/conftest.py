"""Pytest configuration helpers for the Furni storefront client.

The ``pytest`` plugin system automatically imports ``tests.conftest``. We use
that behavior to ensure the repository root is present on ``sys.path`` before
any test modules import application code, and to share catalog fixtures.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import pytest

from tests import _ensure_repo_on_path

_ensure_repo_on_path()

from furni.cache import CatalogStore  # noqa: E402
from furni.schemas.catalog import Product  # noqa: E402
from furni.settings import AppSettings  # noqa: E402
from tests.furni.support.fake_gateway import ScriptedGateway  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    """Hook executed by pytest prior to running any tests."""

    _ensure_repo_on_path()


@pytest.fixture
def sofa_payloads() -> list[dict[str, Any]]:
    """Products of the ``sofas`` collection as the API returns them."""

    return [
        {
            "id": 101,
            "name": "Harbor Sofa",
            "description": "Three-seat linen sofa",
            "price": "899.00",
            "retailPrice": "1199.00",
            "imageUrl": "https://cdn.furni.test/101.jpg",
        },
        {
            "id": 102,
            "name": "Dune Loveseat",
            "price": "549.50",
            "retailPrice": "549.50",
            "imageUrl": "https://cdn.furni.test/102.jpg",
        },
    ]


@pytest.fixture
def sofa() -> Product:
    return Product(
        id=101,
        name="Harbor Sofa",
        price=Decimal("899.00"),
        retail_price=Decimal("1199.00"),
        collection_permalink="sofas",
    )


@pytest.fixture
def lamp() -> Product:
    return Product(
        id=205,
        name="Arc Lamp",
        price=Decimal("120.25"),
        collection_permalink="lighting",
    )


@pytest.fixture
def store() -> CatalogStore:
    return CatalogStore()


@pytest.fixture
def gateway() -> ScriptedGateway:
    return ScriptedGateway()


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch) -> AppSettings:
    """Settings isolated from the developer's environment and ``.env`` file."""

    for name in (
        "FURNI_API_BASE_URL",
        "SHIPPING_FLAT_RATE",
        "FREE_SHIPPING_THRESHOLD",
        "BACKEND_CHARGE_URL",
        "CURRENCY",
        "MERCHANT_LABEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return AppSettings(_env_file=None, FURNI_API_BASE_URL="https://furni.test/prod")
