"""Pydantic snapshots describing catalog collections and their products."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field


class Product(BaseModel):
    """Immutable product snapshot.

    ``id`` is the only identity of a product: two snapshots with the same id
    compare equal even when their attributes differ, which lets callers hold
    on to an older snapshot after a refresh replaced it in the store. Whether
    the product is favorited is not stored here; ask the active session.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: int
    name: str = ""
    description: str | None = None
    price: Decimal = Decimal("0")
    retail_price: Decimal | None = Field(
        default=None,
        validation_alias=AliasChoices("retailPrice", "retail_price"),
    )
    image_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("imageUrl", "image", "image_url"),
    )
    collection_permalink: str = Field(
        default="",
        validation_alias=AliasChoices(
            "collectionPermalink", "collection", "collection_permalink"
        ),
        description="Permalink of the collection the product was listed under.",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def percent_off(self) -> int | None:
        """Discount against the retail price, rounded half-up to a whole percent."""

        retail = self.retail_price
        if retail is None or retail <= 0 or retail <= self.price:
            return None
        ratio = Decimal(100) * (retail - self.price) / retail
        return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))

    @classmethod
    def from_payload(
        cls,
        payload: Mapping[str, Any],
        *,
        collection_permalink: str | None = None,
    ) -> Product:
        """Build a product from an API dictionary.

        When ``collection_permalink`` is supplied it overrides whatever the
        payload says, mirroring how products fetched for one collection are
        always attributed to it.
        """

        data = dict(payload)
        if collection_permalink is not None:
            data["collectionPermalink"] = collection_permalink
        return cls.model_validate(data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Product):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


class Collection(BaseModel):
    """Immutable snapshot of a catalog collection keyed by ``permalink``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    permalink: str = Field(..., min_length=1)
    title: str = ""
    description: str | None = None
    image_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("imageUrl", "image", "image_url"),
    )
    products: tuple[Product, ...] = ()

    @property
    def has_products(self) -> bool:
        return len(self.products) > 0

    def product_ids(self) -> list[int]:
        return [product.id for product in self.products]


def sort_products_by_id_desc(products: list[Product]) -> list[Product]:
    """Return ``products`` ordered newest first (descending id)."""

    return sorted(products, key=lambda product: product.id, reverse=True)


__all__ = ["Collection", "Product", "sort_products_by_id_desc"]
