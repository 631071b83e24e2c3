"""Line items held by the cart aggregate."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from furni.schemas.catalog import Product


class CartItem(BaseModel):
    """A product and the quantity ordered for it."""

    model_config = ConfigDict(validate_assignment=True)

    product: Product
    quantity: int = Field(1, ge=1)

    @property
    def price(self) -> Decimal:
        """Line price: unit price times quantity."""

        return self.product.price * self.quantity


__all__ = ["CartItem"]
