"""Payloads exchanged with the payment-authorization collaborator."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field

from furni.schemas.user import PostalAddress


class PaymentSummaryItem(BaseModel):
    label: str
    amount: Decimal


class ShippingContact(BaseModel):
    """Contact pre-filled on the payment sheet from the signed-in user."""

    full_name: str | None = None
    phone_number: str | None = None
    postal_address: PostalAddress | None = None


class PaymentRequest(BaseModel):
    """Everything the payment sheet needs to authorize an order."""

    currency: str
    summary_items: list[PaymentSummaryItem] = Field(default_factory=list)
    shipping_contact: ShippingContact | None = None
    item_count: int = 0
    required_shipping_fields: list[str] = Field(
        default_factory=lambda: ["postal_address"]
    )
    required_billing_fields: list[str] = Field(default_factory=lambda: ["email"])

    @property
    def total(self) -> Decimal:
        """Amount of the last summary line, which carries the order total."""

        if not self.summary_items:
            return Decimal("0")
        return self.summary_items[-1].amount


class ChargeResult(BaseModel):
    """Outcome of a backend charge created from an authorized payment token."""

    token: str
    amount_cents: int = Field(..., ge=0)
    status_code: int


__all__ = [
    "ChargeResult",
    "PaymentRequest",
    "PaymentSummaryItem",
    "ShippingContact",
]
