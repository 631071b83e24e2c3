"""Checkout orchestration around the payment-authorization collaborator.

The storefront does not process payments. It prepares the payment request from
the cart, asks the :class:`PaymentAuthorizer` for a token and hands the token
to the payment backend, which creates the charge. Unlike the catalog and
session clients, checkout failures are raised to the caller as
:class:`CheckoutError` so the UI can report them.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol, runtime_checkable

from furni.gateway import GatewayError, RemoteGateway
from furni.schemas.checkout import (
    ChargeResult,
    PaymentRequest,
    PaymentSummaryItem,
    ShippingContact,
)
from furni.schemas.error import ErrorType, FurniError
from furni.schemas.user import User
from furni.services.cart_service import Cart
from furni.services.contacts import ContactResolver, populate_with_local_contact
from furni.settings import AppSettings

logger = logging.getLogger(__name__)

CHARGE_ENDPOINT = "charge"


@runtime_checkable
class PaymentAuthorizer(Protocol):
    """Protocol describing the payment sheet / tokenization collaborator."""

    async def authorize(self, request: PaymentRequest) -> str | None:
        """Return a payment token, or ``None`` when the user or provider declined."""
        ...


class CheckoutError(FurniError):
    """Raised when an order cannot be authorized or charged."""

    error_type = ErrorType.APPLICATION_ERROR


def amount_in_cents(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


class CheckoutService:
    """Turn the cart into a payment request, then into a backend charge."""

    def __init__(
        self,
        cart: Cart,
        *,
        settings: AppSettings,
        authorizer: PaymentAuthorizer,
        charge_gateway: RemoteGateway | None = None,
        contacts: ContactResolver | None = None,
    ) -> None:
        self._cart = cart
        self._settings = settings
        self._authorizer = authorizer
        self._charge_gateway = charge_gateway
        self._contacts = contacts

    def order_amount_cents(self) -> int:
        """Current cart total in cents, as sent to the payment backend."""

        return amount_in_cents(self._cart.total_amount())

    def build_payment_request(self, user: User | None = None) -> PaymentRequest:
        """Summarise the cart and pre-fill the shipping contact from ``user``."""

        shipping_contact: ShippingContact | None = None
        if user is not None:
            enriched = populate_with_local_contact(user, self._contacts)
            shipping_contact = ShippingContact(
                full_name=enriched.full_name,
                phone_number=enriched.digits_phone_number,
                postal_address=enriched.postal_address,
            )

        return PaymentRequest(
            currency=self._settings.currency,
            summary_items=[
                PaymentSummaryItem(label="Subtotal", amount=self._cart.subtotal_amount()),
                PaymentSummaryItem(label="Shipping", amount=self._cart.shipping_amount()),
                PaymentSummaryItem(
                    label=self._settings.merchant_label,
                    amount=self._cart.total_amount(),
                ),
            ],
            shipping_contact=shipping_contact,
            item_count=self._cart.product_count(),
        )

    async def checkout(self, user: User | None = None) -> ChargeResult:
        """Authorize the order, empty the cart and create the backend charge.

        The cart is reset as soon as the payment is authorized; a charge
        failure afterwards is reported through :class:`CheckoutError` but does
        not restore the cart.
        """

        if self._cart.is_empty():
            raise CheckoutError("The cart is empty")
        if self._charge_gateway is None:
            raise CheckoutError(
                "No payment backend configured",
                detail="set BACKEND_CHARGE_URL so authorized payments can be charged",
            )

        request = self.build_payment_request(user)
        amount_cents = self.order_amount_cents()
        logger.info(
            "Starting checkout of %d items for %s %s",
            request.item_count,
            request.total,
            request.currency,
        )

        token = await self._authorizer.authorize(request)
        if not token:
            raise CheckoutError("Payment was not authorized")

        self._cart.reset()

        try:
            response = await self._charge_gateway.send(
                "POST",
                CHARGE_ENDPOINT,
                {"stripeToken": token, "amount": amount_cents},
            )
        except GatewayError as exc:
            raise CheckoutError("Charge request failed", detail=str(exc)) from exc

        if response.status_code != 200:
            raise CheckoutError(
                f"Charge was declined with status {response.status_code}",
                detail=response.text[:500] or None,
            )

        logger.info("Charged %d cents", amount_cents)
        return ChargeResult(
            token=token, amount_cents=amount_cents, status_code=response.status_code
        )


__all__ = [
    "CHARGE_ENDPOINT",
    "CheckoutError",
    "CheckoutService",
    "PaymentAuthorizer",
    "amount_in_cents",
]
