"""Storefront services built on top of :class:`furni.gateway.RemoteGateway`."""

from furni.services.cart_service import Cart, ShippingPolicy  # noqa: F401
from furni.services.catalog_service import CatalogClient  # noqa: F401
from furni.services.checkout_service import (  # noqa: F401
    CheckoutError,
    CheckoutService,
    PaymentAuthorizer,
)
from furni.services.session_service import UserSessionClient  # noqa: F401
