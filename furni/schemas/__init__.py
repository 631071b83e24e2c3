"""Pydantic schemas shared by the storefront services."""

from furni.schemas.cart import CartItem  # noqa: F401
from furni.schemas.catalog import Collection, Product  # noqa: F401
from furni.schemas.checkout import (  # noqa: F401
    ChargeResult,
    PaymentRequest,
    PaymentSummaryItem,
    ShippingContact,
)
from furni.schemas.error import ErrorType, FurniError  # noqa: F401
from furni.schemas.user import ContactCard, PostalAddress, User  # noqa: F401
