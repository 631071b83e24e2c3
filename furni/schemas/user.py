"""Pydantic models for signed-in users, their friends and contact data."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from furni.schemas.catalog import Product


class PostalAddress(BaseModel):
    """Postal address resolved from the local contact source."""

    street: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""


class ContactCard(BaseModel):
    """Entry returned by the contact-resolution collaborator."""

    full_name: str | None = None
    image: str | None = Field(None, description="Reference to the contact picture.")
    phone_numbers: list[str] = Field(default_factory=list)
    postal_addresses: list[PostalAddress] = Field(default_factory=list)


class User(BaseModel):
    """A storefront identity, optionally enriched with contact data and favorites.

    ``cognito_id`` is the internal identity used by every backend endpoint. The
    Digits and Twitter identifiers come from the external sign-in providers and
    are optional.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    cognito_id: str | None = Field(
        None, validation_alias=AliasChoices("cognitoId", "cognito_id")
    )
    digits_user_id: str | None = Field(
        None, validation_alias=AliasChoices("digitsId", "digits_user_id")
    )
    digits_phone_number: str | None = Field(
        None, validation_alias=AliasChoices("phoneNumber", "digits_phone_number")
    )
    twitter_user_id: str | None = None
    twitter_username: str | None = None
    full_name: str | None = None
    image: str | None = None
    postal_address: PostalAddress | None = None
    favorites: tuple[Product, ...] = ()


__all__ = ["ContactCard", "PostalAddress", "User"]
