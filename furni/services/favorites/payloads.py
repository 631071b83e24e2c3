"""Request builders and response parsers for the social endpoints."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from furni.schemas.catalog import Product, sort_products_by_id_desc
from furni.schemas.user import User

USERS_ENDPOINT = "users/"
FAVORITES_ENDPOINT = "favorites"
FRIENDSHIPS_ENDPOINT = "friendships"


def favorites_endpoint(cognito_id: str) -> str:
    return f"{FAVORITES_ENDPOINT}/{cognito_id}"


def friendships_endpoint(cognito_id: str) -> str:
    return f"{FRIENDSHIPS_ENDPOINT}/{cognito_id}"


def registration_body(
    cognito_id: str,
    digits_user_id: str | None,
    digits_phone_number: str | None,
) -> dict[str, Any]:
    """Identity-linking body; the Digits pair is only sent when complete."""

    body: dict[str, Any] = {"cognitoId": cognito_id}
    if digits_user_id is not None and digits_phone_number is not None:
        body["digitsId"] = digits_user_id
        body["phoneNumber"] = digits_phone_number
    return body


def favorite_body(cognito_id: str, product: Product) -> dict[str, Any]:
    return {
        "product": str(product.id),
        "collection": product.collection_permalink,
        "cognitoId": cognito_id,
    }


def friendship_body(cognito_id: str, digits_user_ids: Sequence[str]) -> dict[str, Any]:
    return {"from": cognito_id, "to": list(digits_user_ids)}


def deserialize_favorites_map(payload: Any) -> dict[str, list[Product]]:
    """Convert ``{cognitoId: {"products": [...]}}`` into sorted product lists.

    One malformed entry invalidates the whole document.
    """

    if not isinstance(payload, dict):
        raise TypeError("Expected favorites response to be a mapping")

    products_by_identity: dict[str, list[Product]] = {}
    for cognito_id, entry in payload.items():
        entries = entry.get("products") if isinstance(entry, dict) else None
        if not isinstance(entries, list):
            raise TypeError(f"Expected a product list under favorites of {cognito_id}")
        products = []
        for item in entries:
            if not isinstance(item, dict):
                raise TypeError(f"Expected favorite products of {cognito_id} to be mappings")
            products.append(Product.from_payload(item))
        products_by_identity[str(cognito_id)] = sort_products_by_id_desc(products)
    return products_by_identity


def deserialize_friends(payload: Any) -> list[User]:
    """Convert ``{"friends": [...]}`` into user stubs."""

    if not isinstance(payload, dict):
        raise TypeError("Expected friendships response to be a mapping")
    entries = payload.get("friends")
    if not isinstance(entries, list):
        raise TypeError("Expected 'friends' to be a list")

    friends: list[User] = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise TypeError("Expected every friend entry to be a mapping")
        friends.append(User.model_validate(entry))
    return friends


__all__ = [
    "FAVORITES_ENDPOINT",
    "FRIENDSHIPS_ENDPOINT",
    "USERS_ENDPOINT",
    "deserialize_favorites_map",
    "deserialize_friends",
    "favorite_body",
    "favorites_endpoint",
    "friendship_body",
    "friendships_endpoint",
    "registration_body",
]
