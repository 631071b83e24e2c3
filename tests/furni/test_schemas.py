"""Tests for the catalog and user snapshots."""

from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from furni.schemas.cart import CartItem
from furni.schemas.catalog import Collection, Product, sort_products_by_id_desc
from furni.schemas.error import ErrorType, FurniError
from furni.schemas.user import User


@pytest.mark.parametrize(
    ("price", "retail", "expected"),
    [
        ("75", "100", 25),
        ("66.50", "100", 34),
        ("100", "100", None),
        ("120", "100", None),
        ("10", None, None),
    ],
)
def test_percent_off(price: str, retail: str | None, expected: int | None) -> None:
    product = Product(
        id=1,
        price=Decimal(price),
        retail_price=Decimal(retail) if retail is not None else None,
    )

    assert product.percent_off == expected


def test_product_accepts_wire_aliases() -> None:
    product = Product.model_validate(
        {
            "id": 7,
            "name": "Oak Table",
            "price": 250,
            "retailPrice": "300",
            "imageUrl": "https://cdn.furni.test/7.jpg",
            "collection": "tables",
        }
    )

    assert product.retail_price == Decimal("300")
    assert product.image_url == "https://cdn.furni.test/7.jpg"
    assert product.collection_permalink == "tables"
    assert product.percent_off == 17


def test_from_payload_attributes_product_to_collection() -> None:
    product = Product.from_payload({"id": 7, "collection": "other"}, collection_permalink="tables")

    assert product.collection_permalink == "tables"


def test_products_compare_by_id_only() -> None:
    older = Product(id=3, name="Old name", price=Decimal("1"))
    newer = Product(id=3, name="New name", price=Decimal("2"))

    assert older == newer
    assert len({older, newer}) == 1
    assert older != Product(id=4)


def test_products_are_immutable() -> None:
    product = Product(id=3)

    with pytest.raises(ValidationError):
        product.name = "changed"


def test_collection_requires_permalink() -> None:
    with pytest.raises(ValidationError):
        Collection(permalink="")


def test_sort_products_newest_first() -> None:
    products = [Product(id=2), Product(id=9), Product(id=5)]

    assert [p.id for p in sort_products_by_id_desc(products)] == [9, 5, 2]


def test_cart_item_price_and_quantity_validation() -> None:
    item = CartItem(product=Product(id=1, price=Decimal("12.50")), quantity=3)

    assert item.price == Decimal("37.50")
    with pytest.raises(ValidationError):
        item.quantity = 0


def test_user_accepts_camel_case_identity_fields() -> None:
    user = User.model_validate(
        {"cognitoId": "abc", "digitsId": "d-1", "phoneNumber": "+1555"}
    )

    assert (user.cognito_id, user.digits_user_id, user.digits_phone_number) == (
        "abc",
        "d-1",
        "+1555",
    )
    assert user.favorites == ()


def test_error_message_includes_detail() -> None:
    error = FurniError("Failed", detail="timeout")

    assert str(error) == "Failed (timeout)"
    assert error.error_type is ErrorType.APPLICATION_ERROR
    assert ErrorType.PARSE_ERROR.value == "parse_error"
