"""Unit tests for order DTO validation."""

from __future__ import annotations

from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.orders.constants import PaymentMethod
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO, ShippingAddressDTO

pytestmark = pytest.mark.unit

ADDRESS = {"street": "1 Main St", "city": "Pune", "state": "MH", "zip_code": "411001"}


def test_defaults_payment_method_and_notes():
    dto = CreateOrderDTO(
        items=[{"product_id": uuid4(), "quantity": 1}],
        shipping_address=ADDRESS,
    )
    assert dto.payment_method == PaymentMethod.CASH_ON_DELIVERY
    assert dto.order_notes == ""
    assert dto.shipping_address.country is None


def test_items_must_not_be_empty():
    with pytest.raises(ValidationError, match="Order items are required."):
        CreateOrderDTO(items=[], shipping_address=ADDRESS)


def test_quantity_must_be_positive():
    with pytest.raises(ValidationError, match="Quantity must be at least 1."):
        CreateOrderItemDTO(product_id=uuid4(), quantity=0)


@pytest.mark.parametrize("missing", ["street", "city", "state", "zip_code"])
def test_address_requires_four_fields(missing):
    data = {**ADDRESS, missing: "  "}
    with pytest.raises(ValidationError):
        ShippingAddressDTO(**data)


def test_duplicate_products_are_kept():
    product_id = uuid4()
    dto = CreateOrderDTO(
        items=[
            {"product_id": product_id, "quantity": 1},
            {"product_id": product_id, "quantity": 2},
        ],
        shipping_address=ADDRESS,
    )
    assert [item.quantity for item in dto.items] == [1, 2]


def test_dto_is_frozen():
    dto = CreateOrderItemDTO(product_id=uuid4(), quantity=1)
    with pytest.raises(ValidationError):
        dto.quantity = 5
