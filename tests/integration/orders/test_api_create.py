"""Integration tests for the order creation endpoint.

Covers:
- Success 201 with computed totals and the response envelope.
- Validation 400: empty items, zero quantity, missing address fields.
- 403 for non-customers, 401 without credentials.
- 404 unknown product, 409 insufficient stock with no side effects.
- Client-supplied money fields are ignored.
"""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.orders.models import Order

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"

ADDRESS = {
    "street": "221B Baker Street",
    "city": "Mumbai",
    "state": "Maharashtra",
    "zip_code": "400001",
}


def _payload(*lines, **extra):
    return {
        "items": [{"product_id": str(p.id), "quantity": q} for p, q in lines],
        "shipping_address": ADDRESS,
        **extra,
    }


@pytest.fixture()
def customer_client(client_for, customer):
    return client_for(customer)


class TestCreateOrderSuccess:
    def test_returns_201_with_totals(self, customer_client, make_product):
        product = make_product(price="300.00", in_stock=5)

        response = customer_client.post(URL, _payload((product, 2)), format="json")

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Order created successfully."
        order = body["order"]
        assert order["status"] == "PENDING"
        assert order["total_amount"] == "600.00"
        assert order["tax_amount"] == "108.00"
        assert order["shipping_cost"] == "0.00"
        assert order["final_amount"] == "708.00"
        assert order["shipping_address"]["country"] == "India"
        assert order["items"][0]["product_name"] == product.name
        assert order["items"][0]["seller"]["username"] == product.seller.username
        assert order["status_history"][0]["new_status"] == "PENDING"

        product.refresh_from_db()
        assert product.in_stock == 3

    def test_payment_method_case_insensitive(self, customer_client, make_product):
        response = customer_client.post(
            URL, _payload((make_product(), 1), payment_method="paypal"), format="json"
        )

        assert response.status_code == 201
        assert response.json()["order"]["payment_method"] == "PAYPAL"

    def test_client_money_fields_are_ignored(self, customer_client, make_product):
        product = make_product(price="10.00")

        response = customer_client.post(
            URL,
            _payload((product, 1), final_amount="0.01", total_amount="0.01"),
            format="json",
        )

        assert response.status_code == 201
        assert response.json()["order"]["final_amount"] == "61.80"


class TestCreateOrderValidation:
    def test_empty_items(self, customer_client):
        response = customer_client.post(URL, {"items": [], "shipping_address": ADDRESS}, format="json")

        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "items"

    def test_zero_quantity(self, customer_client, make_product):
        response = customer_client.post(URL, _payload((make_product(), 0)), format="json")

        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "items.0.quantity"

    def test_missing_address_field(self, customer_client, make_product):
        payload = _payload((make_product(), 1))
        payload["shipping_address"] = {k: v for k, v in ADDRESS.items() if k != "zip_code"}

        response = customer_client.post(URL, payload, format="json")

        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "shipping_address.zip_code"

    def test_unknown_payment_method(self, customer_client, make_product):
        response = customer_client.post(
            URL, _payload((make_product(), 1), payment_method="BITCOIN"), format="json"
        )
        assert response.status_code == 400


class TestCreateOrderRejections:
    def test_unauthenticated(self, api_client, make_product):
        response = api_client.post(URL, _payload((make_product(), 1)), format="json")
        assert response.status_code == 401

    def test_seller_is_forbidden_before_validation(self, client_for, seller):
        response = client_for(seller).post(URL, {}, format="json")

        assert response.status_code == 403
        assert response.json()["errors"][0]["detail"] == "Only customers can place orders."

    def test_unknown_product(self, customer_client):
        response = customer_client.post(
            URL,
            {"items": [{"product_id": str(uuid4()), "quantity": 1}], "shipping_address": ADDRESS},
            format="json",
        )

        assert response.status_code == 404
        assert response.json()["errors"][0]["code"] == "product_not_found"

    def test_insufficient_stock_has_no_side_effects(self, customer_client, make_product):
        product = make_product(name="Espresso Machine", price="100.00", in_stock=2)

        response = customer_client.post(URL, _payload((product, 3)), format="json")

        assert response.status_code == 409
        error = response.json()["errors"][0]
        assert error["code"] == "insufficient_stock"
        assert "Espresso Machine" in error["detail"]
        product.refresh_from_db()
        assert product.in_stock == 2
        assert Order.objects.count() == 0
