from __future__ import annotations

from decimal import Decimal
from itertools import count

import pytest
from rest_framework.test import APIClient

from modules.accounts.models import Role, User
from modules.accounts.principal import Principal
from modules.catalog.models import Product
from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.orders.dtos import CreateOrderDTO
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService

_sequence = count()

ADDRESS = {
    "street": "12 MG Road",
    "city": "Bengaluru",
    "state": "Karnataka",
    "zip_code": "560001",
}


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Users and principals
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_user():
    def _make(role: str = Role.CUSTOMER, username: str | None = None) -> User:
        name = username or f"{role.lower()}-{next(_sequence)}"
        return User.objects.create_user(
            username=name,
            email=f"{name}@example.com",
            password="testpass123",
            role=role,
        )

    return _make


@pytest.fixture()
def customer(make_user):
    return make_user(Role.CUSTOMER, "alice")


@pytest.fixture()
def other_customer(make_user):
    return make_user(Role.CUSTOMER, "bob")


@pytest.fixture()
def seller(make_user):
    return make_user(Role.SELLER, "seller-a")


@pytest.fixture()
def other_seller(make_user):
    return make_user(Role.SELLER, "seller-b")


@pytest.fixture()
def admin_user(make_user):
    return make_user(Role.ADMIN, "admin")


@pytest.fixture()
def as_principal():
    return Principal.from_user


@pytest.fixture()
def client_for():
    """Return an APIClient force-authenticated as the given user."""

    def _client(user: User) -> APIClient:
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_product(seller):
    def _make(
        price: str = "100.00",
        in_stock: int = 10,
        name: str | None = None,
        owner: User | None = None,
        is_active: bool = True,
    ) -> Product:
        return Product.objects.create(
            seller=owner or seller,
            name=name or f"Product {next(_sequence)}",
            price=Decimal(price),
            in_stock=in_stock,
            is_active=is_active,
        )

    return _make


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def order_service():
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


@pytest.fixture()
def order_dto():
    def _dto(*lines, **extra) -> CreateOrderDTO:
        """Build a creation DTO from ``(product, quantity)`` pairs."""
        return CreateOrderDTO.model_validate(
            {
                "items": [
                    {"product_id": product.id, "quantity": quantity}
                    for product, quantity in lines
                ],
                "shipping_address": extra.pop("shipping_address", ADDRESS),
                **extra,
            }
        )

    return _dto


@pytest.fixture()
def place_order(order_service, order_dto, customer):
    """Place an order through the service as *buyer* (default: ``customer``)."""

    def _place(*lines, buyer: User | None = None, **extra):
        principal = Principal.from_user(buyer or customer)
        return order_service.place_order(principal, order_dto(*lines, **extra))

    return _place
