"""Stock concurrency integration test.

Proves that the conditional decrement in ``OrderService.place_order``
never oversells under concurrent load.

Scenario:
- Product "Gamer PC" with **stock = 5**.
- 10 threads attempt to buy 1 unit each simultaneously.
- Exactly 5 succeed, 5 raise ``InsufficientStock``.
- Final stock is 0 (never negative).

Uses ``TransactionTestCase`` so each thread sees committed data.  SQLite
serializes writers at the file level and an in-memory database is not
shared across threads, so the test only runs on a server database.
"""

from __future__ import annotations

import unittest
from concurrent.futures import ThreadPoolExecutor, as_completed
from decimal import Decimal

from django.db import connection, connections
from django.test import TransactionTestCase

from modules.accounts.models import Role, User
from modules.accounts.principal import Principal
from modules.catalog.models import Product
from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.orders.dtos import CreateOrderDTO
from modules.orders.exceptions import InsufficientStock
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService

INITIAL_STOCK = 5
NUM_WORKERS = 10


@unittest.skipIf(connection.vendor == "sqlite", "needs a database with row-level locking")
class TestStockConcurrency(TransactionTestCase):
    """Prove atomic stock reservation under concurrent load."""

    def setUp(self):
        seller = User.objects.create_user(username="pc-seller", password="x", role=Role.SELLER)
        self.product = Product.objects.create(
            seller=seller,
            name="Gamer PC",
            price=Decimal("2999.99"),
            in_stock=INITIAL_STOCK,
        )
        self.buyers = [
            User.objects.create_user(username=f"buyer-{i}", password="x", role=Role.CUSTOMER)
            for i in range(NUM_WORKERS)
        ]

    def _buy(self, buyer: User) -> str:
        service = OrderService(
            order_repository=OrderDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )
        dto = CreateOrderDTO.model_validate(
            {
                "items": [{"product_id": self.product.id, "quantity": 1}],
                "shipping_address": {
                    "street": "1 Loop",
                    "city": "Delhi",
                    "state": "DL",
                    "zip_code": "110001",
                },
            }
        )
        try:
            service.place_order(Principal.from_user(buyer), dto)
            return "ok"
        except InsufficientStock:
            return "rejected"
        finally:
            connections.close_all()

    def test_no_overselling(self):
        with ThreadPoolExecutor(max_workers=NUM_WORKERS) as pool:
            futures = [pool.submit(self._buy, buyer) for buyer in self.buyers]
            results = [future.result() for future in as_completed(futures)]

        self.product.refresh_from_db()
        assert results.count("ok") == INITIAL_STOCK
        assert results.count("rejected") == NUM_WORKERS - INITIAL_STOCK
        assert self.product.in_stock == 0
        assert Order.objects.count() == INITIAL_STOCK
