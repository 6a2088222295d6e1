"""Unit tests for the best-effort cart clear task."""

from __future__ import annotations

import logging
from unittest import mock

import pytest

from modules.carts.models import CartItem
from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.tasks import clear_customer_cart
from modules.core.exceptions import StorageFailure

pytestmark = pytest.mark.unit


def test_clears_only_that_customers_cart(customer, other_customer, make_product):
    product = make_product()
    CartItem.objects.create(customer=customer, product=product, quantity=2)
    CartItem.objects.create(customer=other_customer, product=product, quantity=1)

    removed = clear_customer_cart(str(customer.id))

    assert removed == 1
    assert not CartItem.objects.filter(customer=customer).exists()
    assert CartItem.objects.filter(customer=other_customer).exists()


def test_empty_cart_is_fine(customer):
    assert clear_customer_cart(str(customer.id)) == 0


def test_storage_failure_is_logged_and_swallowed(customer, caplog):
    with mock.patch.object(
        CartDjangoRepository,
        "clear_for_customer",
        side_effect=StorageFailure("delete failed"),
    ):
        with caplog.at_level(logging.WARNING, logger="modules.carts.tasks"):
            assert clear_customer_cart(str(customer.id)) == 0

    assert any("cart.clear_failed" in r.getMessage() for r in caplog.records)


def test_runs_eagerly_through_delay(customer, make_product):
    CartItem.objects.create(customer=customer, product=make_product(), quantity=1)

    clear_customer_cart.delay(str(customer.id))

    assert not CartItem.objects.filter(customer=customer).exists()
