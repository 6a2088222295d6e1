"""Unit tests for the Product/Stock Store repository."""

from __future__ import annotations

from unittest import mock
from uuid import uuid4

import pytest
from django.db import DatabaseError

from modules.catalog.models import Product
from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.core.exceptions import StorageFailure

pytestmark = pytest.mark.unit


@pytest.fixture()
def repo():
    return ProductDjangoRepository()


class TestGetActive:
    def test_returns_active_product(self, repo, make_product):
        product = make_product()
        assert repo.get_active(str(product.id)) == product

    def test_inactive_product_is_hidden(self, repo, make_product):
        product = make_product(is_active=False)
        assert repo.get_active(str(product.id)) is None
        assert repo.get_by_id(str(product.id)) == product

    def test_unknown_and_malformed_ids(self, repo):
        assert repo.get_active(str(uuid4())) is None
        assert repo.get_active("not-a-uuid") is None


class TestConditionalDecrement:
    def test_decrements_when_enough_stock(self, repo, make_product):
        product = make_product(in_stock=5)

        assert repo.conditional_decrement_stock(str(product.id), 5) is True
        product.refresh_from_db()
        assert product.in_stock == 0

    def test_refuses_when_short(self, repo, make_product):
        product = make_product(in_stock=2)

        assert repo.conditional_decrement_stock(str(product.id), 3) is False
        product.refresh_from_db()
        assert product.in_stock == 2

    def test_refuses_inactive_product(self, repo, make_product):
        product = make_product(in_stock=5, is_active=False)
        assert repo.conditional_decrement_stock(str(product.id), 1) is False

    def test_leaves_other_fields_alone(self, repo, make_product):
        product = make_product(price="10.00", in_stock=5)
        Product.objects.filter(id=product.id).update(name="Renamed elsewhere")

        repo.conditional_decrement_stock(str(product.id), 1)

        product.refresh_from_db()
        assert product.name == "Renamed elsewhere"
        assert product.in_stock == 4


def test_restock_adds_quantity(repo, make_product):
    product = make_product(in_stock=1)

    assert repo.restock(str(product.id), 4) is True
    product.refresh_from_db()
    assert product.in_stock == 5


def test_database_errors_become_storage_failure(repo, make_product):
    product = make_product()

    with mock.patch.object(
        Product.objects, "filter", side_effect=DatabaseError("connection reset")
    ):
        with pytest.raises(StorageFailure) as excinfo:
            repo.conditional_decrement_stock(str(product.id), 1)

    assert excinfo.value.public_detail == "Something went wrong."
    assert "connection reset" not in excinfo.value.public_detail
    assert isinstance(excinfo.value.__cause__, DatabaseError)
