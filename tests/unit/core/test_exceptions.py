"""Unit tests for the error taxonomy and the DRF exception handler."""

from __future__ import annotations

import pytest
from django.core.exceptions import PermissionDenied
from django.http import Http404
from rest_framework import exceptions as drf_exceptions

from modules.core.exceptions import (
    Forbidden,
    InvalidInput,
    StorageFailure,
    exception_handler,
)
from modules.orders.exceptions import InsufficientStock, OrderNotFound

pytestmark = pytest.mark.unit


def _handle(exc):
    return exception_handler(exc, {"view": None})


class TestDomainErrors:
    def test_insufficient_stock_is_conflict(self):
        response = _handle(InsufficientStock("Lamp", 3, 2))

        assert response.status_code == 409
        assert response.data["success"] is False
        assert response.data["type"] == "client_error"
        error = response.data["errors"][0]
        assert error["code"] == "insufficient_stock"
        assert "Lamp" in error["detail"]
        assert "available 2" in error["detail"]

    @pytest.mark.parametrize(
        ("exc", "status_code", "code"),
        [
            (InvalidInput("bad"), 400, "invalid_input"),
            (Forbidden(), 403, "forbidden"),
            (OrderNotFound(), 404, "order_not_found"),
        ],
    )
    def test_status_and_code(self, exc, status_code, code):
        response = _handle(exc)
        assert response.status_code == status_code
        assert response.data["errors"][0]["code"] == code

    def test_storage_failure_hides_internals(self):
        response = _handle(StorageFailure("duplicate key value violates constraint xyz"))

        assert response.status_code == 500
        assert response.data["type"] == "server_error"
        assert response.data["errors"][0]["detail"] == "Something went wrong."


class TestFrameworkErrors:
    def test_http404_is_rendered(self):
        response = _handle(Http404())
        assert response.status_code == 404
        assert response.data["errors"][0]["code"] == "not_found"

    def test_django_permission_denied(self):
        response = _handle(PermissionDenied())
        assert response.status_code == 403

    def test_nested_validation_errors_are_flattened(self):
        exc = drf_exceptions.ValidationError(
            {
                "shipping_address": {"city": ["This field is required."]},
                "items": [{}, {"quantity": ["Ensure this value is greater than or equal to 1."]}],
            }
        )

        response = _handle(exc)

        attrs = {error["attr"] for error in response.data["errors"]}
        assert attrs == {"shipping_address.city", "items.1.quantity"}

    def test_unexpected_exception_is_generic_500(self):
        response = _handle(KeyError("secret internals"))

        assert response.status_code == 500
        assert response.data["errors"][0]["detail"] == "Something went wrong."
        assert "secret" not in str(response.data)
