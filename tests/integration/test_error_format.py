"""Integration tests for standardized error responses."""

from unittest import mock

import pytest
from django.db import DatabaseError

pytestmark = pytest.mark.integration


class TestStandardizedErrors:
    def test_auth_error_has_standard_format(self, api_client):
        response = api_client.get("/api/v1/orders/my-orders/")

        assert response.status_code == 401
        data = response.json()
        assert data["success"] is False
        assert data["type"] == "client_error"
        assert isinstance(data["errors"], list)
        assert {"code", "detail", "attr"} <= set(data["errors"][0])

    def test_malformed_json_has_standard_format(self, client_for, customer):
        response = client_for(customer).post(
            "/api/v1/orders/", data="{", content_type="application/json"
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "parse_error"

    def test_storage_failure_is_generic(self, client_for, customer):
        with mock.patch(
            "modules.orders.repositories.django_repository.Order.objects.select_related",
            side_effect=DatabaseError("relation orders does not exist"),
        ):
            response = client_for(customer).get("/api/v1/orders/my-orders/")

        assert response.status_code == 500
        data = response.json()
        assert data["type"] == "server_error"
        assert data["errors"][0]["detail"] == "Something went wrong."
        assert "relation" not in str(data)
