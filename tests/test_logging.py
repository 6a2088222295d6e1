import logging
import uuid

import pytest

from config.settings import mask_sensitive_data

pytestmark = pytest.mark.unit


class TestCorrelationIdMiddleware:
    def test_returns_provided_request_id(self, client):
        custom_id = "my-custom-request-id-123"
        response = client.get("/health", HTTP_X_REQUEST_ID=custom_id)
        assert response["X-Request-ID"] == custom_id

    def test_generates_uuid_when_no_request_id(self, client):
        response = client.get("/health")
        request_id = response["X-Request-ID"]
        parsed = uuid.UUID(request_id, version=4)
        assert str(parsed) == request_id

    def test_correlation_id_in_logs(self, client, caplog):
        custom_id = "log-test-correlation-456"
        with caplog.at_level(logging.INFO):
            client.get("/health", HTTP_X_REQUEST_ID=custom_id)
        assert any(custom_id in record.getMessage() for record in caplog.records)


class TestSensitiveDataMasking:
    @pytest.mark.parametrize(
        "card",
        ["4111111111111111", "4111 1111 1111 1111", "5500-0000-0000-0004"],
    )
    def test_card_numbers_masked(self, card):
        result = mask_sensitive_data(None, None, {"event": "test", "detail": f"card {card} used"})
        assert card not in result["detail"]
        assert "***MASKED***" in result["detail"]

    def test_password_masked(self):
        result = mask_sensitive_data(None, None, {"event": "test", "data": "password='s3cret123'"})
        assert "s3cret123" not in result["data"]

    def test_token_masked(self):
        result = mask_sensitive_data(None, None, {"event": "test", "header": "token=abc123xyz"})
        assert "abc123xyz" not in result["header"]

    def test_uuids_are_left_alone(self):
        order_id = "12345678-1234-7234-8234-123456789012"
        result = mask_sensitive_data(None, None, {"event": "test", "order_id": order_id})
        assert result["order_id"] == order_id

    def test_non_string_values_untouched(self):
        result = mask_sensitive_data(None, None, {"event": "test", "count": 4111111111111111})
        assert result["count"] == 4111111111111111


class TestEngineLogEvents:
    def test_order_creation_logs(self, place_order, make_product, caplog):
        with caplog.at_level(logging.INFO, logger="modules.orders.services"):
            place_order((make_product(), 1))

        messages = " ".join(record.getMessage() for record in caplog.records)
        assert "order.creation_started" in messages
        assert "order.stock_reserved" in messages
        assert "order.created" in messages

    def test_access_denial_is_logged(self, client_for, seller, caplog):
        with caplog.at_level(logging.INFO, logger="modules.orders.policies"):
            client_for(seller).get("/api/v1/orders/my-orders/")

        assert any("order.access_denied" in r.getMessage() for r in caplog.records)
