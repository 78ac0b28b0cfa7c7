"""End-to-end tests for the webhook API with fake ERP collaborators."""

import json
import logging

import pytest
from fastapi.testclient import TestClient

from api.dependencies import ServiceContainer
from api.server import create_app
from core.errors import AuthError, RemoteCallError, SignatureError
from core.security.signature import (
    SIGNATURE_HEADER,
    compute_signature,
    is_valid_signature,
    verify_signature,
)
from core.storage.order_map import OrderMappingStore


PAID_ORDER = {
    "id": 1001,
    "financial_status": "paid",
    "total_price": "50.00",
    "created_at": "2025-03-01T10:00:00-05:00",
    "customer": {"email": "ana@example.com"},
}


@pytest.fixture
def client(settings, fake_connector):
    container = ServiceContainer(
        settings=settings,
        connector=fake_connector,
        store=OrderMappingStore(settings.map_path),
    )
    with TestClient(create_app(container=container)) as test_client:
        yield test_client


def post_signed(client, path, payload, secret="test-secret", raw=None):
    body = raw if raw is not None else json.dumps(payload).encode("utf-8")
    return client.post(
        path,
        content=body,
        headers={
            SIGNATURE_HEADER: compute_signature(body, secret),
            "Content-Type": "application/json",
            "X-Shopify-Webhook-Id": "wh-1",
        },
    )


class TestSignature:

    def test_matching_signature(self):
        body = b'{"id": 1}'
        assert is_valid_signature(body, "s3cret", compute_signature(body, "s3cret"))

    def test_mismatch_missing_and_empty_secret(self):
        body = b'{"id": 1}'
        assert not is_valid_signature(body, "s3cret", compute_signature(body, "other"))
        assert not is_valid_signature(body, "s3cret", None)
        assert not is_valid_signature(body, "", compute_signature(body, ""))
        assert not is_valid_signature(b'{"id": 2}', "s3cret", compute_signature(body, "s3cret"))

    def test_verify_raises(self):
        with pytest.raises(SignatureError):
            verify_signature(b"{}", "s3cret", "bogus")


class TestWebhookAuth:

    def test_bad_signature_is_rejected_before_any_work(self, client, fake_connector, settings):
        response = post_signed(client, "/webhook/orders/paid", PAID_ORDER, secret="wrong")

        assert response.status_code == 401
        assert response.json() == {"status": "error", "error": "Invalid HMAC"}
        assert fake_connector.created == []
        assert not settings.map_path.exists()

    def test_missing_signature(self, client):
        response = client.post("/webhook/products/update", content=b"{}")
        assert response.status_code == 401

    def test_invalid_json_is_400(self, client):
        response = post_signed(client, "/webhook/orders/paid", None, raw=b"{not json")
        assert response.status_code == 400

    def test_order_without_id_is_400(self, client):
        response = post_signed(client, "/webhook/orders/paid", {"financial_status": "paid"})
        assert response.status_code == 400


class TestOrderWebhooks:

    def test_paid_then_redelivered(self, client, fake_connector, settings):
        first = post_signed(client, "/webhook/orders/paid", PAID_ORDER)
        second = post_signed(client, "/webhook/orders/paid", PAID_ORDER)

        assert first.status_code == 200
        assert first.json() == {"status": "ok", "outcome": "created"}
        assert second.json() == {"status": "ok", "outcome": "already_processed"}
        assert len(fake_connector.created) == 1

        on_disk = json.loads(settings.map_path.read_text(encoding="utf-8"))
        assert on_disk["orders"]["1001"]["document_reference"] == "4521"

    def test_cancel_after_paid_voids(self, client, fake_connector):
        post_signed(client, "/webhook/orders/paid", PAID_ORDER)
        response = post_signed(client, "/webhook/orders/cancelled", dict(PAID_ORDER, cancel_reason="customer"))

        assert response.json()["outcome"] == "voided"
        assert fake_connector.voided[0].document_id == "4521"

    def test_cancel_unknown_order(self, client, fake_connector):
        response = post_signed(client, "/webhook/orders/cancelled", dict(PAID_ORDER, id=9999))
        assert response.status_code == 200
        assert response.json()["outcome"] == "no_mapping"
        assert fake_connector.voided == []

    def test_created_unpaid(self, client, fake_connector):
        response = post_signed(client, "/webhook/orders/create", dict(PAID_ORDER, financial_status="pending"))
        assert response.json()["outcome"] == "skipped_not_paid"
        assert fake_connector.created == []

    def test_updated_to_paid(self, client, fake_connector):
        response = post_signed(client, "/webhook/orders/updated", PAID_ORDER)
        assert response.json()["outcome"] == "created"

    @pytest.mark.parametrize("error", [
        RemoteCallError("HGI API error 500", 500, "boom"),
        AuthError("token request failed"),
    ])
    def test_remote_failure_is_500_and_retriable(self, client, fake_connector, settings, error):
        fake_connector.create_error = error
        response = post_signed(client, "/webhook/orders/paid", PAID_ORDER)

        assert response.status_code == 500
        assert response.json()["error"] == type(error).__name__
        assert not settings.map_path.exists()

        fake_connector.create_error = None
        retry = post_signed(client, "/webhook/orders/paid", PAID_ORDER)
        assert retry.json()["outcome"] == "created"


class TestProductWebhooks:

    def test_scenario_e_one_item(self, client, fake_connector):
        product = {
            "id": 42,
            "title": "Camiseta",
            "status": "active",
            "variants": [{"sku": "A1", "price": 10}, {"sku": None}],
        }
        response = post_signed(client, "/webhook/products/update", product)

        assert response.json() == {"status": "ok", "outcome": "upserted"}
        assert len(fake_connector.upserts) == 1
        assert [p.code for p in fake_connector.upserts[0]] == ["A1"]

    def test_delete_deactivates(self, client, fake_connector):
        product = {"id": 42, "title": "Camiseta", "variants": [{"sku": "A1", "price": "10.00"}]}
        response = post_signed(client, "/webhook/products/delete", product)

        assert response.status_code == 200
        assert fake_connector.upserts[0][0].active is False

    def test_no_skus(self, client, fake_connector):
        response = post_signed(client, "/webhook/products/update", {"id": 42, "variants": []})
        assert response.json()["outcome"] == "no_skus"
        assert fake_connector.upserts == []


class TestHealth:

    def test_health(self, client):
        post_signed(client, "/webhook/orders/paid", PAID_ORDER)
        body = client.get("/health").json()

        assert body["status"] == "healthy"
        assert body["services"]["storage"] == "up"
        assert body["services"]["erp"] == "connected"
        assert body["services"]["poller"] == "off"
        assert body["order_mappings"] == 1

    def test_ready_and_live(self, client):
        assert client.get("/ready").json() == {"status": "ready"}
        assert client.get("/live").json() == {"status": "alive"}

    def test_not_ready_before_startup(self, settings, fake_connector):
        container = ServiceContainer(
            settings=settings,
            connector=fake_connector,
            store=OrderMappingStore(settings.map_path),
        )
        # Without the context manager the lifespan never runs.
        response = TestClient(create_app(container=container)).get("/ready")
        assert response.status_code == 503


class TestUnexpectedErrors:

    def test_unexpected_error_is_logged_with_topic(self, settings, fake_connector, caplog):
        settings.hgi_empresa = "not-a-number"
        container = ServiceContainer(
            settings=settings,
            connector=fake_connector,
            store=OrderMappingStore(settings.map_path),
        )

        with caplog.at_level(logging.ERROR):
            with TestClient(create_app(container=container), raise_server_exceptions=False) as test_client:
                response = post_signed(test_client, "/webhook/orders/paid", PAID_ORDER)

        assert response.status_code == 500
        assert fake_connector.created == []
        failures = [r for r in caplog.records if r.getMessage() == "orders/paid failed unexpectedly"]
        assert len(failures) == 1
        assert failures[0].exc_info[0] is ValueError
        assert any("HGI_EMPRESA" in r.getMessage() for r in caplog.records)
