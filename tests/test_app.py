"""End-to-end tests for the LUD-16 / LUD-06 HTTP routes."""

import hashlib
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
import structlog.testing
from fastapi.testclient import TestClient

from lightning_address.app import create_app
from lightning_address.broker import InvoiceBroker
from lightning_address.state import ServiceState


class KeepOrder:
    def shuffle(self, items):
        pass


def make_backend(invoice=None, error=None):
    backend = MagicMock()
    backend.kind = "fake"
    backend.create_invoice = AsyncMock(return_value=invoice, side_effect=error)
    return backend


def make_client(users):
    state = ServiceState(domain="example.com", users=users)
    return TestClient(create_app(state, InvoiceBroker(state, rng=KeepOrder())))


@pytest.fixture
def backend():
    return make_backend(invoice="lnbc1test")


@pytest.fixture
def client(backend):
    return make_client({"alice": [backend]})


class TestPayInfo:
    def test_returns_pay_request(self, client):
        response = client.get("/.well-known/lnurlp/alice")

        assert response.status_code == 200
        data = response.json()
        assert data["callback"] == "https://example.com/lnurlp/alice"
        assert data["maxSendable"] == 100000000000
        assert data["minSendable"] == 1000
        assert data["tag"] == "payRequest"
        assert json.loads(data["metadata"])[0] == ["text/identifier", "alice@example.com"]

    def test_unknown_user(self, client):
        response = client.get("/.well-known/lnurlp/bob")

        assert response.status_code == 400
        assert response.json() == {"status": "ERROR", "reason": "user bob not found"}

    def test_username_is_case_sensitive(self, client):
        assert client.get("/.well-known/lnurlp/Alice").status_code == 400


class TestInvoice:
    def test_returns_invoice(self, client):
        response = client.get("/lnurlp/alice", params={"amount": 1500})

        assert response.status_code == 200
        assert response.json() == {"pr": "lnbc1test", "routes": []}

    def test_zero_amount(self, client, backend):
        response = client.get("/lnurlp/alice", params={"amount": 0})

        assert response.status_code == 400
        assert response.json() == {"status": "ERROR", "reason": "amount must > 0"}
        backend.create_invoice.assert_not_called()

    def test_unknown_user(self, client):
        response = client.get("/lnurlp/bob", params={"amount": 1000})

        assert response.status_code == 400
        assert response.json() == {"status": "ERROR", "reason": "user bob not found"}

    @pytest.mark.parametrize(
        "query",
        [
            "?amount=abc",
            "?amount=-5",
            "?amount=1.5",
            "?amount=1.0",
            "?amount=%205",
            "?amount=5%20",
            "?amount=18446744073709551616",
            "",
        ],
    )
    def test_malformed_amount(self, client, backend, query):
        response = client.get(f"/lnurlp/alice{query}")

        assert response.status_code == 400
        body = response.json()
        assert body["status"] == "ERROR"
        assert body["reason"].startswith("invalid query")
        backend.create_invoice.assert_not_called()

    def test_accepts_largest_u64(self, client, backend):
        response = client.get("/lnurlp/alice", params={"amount": "18446744073709551615"})

        assert response.status_code == 200
        assert backend.create_invoice.await_args.args[0] == 18446744073709551615

    def test_accepts_leading_plus(self, client, backend):
        response = client.get("/lnurlp/alice?amount=%2B1500")

        assert response.status_code == 200
        assert backend.create_invoice.await_args.args[0] == 1500

    def test_all_backends_failed(self):
        client = make_client(
            {
                "alice": [
                    make_backend(error=RuntimeError("wallet offline")),
                    make_backend(error=RuntimeError("relay unreachable")),
                ]
            }
        )

        response = client.get("/lnurlp/alice", params={"amount": 1000})

        assert response.status_code == 500
        assert response.json() == {"status": "ERROR", "reason": "relay unreachable"}

    def test_all_backends_failed_logged_once(self):
        client = make_client({"alice": [make_backend(error=RuntimeError("wallet offline"))]})

        with structlog.testing.capture_logs() as logs:
            client.get("/lnurlp/alice", params={"amount": 1000})

        assert [entry["event"] for entry in logs if entry["log_level"] == "error"] == [
            "all backend attempts failed"
        ]

    def test_description_hash_matches_served_metadata(self, client, backend):
        """The invoice commits to exactly the metadata the wallet fetched."""
        metadata = client.get("/.well-known/lnurlp/alice").json()["metadata"]
        client.get("/lnurlp/alice", params={"amount": 2000})

        amount, desc_hash = backend.create_invoice.await_args.args
        assert amount == 2000
        assert desc_hash == hashlib.sha256(metadata.encode("utf-8")).hexdigest()


class TestErrorShape:
    def test_unknown_route_is_json(self, client):
        response = client.get("/nope")

        assert response.status_code == 404
        assert response.json() == {"status": "ERROR", "reason": "Not Found"}

    def test_wrong_method_is_json(self, client):
        response = client.post("/lnurlp/alice")

        assert response.status_code == 405
        assert response.json()["status"] == "ERROR"
