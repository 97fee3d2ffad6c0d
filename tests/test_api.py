"""
NetWorth Pro - API Tests
========================
Save / fetch / list endpoints via FastAPI's TestClient.
"""

import os
import sys

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "backend"))

from config import Settings
from main import create_app
from storage import NetWorthStorage


VALID_BODY = {
    "userId": "user-123",
    "currency": "USD",
    "assets": {"checking": 500, "stocks": 1500},
    "liabilities": {"creditCard1": 400},
    "totalAssets": 2000,
    "totalLiabilities": 400,
    "netWorth": 1600,
}


class ExplodingStorage(NetWorthStorage):
    def save_calculation(self, calculation):
        raise RuntimeError("storage offline")


@pytest.fixture
def storage():
    return NetWorthStorage()


@pytest.fixture
def client(storage):
    return TestClient(create_app(storage=storage, settings=Settings()))


class TestSaveCalculation:
    """POST /api/net-worth"""

    def test_valid_body_is_stored(self, client, storage):
        response = client.post("/api/net-worth", json=VALID_BODY)
        assert response.status_code == 200

        data = response.json()
        assert data["id"]
        assert data["userId"] == "user-123"
        assert data["currency"] == "USD"
        assert data["assets"]["stocks"] == 1500
        assert data["assets"]["primaryHome"] == 0
        assert data["liabilities"]["creditCard1"] == 400
        assert data["netWorth"] == 1600
        assert "createdAt" in data and "updatedAt" in data
        assert len(storage) == 1

    def test_each_save_gets_new_id(self, client):
        first = client.post("/api/net-worth", json=VALID_BODY).json()
        second = client.post("/api/net-worth", json=VALID_BODY).json()
        assert first["id"] != second["id"]

    def test_anonymous_save(self, client):
        body = {k: v for k, v in VALID_BODY.items() if k != "userId"}
        response = client.post("/api/net-worth", json=body)
        assert response.status_code == 200
        assert response.json()["userId"] is None

    def test_negative_asset_rejected(self, client, storage):
        body = dict(VALID_BODY, assets={"checking": -1})
        response = client.post("/api/net-worth", json=body)
        assert response.status_code == 400

        data = response.json()
        assert data["message"] == "Invalid data"
        assert len(data["errors"]) > 0
        assert len(storage) == 0

    def test_negative_liability_rejected(self, client):
        body = dict(VALID_BODY, liabilities={"carLoan1": -250})
        assert client.post("/api/net-worth", json=body).status_code == 400

    def test_unsupported_currency_rejected(self, client):
        body = dict(VALID_BODY, currency="XYZ")
        response = client.post("/api/net-worth", json=body)
        assert response.status_code == 400
        assert response.json()["errors"]

    def test_missing_records_rejected(self, client):
        response = client.post("/api/net-worth", json={"currency": "USD"})
        assert response.status_code == 400

    def test_malformed_json_rejected(self, client):
        response = client.post(
            "/api/net-worth",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid data"

    @pytest.mark.parametrize("constant", [b"NaN", b"Infinity", b"-Infinity"])
    def test_non_finite_amount_rejected(self, client, storage, constant):
        """Python's JSON parser accepts these constants; the schema must not."""
        body = b'{"currency": "USD", "assets": {"checking": ' + constant + b'}, "liabilities": {}}'
        response = client.post(
            "/api/net-worth",
            content=body,
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400

        data = response.json()
        assert data["message"] == "Invalid data"
        assert data["errors"]
        assert all("input" not in error for error in data["errors"])
        assert len(storage) == 0

    def test_non_finite_total_rejected(self, client):
        body = b'{"assets": {}, "liabilities": {}, "netWorth": Infinity}'
        response = client.post(
            "/api/net-worth",
            content=body,
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400

    def test_storage_failure_is_500(self):
        app = create_app(storage=ExplodingStorage(), settings=Settings())
        client = TestClient(app, raise_server_exceptions=False)
        response = client.post("/api/net-worth", json=VALID_BODY)
        assert response.status_code == 500
        assert response.json() == {"message": "Internal server error"}

    def test_debug_500_includes_detail(self):
        app = create_app(storage=ExplodingStorage(), settings=Settings(debug=True))
        client = TestClient(app, raise_server_exceptions=False)
        response = client.post("/api/net-worth", json=VALID_BODY)
        assert response.status_code == 500
        assert response.json()["detail"] == "storage offline"


class TestFetchCalculations:
    """GET endpoints."""

    def test_get_by_id(self, client):
        saved = client.post("/api/net-worth", json=VALID_BODY).json()
        response = client.get(f"/api/net-worth/{saved['id']}")
        assert response.status_code == 200
        assert response.json() == saved

    def test_unknown_id_is_404(self, client):
        response = client.get("/api/net-worth/does-not-exist")
        assert response.status_code == 404
        assert response.json() == {"message": "Net worth calculation not found"}

    def test_user_list_in_save_order(self, client):
        ids = [client.post("/api/net-worth", json=VALID_BODY).json()["id"] for _ in range(3)]
        client.post("/api/net-worth", json=dict(VALID_BODY, userId="someone-else"))

        response = client.get("/api/users/user-123/net-worth")
        assert response.status_code == 200
        assert [calc["id"] for calc in response.json()] == ids

    def test_user_without_records_gets_empty_list(self, client):
        response = client.get("/api/users/nobody/net-worth")
        assert response.status_code == 200
        assert response.json() == []


class TestServiceEndpoints:

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_root(self, client):
        assert client.get("/").json()["service"] == "NetWorth Pro"


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
