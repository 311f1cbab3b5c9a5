"""保証レコード API のユニットテスト

dependency_overrides で認証 uid とストアを差し替える。
ストアはインメモリリポジトリを使うため、実際の Firestore は使わない。
"""

import datetime

import pytest
from fastapi.testclient import TestClient
from ewarrants.entrypoints.api.app import app
from ewarrants.entrypoints.api.deps import get_current_uid, get_warranty_store

_BODY = {
    "product_name": "Laptop",
    "purchase_date": "2024-06-01",
    "warranty_length_months": 12,
    "category": "Electronics",
    "receipts": [{"name": "r", "url": "https://x/r.jpg", "file_type": "image/jpeg"}],
}


class _AsUser:
    """get_current_uid の差し替え（テスト中に切り替え可能）"""

    uid = "user-a"

    def __call__(self) -> str:
        return self.uid


@pytest.fixture
def current():
    return _AsUser()


@pytest.fixture
def client(store, current):
    app.dependency_overrides[get_current_uid] = current
    app.dependency_overrides[get_warranty_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestCreate:
    def test_create_returns_201_with_expiry(self, client):
        response = client.post("/api/warranties", json=_BODY)

        assert response.status_code == 201
        data = response.json()
        assert data["id"]
        assert data["expiry_date"] == "2025-06-01"
        assert data["receipts"][0]["url"] == "https://x/r.jpg"

    def test_missing_fields_return_400_with_field_errors(self, client):
        response = client.post("/api/warranties", json={"category": "Toys"})

        assert response.status_code == 400
        fields = {e["field"] for e in response.json()["errors"]}
        assert {"product_name", "purchase_date", "warranty_length_months"} <= fields

    def test_malformed_date_returns_400(self, client):
        response = client.post("/api/warranties", json={**_BODY, "purchase_date": "yesterday"})

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "purchase_date"

    def test_negative_length_returns_400(self, client):
        response = client.post("/api/warranties", json={**_BODY, "warranty_length_months": -3})
        assert response.status_code == 400


class TestReadUpdateDelete:
    def test_get_own_record(self, client):
        created = client.post("/api/warranties", json=_BODY).json()

        response = client.get(f"/api/warranties/{created['id']}")

        assert response.status_code == 200
        assert response.json()["product_name"] == "Laptop"

    def test_other_user_gets_404(self, client, current):
        created = client.post("/api/warranties", json=_BODY).json()

        current.uid = "user-b"
        response = client.get(f"/api/warranties/{created['id']}")

        assert response.status_code == 404
        assert response.json()["detail"] == f"Warranty not found with id of {created['id']}"

    def test_other_user_cannot_update_or_delete(self, client, current):
        created = client.post("/api/warranties", json=_BODY).json()

        current.uid = "user-b"
        assert client.put(f"/api/warranties/{created['id']}", json=_BODY).status_code == 404
        assert client.delete(f"/api/warranties/{created['id']}").status_code == 404

        current.uid = "user-a"
        assert client.get(f"/api/warranties/{created['id']}").status_code == 200

    def test_update_replaces_fields(self, client):
        created = client.post("/api/warranties", json=_BODY).json()

        response = client.put(
            f"/api/warranties/{created['id']}",
            json={**_BODY, "product_name": "Laptop Pro", "warranty_length_months": 24},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == created["id"]
        assert data["expiry_date"] == "2026-06-01"
        assert data["created_at"] == created["created_at"]

    def test_delete_then_404(self, client):
        created = client.post("/api/warranties", json=_BODY).json()

        response = client.delete(f"/api/warranties/{created['id']}")

        assert response.status_code == 200
        assert response.json() == {"msg": "Warranty deleted successfully"}
        assert client.get(f"/api/warranties/{created['id']}").status_code == 404


class TestList:
    def test_newest_purchase_first(self, client):
        client.post("/api/warranties", json={**_BODY, "product_name": "Old", "purchase_date": "2020-01-01"})
        client.post("/api/warranties", json={**_BODY, "product_name": "New", "purchase_date": "2024-01-01"})

        names = [w["product_name"] for w in client.get("/api/warranties").json()]

        assert names == ["New", "Old"]

    def test_last_pulled_at_filters_older_updates(self, client):
        client.post("/api/warranties", json={**_BODY, "product_name": "First"})
        second = client.post("/api/warranties", json={**_BODY, "product_name": "Second"}).json()
        first = next(
            w for w in client.get("/api/warranties").json() if w["product_name"] == "First"
        )
        first_ts = datetime.datetime.fromisoformat(first["updated_at"].replace("Z", "+00:00"))
        pulled_ms = int(first_ts.timestamp() * 1000)

        response = client.get("/api/warranties", params={"last_pulled_at": pulled_ms})

        assert [w["id"] for w in response.json()] == [second["id"]]

    def test_list_is_owner_scoped(self, client, current):
        client.post("/api/warranties", json=_BODY)
        current.uid = "user-b"
        assert client.get("/api/warranties").json() == []


class TestLastPulledAtBounds:
    @pytest.mark.parametrize("value", [-1, 10**20])
    def test_out_of_range_is_400(self, client, value):
        response = client.get("/api/warranties", params={"last_pulled_at": value})

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "query.last_pulled_at"

    def test_upper_bound_accepted(self, client):
        response = client.get("/api/warranties", params={"last_pulled_at": 253_402_300_799_999})
        assert response.status_code == 200
