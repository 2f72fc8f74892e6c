"""Tests for User and Service CRUD endpoints."""
from tests.conftest import create_test_service, create_test_user


class TestUserCRUD:
    """User create / get / update / list."""

    def test_create_user(self, client):
        data = create_test_user(client, name="Alice")
        assert data["display_name"] == "Alice"
        assert data["role"] == "user"
        assert data["is_active"] is True
        assert "user_id" in data

    def test_create_user_opens_empty_wallet(self, client):
        user = create_test_user(client)
        resp = client.get(f"/api/wallets/{user['user_id']}")
        assert resp.status_code == 200
        assert resp.json()["balance"] == 0
        assert resp.json()["holds"] == []

    def test_duplicate_display_name(self, client):
        create_test_user(client, name="Alice")
        resp = client.post("/api/users/", json={"display_name": "Alice"})
        assert resp.status_code == 409
        assert resp.json()["error"] == "Conflict"

    def test_get_user(self, client):
        user = create_test_user(client)
        resp = client.get(f"/api/users/{user['user_id']}")
        assert resp.status_code == 200
        assert resp.json()["display_name"] == "Test User"

    def test_get_user_not_found(self, client):
        resp = client.get("/api/users/00000000-0000-0000-0000-000000000000")
        assert resp.status_code == 404
        assert resp.json()["error"] == "NotFound"

    def test_deactivate_user(self, client):
        user = create_test_user(client)
        resp = client.patch(f"/api/users/{user['user_id']}", json={"is_active": False})
        assert resp.status_code == 200
        assert resp.json()["is_active"] is False

    def test_list_users(self, client):
        create_test_user(client, name="Alice")
        create_test_user(client, name="Bob")
        resp = client.get("/api/users/")
        assert resp.status_code == 200
        names = [u["display_name"] for u in resp.json()]
        assert "Alice" in names
        assert "Bob" in names


class TestServiceCRUD:

    def test_create_service(self, client):
        seller = create_test_user(client, name="Seller")
        service = create_test_service(client, seller["user_id"], price=250, revisions=2)
        assert service["price"] == 250
        assert service["revisions_included"] == 2
        assert service["is_active"] is True

    def test_unknown_seller(self, client):
        resp = client.post("/api/services/", json={
            "seller_id": "ghost", "title": "Logo", "price": 100, "delivery_days": 1,
        })
        assert resp.status_code == 404

    def test_price_must_be_positive(self, client):
        seller = create_test_user(client, name="Seller")
        resp = client.post("/api/services/", json={
            "seller_id": seller["user_id"], "title": "Logo", "price": 0, "delivery_days": 1,
        })
        assert resp.status_code == 422
        assert resp.json()["error"] == "InvalidArgument"

    def test_update_service(self, client):
        seller = create_test_user(client, name="Seller")
        service = create_test_service(client, seller["user_id"])
        resp = client.patch(f"/api/services/{service['service_id']}", json={"price": 150, "is_active": False})
        assert resp.status_code == 200
        assert resp.json()["price"] == 150
        assert resp.json()["is_active"] is False
        assert resp.json()["title"] == service["title"]
