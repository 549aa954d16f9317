"""
Tests for /cards, /profile and /notifications endpoints.
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from bankportal.auth.dependencies import AuthenticatedUser, get_authenticated_user
from bankportal.main import app

client = TestClient(app)


async def mock_get_authenticated_user_dependency():
    return AuthenticatedUser(
        user_id="test-user-id",
        access_token="test-access-token",
        email="test@example.com",
    )


@pytest.fixture
def mock_auth():
    app.dependency_overrides[get_authenticated_user] = mock_get_authenticated_user_dependency
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def fake_db(make_fake_client):
    fake = make_fake_client({
        "cards": [
            {"id": 1, "user_id": "test-user-id", "account_id": 1, "card_number": "4111111111111111",
             "card_type": "debit", "expiry_date": "12/29", "cvv": "123",
             "card_holder_name": "Test User", "is_active": True, "created_at": "2024-01-01"},
        ],
        "card_transactions": [
            {"id": 1, "card_id": 1, "amount": 12.5, "merchant": "Cafe", "date": "2024-02-01"},
            {"id": 2, "card_id": 1, "amount": 40.0, "merchant": "Books", "date": "2024-02-03"},
        ],
        "notifications": [
            {"id": 1, "user_id": "test-user-id", "title": "A", "message": "a", "is_read": False,
             "created_at": "2024-01-01"},
            {"id": 2, "user_id": "test-user-id", "title": "B", "message": "b", "is_read": True,
             "created_at": "2024-01-02"},
            {"id": 3, "user_id": "test-user-id", "title": "C", "message": "c", "is_read": False,
             "created_at": "2024-01-03"},
        ],
    })
    targets = ("cards", "profile", "notifications")
    patchers = [patch(f"bankportal.routes.{name}.get_supabase_client", return_value=fake) for name in targets]
    for patcher in patchers:
        patcher.start()
    yield fake
    for patcher in patchers:
        patcher.stop()


class TestCards:

    def test_card_numbers_are_masked(self, mock_auth, fake_db):
        response = client.get("/cards")

        card = response.json()["cards"][0]
        assert card["last4"] == "1111"
        assert "card_number" not in card
        assert "cvv" not in card

    def test_recent_card_transactions(self, mock_auth, fake_db):
        response = client.get("/cards/transactions", params={"limit": 1})

        assert response.status_code == 200
        assert [t["merchant"] for t in response.json()["transactions"]] == ["Books"]


class TestProfile:

    def test_first_login_creates_profile(self, mock_auth, fake_db):
        response = client.get("/profile")

        assert response.status_code == 200
        assert response.json()["email"] == "test@example.com"
        assert fake_db.tables["profiles"][0]["id"] == "test-user-id"

    def test_patch_profile(self, mock_auth, fake_db):
        client.get("/profile")

        response = client.patch("/profile", json={"first_name": "Casey"})

        assert response.status_code == 200
        assert response.json()["first_name"] == "Casey"

    def test_empty_patch_is_400(self, mock_auth, fake_db):
        response = client.patch("/profile", json={})

        assert response.status_code == 400

    def test_sensitive_fields_cannot_be_written(self, mock_auth, fake_db):
        client.get("/profile")

        client.patch("/profile", json={"first_name": "Casey", "ssn": "000-00-0000"})

        assert "ssn" not in fake_db.tables["profiles"][0]


class TestNotifications:

    def test_list_with_unread_count(self, mock_auth, fake_db):
        response = client.get("/notifications")

        body = response.json()
        assert [n["id"] for n in body["notifications"]] == [3, 2, 1]
        assert body["unread_count"] == 2

    def test_read_all(self, mock_auth, fake_db):
        response = client.post("/notifications/read-all")

        assert response.json()["updated"] == 2
        assert all(n["is_read"] for n in fake_db.tables["notifications"])

    def test_read_one(self, mock_auth, fake_db):
        response = client.post("/notifications/1/read")

        assert response.status_code == 200
        assert fake_db.tables["notifications"][0]["is_read"] is True
