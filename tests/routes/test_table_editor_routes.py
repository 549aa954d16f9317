"""
Tests for /admin/tables endpoints.
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from bankportal.auth.dependencies import AuthenticatedUser, get_authenticated_user
from bankportal.main import app

client = TestClient(app)


async def mock_admin_user():
    return AuthenticatedUser(user_id="admin-id", access_token="admin-token")


@pytest.fixture
def as_admin():
    app.dependency_overrides[get_authenticated_user] = mock_admin_user
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def fake_db(make_fake_client):
    fake = make_fake_client({
        "profiles": [{"id": "admin-id", "email": "admin@example.com", "first_name": "Ada",
                      "last_name": "Admin", "is_admin": True}],
        "banners": [
            {"id": 1, "title": "Spring savings", "description": "Rates up", "is_active": True},
            {"id": 2, "title": "New cards", "description": "Contactless", "is_active": True},
            {"id": 3, "title": "Holiday hours", "description": "Closed Monday", "is_active": False},
        ],
    })
    with patch("bankportal.auth.dependencies.get_supabase_client", return_value=fake), \
            patch("bankportal.routes.table_editor.get_supabase_client", return_value=fake):
        yield fake


def test_list_tables(as_admin, fake_db):
    response = client.get("/admin/tables")

    assert response.status_code == 200
    tables = {t["name"]: t for t in response.json()["tables"]}
    assert tables["banners"]["row_count"] == 3
    assert tables["accounts"]["row_count"] == 0
    assert any(c["is_primary_key"] for c in tables["accounts"]["columns"])


def test_rows_search_and_sort(as_admin, fake_db):
    response = client.get(
        "/admin/tables/banners/rows",
        params={"search": "card", "sort_by": "title", "sort_order": "desc"},
    )

    body = response.json()
    assert response.status_code == 200
    assert [r["id"] for r in body["rows"]] == [2]
    assert body["total_count"] == 1
    assert body["has_more"] is False


def test_rows_paging(as_admin, fake_db):
    response = client.get("/admin/tables/banners/rows", params={"page": 1, "page_size": 2, "sort_by": "id"})

    body = response.json()
    assert [r["id"] for r in body["rows"]] == [1, 2]
    assert body["has_more"] is True


def test_unknown_table_is_400(as_admin, fake_db):
    response = client.get("/admin/tables/pg_shadow/rows")

    assert response.status_code == 400


def test_insert_update_delete(as_admin, fake_db):
    created = client.post("/admin/tables/banners/rows", json={"data": {"title": "Fresh"}})
    assert created.status_code == 201
    row_id = created.json()["row"]["id"]

    updated = client.patch(f"/admin/tables/banners/rows/{row_id}", json={"data": {"is_active": False}})
    assert updated.status_code == 200
    assert updated.json()["row"]["is_active"] is False

    deleted = client.delete(f"/admin/tables/banners/rows/{row_id}")
    assert deleted.status_code == 200
    assert all(r["id"] != row_id for r in fake_db.tables["banners"])


def test_update_missing_row_is_404(as_admin, fake_db):
    response = client.patch("/admin/tables/banners/rows/999", json={"data": {"title": "x"}})

    assert response.status_code == 404


def test_foreign_key_options(as_admin, fake_db):
    response = client.get("/admin/tables/cards/foreign-keys/user_id")

    assert response.json()["options"][0]["email"] == "admin@example.com"


def test_sql_passes_through_rpc(as_admin, fake_db):
    fake_db.rpc_handlers["execute_sql"] = lambda params: [{"count": 3}]

    response = client.post("/admin/tables/sql", json={"query": "select count(*) from banners"})

    assert response.status_code == 200
    assert response.json()["result"] == [{"count": 3}]
