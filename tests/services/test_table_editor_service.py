"""
Tests for the admin table editor service.
"""

import pytest

from bankportal.services import table_editor_service
from bankportal.services.table_editor_service import (
    KNOWN_TABLES,
    build_search_filter,
    execute_query,
    get_foreign_key_options,
    get_table_data,
    get_text_columns,
    insert_row,
    list_tables,
    update_row,
    verify_catalog,
)
from bankportal.utils.errors import CatalogDriftError, NotFoundError, PreconditionError


def _account_rows(n):
    return [
        {
            "id": i,
            "user_id": f"user-{i % 3}",
            "account_number": str(i).zfill(10),
            "routing_number": "074000078",
            "account_type": "savings" if i % 2 else "checking",
            "balance": float(i),
            "is_frozen": False,
            "frozen_by_admin": False,
            "created_at": "2024-01-01T00:00:00+00:00",
        }
        for i in range(1, n + 1)
    ]


class TestCatalog:

    def test_text_columns(self):
        assert "card_number" in get_text_columns("cards")
        assert "balance" not in get_text_columns("accounts")

    def test_unknown_table(self):
        with pytest.raises(PreconditionError, match="Unknown table 'secrets'"):
            get_text_columns("secrets")

    def test_search_filter_quotes_term(self):
        assert build_search_filter(["a", "b"], 'x,"y"') == 'a.ilike."%x,\\"y\\"%",b.ilike."%x,\\"y\\"%"'


class TestListTables:

    @pytest.mark.asyncio
    async def test_counts_default_to_zero_on_failure(self, make_fake_client):
        fake = make_fake_client({"accounts": _account_rows(3)})
        fake.fail("cards", "select", Exception("permission denied"))

        tables = {t.name: t for t in await list_tables(fake)}

        assert set(tables) == set(KNOWN_TABLES)
        assert tables["accounts"].row_count == 3
        assert tables["cards"].row_count == 0
        assert "balance" in tables["accounts"].column_names

    @pytest.mark.asyncio
    async def test_uses_introspection_when_available(self, fake_client):
        fake_client.rpc_handlers["get_table_info"] = lambda params: [
            {"name": "banners", "columns": [{"name": "id", "type": "bigint", "is_primary_key": True}]},
        ]

        tables = await list_tables(fake_client)

        assert [t.name for t in tables] == ["banners"]
        assert tables[0].columns[0].is_primary_key

    @pytest.mark.asyncio
    async def test_introspected_tables_outside_catalog_are_not_listed(self, fake_client):
        fake_client.rpc_handlers["get_table_info"] = lambda params: [
            {"name": "widgets", "columns": [{"name": "id", "type": "bigint", "is_primary_key": True}]},
            {"name": "banners", "columns": [{"name": "id", "type": "bigint", "is_primary_key": True}]},
        ]

        listed = [t.name for t in await list_tables(fake_client)]

        assert listed == ["banners"]
        for name in listed:
            await get_table_data(fake_client, name)

    @pytest.mark.asyncio
    async def test_only_uncatalogued_tables_falls_back_to_catalog(self, fake_client):
        fake_client.rpc_handlers["get_table_info"] = lambda params: [
            {"name": "widgets", "columns": [{"name": "id", "type": "bigint"}]},
        ]

        tables = await list_tables(fake_client)

        assert {t.name for t in tables} == set(KNOWN_TABLES)


class TestGetTableData:

    @pytest.mark.asyncio
    async def test_sorted_pages(self, make_fake_client):
        fake = make_fake_client({"accounts": _account_rows(120)})

        page_two = await get_table_data(fake, "accounts", page=2, page_size=50,
                                        sort_by="balance", sort_order="desc")
        page_three = await get_table_data(fake, "accounts", page=3, page_size=50,
                                          sort_by="balance", sort_order="desc")

        assert page_two.total_count == 120
        assert [r["balance"] for r in page_two.rows] == [float(b) for b in range(70, 20, -1)]
        assert page_two.has_more is True
        assert len(page_three.rows) == 20
        assert page_three.has_more is False

    @pytest.mark.asyncio
    async def test_search_matches_any_text_column(self, make_fake_client):
        fake = make_fake_client({"accounts": _account_rows(12)})

        result = await get_table_data(fake, "accounts", search_term="SAV")

        assert result.total_count == 6
        assert all(r["account_type"] == "savings" for r in result.rows)

    @pytest.mark.asyncio
    async def test_rejects_unknown_sort_column(self, fake_client):
        with pytest.raises(PreconditionError):
            await get_table_data(fake_client, "accounts", sort_by="password")

    @pytest.mark.asyncio
    async def test_rejects_bad_paging(self, fake_client):
        with pytest.raises(PreconditionError):
            await get_table_data(fake_client, "accounts", page=0)


class TestRowWrites:

    @pytest.mark.asyncio
    async def test_insert_and_update(self, fake_client):
        row = await insert_row(fake_client, "banners", {"title": "Welcome"})
        updated = await update_row(fake_client, "banners", row["id"], {"is_active": False})

        assert updated["title"] == "Welcome"
        assert fake_client.tables["banners"][0]["is_active"] is False

    @pytest.mark.asyncio
    async def test_update_missing_row(self, fake_client):
        with pytest.raises(NotFoundError):
            await update_row(fake_client, "banners", 404, {"title": "x"})

    @pytest.mark.asyncio
    async def test_backend_errors_propagate(self, fake_client):
        fake_client.fail("banners", "insert", ValueError("null value in column"))

        with pytest.raises(ValueError, match="null value"):
            await insert_row(fake_client, "banners", {})


class TestForeignKeyOptions:

    @pytest.mark.asyncio
    async def test_user_and_account_columns(self, make_fake_client):
        fake = make_fake_client({
            "profiles": [{"id": "u1", "email": "a@example.com", "first_name": "A", "last_name": "B"}],
            "accounts": _account_rows(2),
        })

        users = await get_foreign_key_options(fake, "cards", "user_id")
        accounts = await get_foreign_key_options(fake, "cards", "account_id")

        assert users == [{"id": "u1", "email": "a@example.com", "first_name": "A", "last_name": "B"}]
        assert set(accounts[0]) == {"id", "account_number", "account_type"}
        assert await get_foreign_key_options(fake, "cards", "card_type") == []

    @pytest.mark.asyncio
    async def test_errors_yield_empty_list(self, fake_client):
        fake_client.fail("profiles", "select", Exception("boom"))

        assert await get_foreign_key_options(fake_client, "cards", "user_id") == []


class TestExecuteQuery:

    @pytest.mark.asyncio
    async def test_runs_rpc_and_logs_audit(self, fake_client, caplog):
        fake_client.rpc_handlers["execute_sql"] = lambda params: [{"echo": params["query"]}]

        with caplog.at_level("WARNING", logger=table_editor_service.__name__):
            result = await execute_query(fake_client, "select 1", "admin-1")

        assert result == [{"echo": "select 1"}]
        assert "admin-1" in caplog.text

    @pytest.mark.asyncio
    async def test_empty_query_rejected(self, fake_client):
        with pytest.raises(PreconditionError):
            await execute_query(fake_client, "   ", "admin-1")
        assert fake_client.calls == []


class TestVerifyCatalog:

    @pytest.mark.asyncio
    async def test_matching_and_empty_tables_pass(self, make_fake_client):
        fake = make_fake_client({"accounts": _account_rows(1)})

        assert await verify_catalog(fake) == {}

    @pytest.mark.asyncio
    async def test_drift_is_reported(self, make_fake_client):
        row = _account_rows(1)[0]
        del row["frozen_by_admin"]
        row["nickname"] = "main"
        fake = make_fake_client({"accounts": [row]})

        with pytest.raises(CatalogDriftError) as exc:
            await verify_catalog(fake)

        problem = exc.value.mismatches["accounts"]
        assert "frozen_by_admin" in problem
        assert "nickname" in problem
