"""
Tests for transaction reads, pagination, stats and transfers.
"""

from datetime import datetime, timedelta, timezone

import pytest

from bankportal.services import transaction_service
from bankportal.services.query_builder import FetchOptions, TransactionFilters
from bankportal.utils.errors import NotFoundError, PartiallyAppliedError, PreconditionError

USER = "user-1"


def accounts():
    return [
        {"id": 1, "user_id": USER, "account_number": "1111111111", "account_type": "checking",
         "balance": 500.0, "is_frozen": False, "frozen_by_admin": False},
        {"id": 2, "user_id": USER, "account_number": "2222222222", "account_type": "savings",
         "balance": 100.0, "is_frozen": False, "frozen_by_admin": False},
        {"id": 3, "user_id": "other", "account_number": "3333333333", "account_type": "checking",
         "balance": 900.0, "is_frozen": False, "frozen_by_admin": False},
    ]


def transactions(count, account_id=1):
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return [
        {
            "id": i + 1,
            "account_id": account_id,
            "amount": float(i + 1),
            "description": f"Entry {i + 1}",
            "transaction_type": "deposit" if i % 2 == 0 else "withdrawal",
            "created_at": (start + timedelta(minutes=i)).isoformat(),
        }
        for i in range(count)
    ]


class TestGetUserTransactions:

    @pytest.mark.asyncio
    async def test_user_without_accounts_gets_empty_list_without_query(self, fake_client):
        rows = await transaction_service.get_user_transactions(fake_client, USER)

        assert rows == []
        assert fake_client.operations_on("transactions") == []

    @pytest.mark.asyncio
    async def test_missing_user_id(self, fake_client):
        with pytest.raises(PreconditionError):
            await transaction_service.get_user_transactions(fake_client, "")

    @pytest.mark.asyncio
    async def test_only_own_accounts_newest_first(self, make_fake_client):
        fake = make_fake_client({
            "accounts": accounts(),
            "transactions": transactions(3, account_id=1) + [
                {"id": 99, "account_id": 3, "amount": 1.0, "description": "not mine",
                 "transaction_type": "deposit", "created_at": "2030-01-01T00:00:00+00:00"},
            ],
        })

        rows = await transaction_service.get_user_transactions(fake, USER)

        assert [row["id"] for row in rows] == [3, 2, 1]

    @pytest.mark.asyncio
    async def test_filters_and_limit(self, make_fake_client):
        fake = make_fake_client({"accounts": accounts(), "transactions": transactions(10)})

        rows = await transaction_service.get_user_transactions(
            fake,
            USER,
            TransactionFilters(transaction_type="deposit"),
            FetchOptions(limit=2, order_by="amount", ascending=True),
        )

        assert [row["amount"] for row in rows] == [1.0, 3.0]


class TestPagination:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [0, 1, 10, 11, 30])
    async def test_pages_cover_every_row_exactly_once(self, make_fake_client, count):
        page_size = 10
        fake = make_fake_client({"accounts": accounts(), "transactions": transactions(count)})

        first = await transaction_service.get_user_transactions_paginated(fake, USER, 1, page_size)
        seen = list(first.data)
        for page in range(2, first.total_pages + 1):
            result = await transaction_service.get_user_transactions_paginated(fake, USER, page, page_size)
            seen.extend(result.data)

        assert first.total_count == count
        assert first.total_pages == -(-count // page_size)
        assert sorted(row["id"] for row in seen) == list(range(1, count + 1))
        assert len(seen) == len({row["id"] for row in seen})

    @pytest.mark.asyncio
    async def test_count_and_data_share_filters(self, make_fake_client):
        fake = make_fake_client({"accounts": accounts(), "transactions": transactions(25)})

        result = await transaction_service.get_user_transactions_paginated(
            fake, USER, 2, 5, TransactionFilters(transaction_type="withdrawal")
        )

        assert result.total_count == 12
        assert result.total_pages == 3
        assert len(result.data) == 5
        assert all(row["transaction_type"] == "withdrawal" for row in result.data)
        assert result.has_next_page

    @pytest.mark.asyncio
    async def test_no_accounts_returns_empty_envelope(self, fake_client):
        result = await transaction_service.get_user_transactions_paginated(fake_client, USER, 1, 10)

        assert result.data == []
        assert result.total_count == 0
        assert result.total_pages == 0
        assert result.current_page == 1


class TestStats:

    @pytest.mark.asyncio
    async def test_stats_over_filtered_rows(self, make_fake_client):
        fake = make_fake_client({"accounts": accounts(), "transactions": transactions(4)})

        stats = await transaction_service.get_transaction_stats(fake, USER)

        # deposits 1 + 3, withdrawals 2 + 4
        assert stats.total_deposits == 4
        assert stats.total_withdrawals == 6
        assert stats.net_amount == -2
        assert stats.transaction_count == 4


class TestCreateTransaction:

    @pytest.mark.asyncio
    async def test_rejects_unknown_type(self, fake_client):
        with pytest.raises(PreconditionError):
            await transaction_service.create_transaction(fake_client, 1, 10, "x", "refund")

        assert fake_client.calls == []

    @pytest.mark.asyncio
    async def test_backdated_entry_keeps_timestamp(self, fake_client):
        created = await transaction_service.create_transaction(
            fake_client, 1, 10, "Backdated", "deposit", "2023-06-01T00:00:00Z"
        )

        assert created["created_at"] == "2023-06-01T00:00:00Z"


class TestTransfer:

    @pytest.mark.asyncio
    async def test_transfer_moves_money_and_records_both_legs(self, make_fake_client):
        fake = make_fake_client({"accounts": accounts()})

        outgoing, incoming = await transaction_service.transfer_between_accounts(
            fake, 1, 2, 150.0, "Savings"
        )

        balances = {row["id"]: row["balance"] for row in fake.tables["accounts"]}
        assert balances[1] == 350.0
        assert balances[2] == 250.0
        assert outgoing["transaction_type"] == "transfer"
        assert outgoing["account_id"] == 1
        assert outgoing["description"] == "Savings to account 2222222222"
        assert incoming["transaction_type"] == "transfer"
        assert incoming["account_id"] == 2
        assert incoming["description"] == "Savings from account 1111111111"
        assert len(fake.tables["transactions"]) == 2

    @pytest.mark.asyncio
    async def test_transfer_notifies_owner(self, make_fake_client):
        fake = make_fake_client({"accounts": accounts()})

        await transaction_service.transfer_between_accounts(fake, 1, 2, 150.0)

        notifications = fake.tables["notifications"]
        assert len(notifications) == 1
        assert notifications[0]["user_id"] == USER
        assert notifications[0]["title"] == "Transfer Completed"
        assert "$150.00" in notifications[0]["message"]
        assert fake.operations_on("notifications") == ["insert"]

    @pytest.mark.asyncio
    async def test_transfer_counts_but_stays_out_of_totals(self, make_fake_client):
        fake = make_fake_client({"accounts": accounts()})

        await transaction_service.transfer_between_accounts(fake, 1, 2, 150.0)
        stats = await transaction_service.get_transaction_stats(fake, USER)

        assert stats.total_deposits == 0
        assert stats.total_withdrawals == 0
        assert stats.net_amount == 0
        assert stats.transaction_count == 2

    @pytest.mark.asyncio
    async def test_notification_failure_is_reported_as_partial(self, make_fake_client):
        fake = make_fake_client({"accounts": accounts()})
        fake.fail("notifications", "insert", RuntimeError("connection reset"))

        with pytest.raises(PartiallyAppliedError) as exc_info:
            await transaction_service.transfer_between_accounts(fake, 1, 2, 50.0)

        assert exc_info.value.failed_step == 4
        assert len(exc_info.value.completed) == 4
        balances = {row["id"]: row["balance"] for row in fake.tables["accounts"]}
        assert balances[1] == 450.0
        assert balances[2] == 150.0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("source,target,amount,message", [
        (1, 1, 10.0, "same account"),
        (1, 2, 0, "positive"),
        (2, 1, 1000.0, "Insufficient funds"),
    ])
    async def test_preconditions(self, make_fake_client, source, target, amount, message):
        fake = make_fake_client({"accounts": accounts()})

        with pytest.raises(PreconditionError, match=message):
            await transaction_service.transfer_between_accounts(fake, source, target, amount)

        assert "transactions" not in fake.tables

    @pytest.mark.asyncio
    async def test_frozen_account_rejected(self, make_fake_client):
        rows = accounts()
        rows[1]["is_frozen"] = True
        fake = make_fake_client({"accounts": rows})

        with pytest.raises(PreconditionError, match="frozen"):
            await transaction_service.transfer_between_accounts(fake, 1, 2, 10.0)

    @pytest.mark.asyncio
    async def test_missing_account(self, make_fake_client):
        fake = make_fake_client({"accounts": accounts()})

        with pytest.raises(NotFoundError):
            await transaction_service.transfer_between_accounts(fake, 1, 42, 10.0)

    @pytest.mark.asyncio
    async def test_failure_after_first_write_is_reported_as_partial(self, make_fake_client):
        fake = make_fake_client({"accounts": accounts()})
        fake.fail("accounts", "update", RuntimeError("connection reset"))

        with pytest.raises(PartiallyAppliedError) as exc_info:
            await transaction_service.transfer_between_accounts(fake, 1, 2, 50.0)

        assert exc_info.value.failed_step == 2
        assert len(exc_info.value.completed) == 2
        # both ledger rows landed, no balance changed
        assert len(fake.tables["transactions"]) == 2
        assert {row["id"]: row["balance"] for row in fake.tables["accounts"]}[1] == 500.0
