"""
Transaction persistence service.

CRITICAL RULES:
1. Transactions are insert-only; this service never updates a transaction row
2. User-scoped reads resolve the user's account ids first and restrict the
   query to them (transactions carry no user_id column)
3. Count and data queries for a page MUST share the same filters
4. Compound writes (transfers) go through db.operations.execute_transaction
   and are NOT atomic
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple, cast

from postgrest.types import CountMethod
from supabase import Client

from bankportal.db.operations import execute_transaction
from bankportal.services import account_service, notification_service
from bankportal.services.aggregation import (
    PaginatedResult,
    TransactionStats,
    compute_transaction_stats,
    page_offset,
    total_pages,
)
from bankportal.services.query_builder import (
    FetchOptions,
    TransactionFilters,
    apply_fetch_options,
    apply_transaction_filters,
)
from bankportal.utils.constants import TRANSACTION_TYPES
from bankportal.utils.errors import PreconditionError

logger = logging.getLogger(__name__)

TRANSACTIONS_TABLE = "transactions"


def validate_transaction_type(transaction_type: str) -> None:
    if transaction_type not in TRANSACTION_TYPES:
        raise PreconditionError(
            f"Invalid transaction_type: {transaction_type}. "
            f"Must be one of {', '.join(TRANSACTION_TYPES)}"
        )


async def get_user_transactions(
    supabase_client: Client,
    user_id: str,
    filters: Optional[TransactionFilters] = None,
    options: Optional[FetchOptions] = None,
) -> List[Dict[str, Any]]:
    """
    Fetch transactions across all of the user's accounts.

    Args:
        supabase_client: Authenticated Supabase client
        user_id: The owning user's ID
        filters: Optional filters (absent fields impose no constraint)
        options: Optional ordering/pagination (default created_at desc, no limit)

    Returns:
        List of transaction dicts; [] when the user has no accounts, in which
        case no transactions query is issued
    """
    if not user_id:
        raise PreconditionError("user_id is required")

    account_ids = await account_service.get_user_account_ids(supabase_client, user_id)
    if not account_ids:
        logger.info(f"User {user_id} has no accounts; returning no transactions")
        return []

    query = (
        supabase_client.table(TRANSACTIONS_TABLE)
        .select("*")
        .in_("account_id", account_ids)
    )
    query = apply_transaction_filters(query, filters)
    query = apply_fetch_options(query, options)

    result = query.execute()

    transactions = cast(List[Dict[str, Any]], result.data or [])
    logger.info(f"Fetched {len(transactions)} transactions for user {user_id}")

    return transactions


async def count_user_transactions(
    supabase_client: Client,
    account_ids: List[Any],
    filters: Optional[TransactionFilters] = None,
) -> int:
    """Exact count of transactions for the given accounts and filters."""
    query = (
        supabase_client.table(TRANSACTIONS_TABLE)
        .select("*", count=CountMethod.exact, head=True)
        .in_("account_id", account_ids)
    )
    query = apply_transaction_filters(query, filters)

    result = query.execute()
    return result.count or 0


async def get_user_transactions_paginated(
    supabase_client: Client,
    user_id: str,
    page: int = 1,
    page_size: int = 10,
    filters: Optional[TransactionFilters] = None,
) -> PaginatedResult[Dict[str, Any]]:
    """
    Fetch one page of the user's transactions, newest first.

    Issues a count query and a data query with identical filters.

    Returns:
        PaginatedResult with total_pages = ceil(total_count / page_size);
        the envelope is returned even when total_count is 0
    """
    offset = page_offset(page, page_size)

    account_ids = await account_service.get_user_account_ids(supabase_client, user_id)
    if not account_ids:
        return PaginatedResult(data=[], total_count=0, total_pages=0, current_page=page)

    total_count = await count_user_transactions(supabase_client, account_ids, filters)

    data = await get_user_transactions(
        supabase_client,
        user_id,
        filters,
        FetchOptions(limit=page_size, offset=offset, order_by="created_at", ascending=False),
    )

    logger.debug(
        f"Transactions page {page} for user {user_id}: "
        f"{len(data)} rows of {total_count}"
    )

    return PaginatedResult(
        data=data,
        total_count=total_count,
        total_pages=total_pages(total_count, page_size),
        current_page=page,
    )


async def get_transaction_stats(
    supabase_client: Client,
    user_id: str,
    filters: Optional[TransactionFilters] = None,
) -> TransactionStats:
    """Fetch the (filtered) transaction list and fold it into totals."""
    transactions = await get_user_transactions(supabase_client, user_id, filters)
    return compute_transaction_stats(transactions)


async def create_transaction(
    supabase_client: Client,
    account_id: Any,
    amount: float,
    description: str,
    transaction_type: str,
    created_at: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Insert a transaction record.

    Amounts are stored unsigned; direction comes from transaction_type.

    Raises:
        PreconditionError: If transaction_type is invalid
        Exception: If the database operation fails
    """
    validate_transaction_type(transaction_type)

    transaction_data: Dict[str, Any] = {
        "account_id": account_id,
        "amount": amount,
        "description": description,
        "transaction_type": transaction_type,
    }
    if created_at:
        transaction_data["created_at"] = created_at

    logger.info(f"Creating {transaction_type} transaction on account {account_id}")

    result = supabase_client.table(TRANSACTIONS_TABLE).insert(transaction_data).execute()

    if not result.data:
        raise Exception("Failed to create transaction: no data returned")

    created = cast(Dict[str, Any], result.data[0])
    logger.info(f"Transaction created successfully: id={created.get('id')}")

    return created


async def transfer_between_accounts(
    supabase_client: Client,
    from_account_id: Any,
    to_account_id: Any,
    amount: float,
    description: Optional[str] = None,
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Move money between two accounts.

    Both legs are recorded with transaction_type "transfer", so they count
    toward the owner's transaction count but not toward deposit or
    withdrawal totals. Direction is carried in each leg's description.

    Runs five sequential steps: outgoing leg insert, incoming leg insert,
    source balance update, destination balance update, owner notification.
    There is no rollback; if a later step fails, PartiallyAppliedError
    reports which steps landed.

    Returns:
        Tuple of (outgoing_leg, incoming_leg)

    Raises:
        PreconditionError: Same account, non-positive amount, frozen account
                           or insufficient funds
        NotFoundError: If either account does not exist
        PartiallyAppliedError: If a step after the first one fails
    """
    if from_account_id == to_account_id:
        raise PreconditionError("Cannot transfer to the same account")
    if amount <= 0:
        raise PreconditionError("Transfer amount must be positive")

    source = await account_service.require_account(supabase_client, from_account_id)
    destination = await account_service.require_account(supabase_client, to_account_id)

    if source.get("is_frozen") or destination.get("is_frozen"):
        raise PreconditionError("Cannot process transactions for a frozen account")

    transfer_amount = Decimal(str(amount))
    source_balance = Decimal(str(source.get("balance") or 0))
    destination_balance = Decimal(str(destination.get("balance") or 0))

    if source_balance < transfer_amount:
        raise PreconditionError("Insufficient funds")

    label = description or "Transfer"
    source_number = source.get("account_number", from_account_id)
    destination_number = destination.get("account_number", to_account_id)

    logger.info(f"Transferring between accounts {from_account_id} -> {to_account_id}")

    async def insert_outgoing():
        return await create_transaction(
            supabase_client, from_account_id, float(transfer_amount),
            f"{label} to account {destination_number}",
            "transfer",
        )

    async def insert_incoming():
        return await create_transaction(
            supabase_client, to_account_id, float(transfer_amount),
            f"{label} from account {source_number}",
            "transfer",
        )

    async def debit_source():
        return await account_service.update_balance(
            supabase_client, from_account_id, float(source_balance - transfer_amount)
        )

    async def credit_destination():
        return await account_service.update_balance(
            supabase_client, to_account_id, float(destination_balance + transfer_amount)
        )

    async def notify():
        return await notification_service.create_notification(
            supabase_client,
            source["user_id"],
            "Transfer Completed",
            f"${transfer_amount:.2f} was transferred from account ending in "
            f"{str(source_number)[-4:]} to account ending in {str(destination_number)[-4:]}.",
        )

    results = await execute_transaction(
        [insert_outgoing, insert_incoming, debit_source, credit_destination, notify],
        wrap_partial=True,
        description="transfer",
    )

    return results[0], results[1]
