"""
Transaction endpoints.

All reads span every account the caller owns. Filters are shared by the
list, paginated and stats endpoints so that counts and pages agree.
"""

import logging
from typing import Annotated, Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from bankportal.auth.dependencies import AuthenticatedUser, get_authenticated_user
from bankportal.db.client import get_supabase_client
from bankportal.routes.errors import http_error
from bankportal.schemas.transactions import (
    PaginatedTransactionsResponse,
    TransactionListResponse,
    TransactionResponse,
    TransactionStatsResponse,
    TransactionType,
    TransferRequest,
    TransferResponse,
)
from bankportal.services.query_builder import FetchOptions, TransactionFilters
from bankportal.services.transaction_service import (
    get_transaction_stats,
    get_user_transactions,
    get_user_transactions_paginated,
    transfer_between_accounts,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transactions", tags=["transactions"])


def transaction_filters(
    start_date: Optional[str] = Query(None, description="Earliest created_at (ISO-8601, inclusive)"),
    end_date: Optional[str] = Query(None, description="Latest created_at (ISO-8601, inclusive)"),
    account_id: Optional[int] = Query(None, description="Only this account"),
    transaction_type: Optional[TransactionType] = Query(None, description="deposit, withdrawal or transfer"),
    min_amount: Optional[float] = Query(None, ge=0, description="Minimum amount (inclusive)"),
    max_amount: Optional[float] = Query(None, ge=0, description="Maximum amount (inclusive)"),
    description: Optional[str] = Query(None, description="Case-insensitive substring of the description"),
) -> TransactionFilters:
    return TransactionFilters(
        start_date=start_date,
        end_date=end_date,
        account_id=account_id,
        transaction_type=transaction_type,
        min_amount=min_amount,
        max_amount=max_amount,
        description=description,
    )


@router.get(
    "",
    response_model=TransactionListResponse,
    summary="List transactions",
    description="""
    Transactions across all of the caller's accounts.

    Ordered by created_at (newest first) unless order_by/ascending say otherwise.
    Without a limit every matching row is returned.
    """
)
async def list_transactions(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)],
    filters: Annotated[TransactionFilters, Depends(transaction_filters)],
    limit: Optional[int] = Query(None, ge=1, le=1000, description="Maximum rows to return"),
    offset: int = Query(0, ge=0, description="Rows to skip"),
    order_by: Literal["created_at", "amount", "description"] = Query("created_at"),
    ascending: bool = Query(False),
) -> TransactionListResponse:
    logger.info(f"Listing transactions for user {auth_user.user_id}")

    supabase_client = get_supabase_client(auth_user.access_token)
    options = FetchOptions(limit=limit, offset=offset, order_by=order_by, ascending=ascending)

    try:
        rows = await get_user_transactions(supabase_client, auth_user.user_id, filters, options)
    except Exception as e:
        raise http_error(e, "Failed to retrieve transactions")

    return TransactionListResponse(
        transactions=[TransactionResponse.from_row(row) for row in rows],
        count=len(rows),
        limit=limit,
        offset=offset,
    )


@router.get(
    "/paginated",
    response_model=PaginatedTransactionsResponse,
    summary="Page through transactions",
)
async def list_transactions_paginated(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)],
    filters: Annotated[TransactionFilters, Depends(transaction_filters)],
    page: int = Query(1, ge=1, description="1-based page number"),
    page_size: int = Query(10, ge=1, le=100, description="Rows per page"),
) -> PaginatedTransactionsResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        result = await get_user_transactions_paginated(
            supabase_client, auth_user.user_id, page, page_size, filters
        )
    except Exception as e:
        raise http_error(e, "Failed to retrieve transactions")

    return PaginatedTransactionsResponse(
        data=[TransactionResponse.from_row(row) for row in result.data],
        total_count=result.total_count,
        total_pages=result.total_pages,
        current_page=result.current_page,
        has_next_page=result.has_next_page,
    )


@router.get(
    "/stats",
    response_model=TransactionStatsResponse,
    summary="Transaction totals",
)
async def transaction_stats(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)],
    filters: Annotated[TransactionFilters, Depends(transaction_filters)],
) -> TransactionStatsResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        stats = await get_transaction_stats(supabase_client, auth_user.user_id, filters)
    except Exception as e:
        raise http_error(e, "Failed to compute transaction stats")

    return TransactionStatsResponse(
        total_deposits=float(stats.total_deposits),
        total_withdrawals=float(stats.total_withdrawals),
        net_amount=float(stats.net_amount),
        transaction_count=stats.transaction_count,
    )


@router.post(
    "/transfer",
    response_model=TransferResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Transfer between own accounts",
    description="""
    Move money from one of the caller's accounts to another.

    Records a "transfer" row on each account, updates both balances and
    notifies the owner. The steps are not atomic: if a later step fails the
    response is 409 and reports how many steps were applied.
    """
)
async def create_transfer(
    request: TransferRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> TransferResponse:
    logger.info(f"Transfer requested by user {auth_user.user_id}")

    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        outgoing, incoming = await transfer_between_accounts(
            supabase_client,
            request.from_account_id,
            request.to_account_id,
            request.amount,
            request.description,
        )
    except Exception as e:
        raise http_error(e, "Failed to complete transfer")

    return TransferResponse(
        outgoing=TransactionResponse.from_row(outgoing),
        incoming=TransactionResponse.from_row(incoming),
        message="Transfer completed",
    )
