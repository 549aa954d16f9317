"""
Customer account endpoints.

Owners can list and view their accounts and freeze or unfreeze them. An
account frozen by an administrator cannot be frozen again by its owner.
"""

import logging
from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Path, status

from bankportal.auth.dependencies import AuthenticatedUser, get_authenticated_user
from bankportal.db.client import get_supabase_client
from bankportal.routes.errors import http_error
from bankportal.schemas.accounts import AccountFreezeResponse, AccountListResponse, AccountResponse
from bankportal.services.account_service import (
    freeze_by_user,
    get_account,
    get_user_accounts,
    unfreeze_by_user,
)
from supabase import Client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/accounts", tags=["accounts"])


async def _owned_account(
    supabase_client: Client,
    account_id: int,
    user_id: str
) -> Dict[str, Any]:
    account = await get_account(supabase_client, account_id)
    if account is None or str(account.get("user_id")) != user_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "details": f"Account {account_id} not found"}
        )
    return account


@router.get(
    "",
    response_model=AccountListResponse,
    summary="List user accounts",
    description="All accounts of the authenticated user, ordered by account type."
)
async def list_accounts(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> AccountListResponse:
    logger.info(f"Listing accounts for user {auth_user.user_id}")

    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        accounts = await get_user_accounts(supabase_client, auth_user.user_id)
    except Exception as e:
        raise http_error(e, "Failed to retrieve accounts")

    return AccountListResponse(
        accounts=[AccountResponse.from_row(row) for row in accounts],
        count=len(accounts)
    )


@router.get(
    "/{account_id}",
    response_model=AccountResponse,
    summary="Get account",
)
async def get_account_details(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)],
    account_id: int = Path(..., description="Account id")
) -> AccountResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        account = await _owned_account(supabase_client, account_id, auth_user.user_id)
    except Exception as e:
        raise http_error(e, "Failed to retrieve account")

    return AccountResponse.from_row(account)


@router.post(
    "/{account_id}/freeze",
    response_model=AccountFreezeResponse,
    summary="Freeze account",
    description="""
    Freeze one of the caller's accounts.

    Fails with 400 if an administrator has already frozen the account.
    """
)
async def freeze_account(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)],
    account_id: int = Path(..., description="Account id")
) -> AccountFreezeResponse:
    logger.info(f"User {auth_user.user_id} freezing account {account_id}")

    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        await _owned_account(supabase_client, account_id, auth_user.user_id)
        await freeze_by_user(supabase_client, account_id)
    except Exception as e:
        raise http_error(e, "Failed to freeze account")

    return AccountFreezeResponse(account_id=account_id, is_frozen=True, message="Account frozen")


@router.post(
    "/{account_id}/unfreeze",
    response_model=AccountFreezeResponse,
    summary="Unfreeze account",
)
async def unfreeze_account(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)],
    account_id: int = Path(..., description="Account id")
) -> AccountFreezeResponse:
    logger.info(f"User {auth_user.user_id} unfreezing account {account_id}")

    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        await _owned_account(supabase_client, account_id, auth_user.user_id)
        await unfreeze_by_user(supabase_client, account_id)
    except Exception as e:
        raise http_error(e, "Failed to unfreeze account")

    return AccountFreezeResponse(account_id=account_id, is_frozen=False, message="Account unfrozen")
