"""
Admin endpoints.

Every route requires require_admin. Account and transaction operations run
with the admin's own Supabase client (RLS admin policies apply). User
provisioning is the only place that uses the service-role client.

Balance-changing operations record a transaction and notify the customer.
They are not atomic: a failure after the first write returns 409 with the
number of applied steps.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, status

from bankportal.auth.dependencies import AuthenticatedUser, require_admin
from bankportal.db.client import get_service_role_client, get_supabase_client
from bankportal.routes.errors import http_error
from bankportal.schemas.accounts import AccountFreezeResponse, AccountResponse
from bankportal.schemas.admin import (
    AdminAccountCreateRequest,
    AdminTransactionRequest,
    BalanceAdjustRequest,
    BalanceAdjustResponse,
    BroadcastRequest,
    BroadcastResponse,
    BulkUploadRequest,
    BulkUploadResponse,
    CreateUserRequest,
    DeleteResponse,
    PostedTransactionResponse,
    RowErrorResponse,
    UserListResponse,
    UserResponse,
)
from bankportal.schemas.cards import CardActiveRequest, CardCreateRequest, CardResponse
from bankportal.schemas.transactions import TransactionResponse
from bankportal.services import admin_service, bulk_transaction_service, card_service
from bankportal.services.account_service import get_all_account_ids
from bankportal.services.notification_service import broadcast_notification
from bankportal.services.user_admin_service import (
    NewUser,
    create_user_with_service_role,
    delete_user,
    list_users,
)
from supabase import Client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

AdminUser = Annotated[AuthenticatedUser, Depends(require_admin)]


def _service_role_client() -> Client:
    try:
        return get_service_role_client()
    except ValueError as e:
        logger.error(f"Service-role client unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "service_unavailable", "details": "User provisioning is not configured"}
        )


# --- Accounts ---

@router.post(
    "/accounts",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open an account for a customer",
)
async def create_customer_account(request: AdminAccountCreateRequest, admin: AdminUser) -> AccountResponse:
    logger.info(f"Admin {admin.user_id} creating {request.account_type} account for {request.user_id}")

    supabase_client = get_supabase_client(admin.access_token)

    try:
        account = await admin_service.admin_create_account(
            supabase_client,
            request.user_id,
            request.account_type,
            request.balance,
            request.account_number,
            request.routing_number,
        )
    except Exception as e:
        raise http_error(e, "Failed to create account")

    return AccountResponse.from_row(account)


@router.post("/accounts/{account_id}/freeze", response_model=AccountFreezeResponse, summary="Freeze account")
async def admin_freeze_account(
    admin: AdminUser,
    account_id: int = Path(..., description="Account id")
) -> AccountFreezeResponse:
    logger.info(f"Admin {admin.user_id} freezing account {account_id}")

    supabase_client = get_supabase_client(admin.access_token)

    try:
        await admin_service.admin_set_freeze(supabase_client, account_id, True)
    except Exception as e:
        raise http_error(e, "Failed to freeze account")

    return AccountFreezeResponse(account_id=account_id, is_frozen=True, message="Account frozen by admin")


@router.post("/accounts/{account_id}/unfreeze", response_model=AccountFreezeResponse, summary="Unfreeze account")
async def admin_unfreeze_account(
    admin: AdminUser,
    account_id: int = Path(..., description="Account id")
) -> AccountFreezeResponse:
    logger.info(f"Admin {admin.user_id} unfreezing account {account_id}")

    supabase_client = get_supabase_client(admin.access_token)

    try:
        await admin_service.admin_set_freeze(supabase_client, account_id, False)
    except Exception as e:
        raise http_error(e, "Failed to unfreeze account")

    return AccountFreezeResponse(account_id=account_id, is_frozen=False, message="Account unfrozen by admin")


@router.put("/accounts/{account_id}/balance", response_model=BalanceAdjustResponse, summary="Set balance")
async def adjust_balance(
    request: BalanceAdjustRequest,
    admin: AdminUser,
    account_id: int = Path(..., description="Account id")
) -> BalanceAdjustResponse:
    logger.info(f"Admin {admin.user_id} adjusting balance of account {account_id}")

    supabase_client = get_supabase_client(admin.access_token)

    try:
        adjustment = await admin_service.admin_adjust_balance(
            supabase_client, account_id, request.new_balance
        )
    except Exception as e:
        raise http_error(e, "Failed to adjust balance")

    return BalanceAdjustResponse(
        changed=adjustment.changed,
        account=AccountResponse.from_row(adjustment.account),
        transaction=(
            TransactionResponse.from_row(adjustment.transaction) if adjustment.transaction else None
        ),
    )


@router.delete("/accounts/{account_id}", response_model=DeleteResponse, summary="Close account")
async def delete_customer_account(
    admin: AdminUser,
    account_id: int = Path(..., description="Account id")
) -> DeleteResponse:
    logger.info(f"Admin {admin.user_id} deleting account {account_id}")

    supabase_client = get_supabase_client(admin.access_token)

    try:
        await admin_service.admin_delete_account(supabase_client, account_id)
    except Exception as e:
        raise http_error(e, "Failed to delete account")

    return DeleteResponse(message=f"Account {account_id} deleted")


# --- Transactions ---

@router.post(
    "/transactions",
    response_model=PostedTransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Post a transaction",
)
async def post_transaction(request: AdminTransactionRequest, admin: AdminUser) -> PostedTransactionResponse:
    logger.info(f"Admin {admin.user_id} posting {request.transaction_type} to account {request.account_id}")

    supabase_client = get_supabase_client(admin.access_token)

    try:
        posted = await admin_service.admin_post_transaction(
            supabase_client,
            request.account_id,
            request.amount,
            request.transaction_type,
            request.description,
            request.created_at,
        )
    except Exception as e:
        raise http_error(e, "Failed to post transaction")

    return PostedTransactionResponse(
        transaction=TransactionResponse.from_row(posted.transaction),
        new_balance=float(posted.new_balance),
    )


@router.post(
    "/transactions/bulk",
    response_model=BulkUploadResponse,
    summary="Bulk upload transactions",
    description="""
    Parse a CSV, TXT or JSON file and post every row.

    All rows are validated first; if any row is invalid nothing is posted and
    the validation errors are returned. Rows that fail while posting are
    reported individually and do not stop the rest.
    """
)
async def bulk_upload(request: BulkUploadRequest, admin: AdminUser) -> BulkUploadResponse:
    supabase_client = get_supabase_client(admin.access_token)

    try:
        rows = bulk_transaction_service.parse_upload(
            request.filename, request.content, request.default_account_id
        )
        if not rows:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"error": "validation_error", "details": "No transactions found in file"}
            )

        known_ids = await get_all_account_ids(supabase_client)
        errors = bulk_transaction_service.validate_rows(rows, known_ids)
        if errors:
            logger.info(f"Bulk upload by admin {admin.user_id} rejected: {len(errors)} validation errors")
            return BulkUploadResponse(
                success=False,
                processed=0,
                errors=[RowErrorResponse(row=e.row, field=e.field, message=e.message) for e in errors],
                message=f"Found {len(errors)} validation errors. Please fix them and try again.",
            )

        result = await bulk_transaction_service.process_rows(supabase_client, rows)
    except Exception as e:
        raise http_error(e, "Failed to process bulk upload")

    return BulkUploadResponse(
        success=result.success,
        processed=result.processed,
        errors=[RowErrorResponse(row=e.row, field=e.field, message=e.message) for e in result.errors],
        message=result.message,
    )


# --- Notifications ---

@router.post("/notifications/broadcast", response_model=BroadcastResponse, summary="Notify customers")
async def broadcast(request: BroadcastRequest, admin: AdminUser) -> BroadcastResponse:
    supabase_client = get_supabase_client(admin.access_token)

    try:
        sent, failed = await broadcast_notification(
            supabase_client,
            request.user_ids,
            request.title,
            request.message,
            request.notification_type,
        )
    except Exception as e:
        raise http_error(e, "Failed to send notifications")

    message = f"Notification sent to {sent} customer(s)"
    if failed:
        message += f", {failed} failed"

    return BroadcastResponse(sent=sent, failed=failed, message=message)


# --- Cards ---

@router.post(
    "/cards",
    response_model=CardResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue a card",
)
async def issue_card(request: CardCreateRequest, admin: AdminUser) -> CardResponse:
    supabase_client = get_supabase_client(admin.access_token)

    try:
        card = await card_service.create_card(
            supabase_client,
            request.user_id,
            request.account_id,
            request.card_number,
            request.card_type,
            request.expiry_date,
            request.cvv,
            request.card_holder_name,
            request.is_active,
        )
    except Exception as e:
        raise http_error(e, "Failed to create card")

    return CardResponse.from_row(card)


@router.put("/cards/{card_id}/active", response_model=CardResponse, summary="Enable or disable a card")
async def set_card_active(
    request: CardActiveRequest,
    admin: AdminUser,
    card_id: int = Path(..., description="Card id")
) -> CardResponse:
    supabase_client = get_supabase_client(admin.access_token)

    try:
        card = await card_service.set_card_active(supabase_client, card_id, request.is_active)
    except Exception as e:
        raise http_error(e, "Failed to update card")

    if card is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "details": f"Card {card_id} not found"}
        )

    return CardResponse.from_row(card)


@router.delete("/cards/{card_id}", response_model=DeleteResponse, summary="Delete a card")
async def remove_card(
    admin: AdminUser,
    card_id: int = Path(..., description="Card id")
) -> DeleteResponse:
    supabase_client = get_supabase_client(admin.access_token)

    try:
        deleted = await card_service.delete_card(supabase_client, card_id)
    except Exception as e:
        raise http_error(e, "Failed to delete card")

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "details": f"Card {card_id} not found"}
        )

    return DeleteResponse(message=f"Card {card_id} deleted")


# --- Users (service role) ---

@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
    description="Creates a confirmed auth user and their profile using the service-role key."
)
async def create_user(request: CreateUserRequest, admin: AdminUser) -> UserResponse:
    logger.info(f"Admin {admin.user_id} creating a new user")

    admin_client = _service_role_client()

    try:
        user = await create_user_with_service_role(admin_client, NewUser(**request.model_dump()))
    except Exception as e:
        raise http_error(e, "Failed to create user")

    return UserResponse.from_user(user)


@router.get("/users", response_model=UserListResponse, summary="List users")
async def get_users(admin: AdminUser) -> UserListResponse:
    admin_client = _service_role_client()

    try:
        users = await list_users(admin_client)
    except Exception as e:
        raise http_error(e, "Failed to list users")

    return UserListResponse(users=[UserResponse.from_user(u) for u in users], count=len(users))


@router.delete("/users/{user_id}", response_model=DeleteResponse, summary="Delete a user")
async def remove_user(
    admin: AdminUser,
    user_id: str = Path(..., description="Auth user UUID")
) -> DeleteResponse:
    if user_id == admin.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "validation_error", "details": "Administrators cannot delete themselves"}
        )

    admin_client = _service_role_client()

    try:
        await delete_user(admin_client, user_id)
    except Exception as e:
        raise http_error(e, "Failed to delete user")

    return DeleteResponse(message=f"User {user_id} deleted")
