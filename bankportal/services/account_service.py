"""
Account service.

Handles account reads, balance writes and the freeze/unfreeze rules.

Freeze precedence:
- freeze_by_admin / unfreeze_by_admin set or clear the flags unconditionally.
- freeze_by_user refuses to touch an account already frozen by an admin.
- unfreeze_by_user performs no admin-freeze check. This mirrors current
  product behaviour and is tracked as an open question; do not add the
  check without sign-off.

Balances must only change through flows that also record a transaction and
a notification (see admin_service and transaction_service.transfer_between_accounts).
"""

import logging
import random
from typing import Any, Dict, List, Optional, cast

from supabase import Client

from bankportal.utils.constants import (
    ACCOUNT_NUMBER_LENGTH,
    ACCOUNT_TYPES,
    DEFAULT_ROUTING_NUMBER,
)
from bankportal.utils.errors import NotFoundError, PreconditionError, account_not_found

logger = logging.getLogger(__name__)

ACCOUNTS_TABLE = "accounts"


def generate_account_number() -> str:
    """Random zero-padded account number."""
    return str(random.randrange(10 ** ACCOUNT_NUMBER_LENGTH)).zfill(ACCOUNT_NUMBER_LENGTH)


async def get_user_accounts(
    supabase_client: Client,
    user_id: str
) -> List[Dict[str, Any]]:
    """
    Fetch all accounts belonging to the user, ordered by account type.

    Args:
        supabase_client: Authenticated Supabase client
        user_id: The owning user's ID

    Returns:
        List of account dicts
    """
    logger.debug(f"Fetching accounts for user {user_id}")

    result = (
        supabase_client.table(ACCOUNTS_TABLE)
        .select("*")
        .eq("user_id", user_id)
        .order("account_type", desc=False)
        .execute()
    )

    accounts = cast(List[Dict[str, Any]], result.data or [])
    logger.info(f"Found {len(accounts)} accounts for user {user_id}")

    return accounts


async def get_user_account_ids(
    supabase_client: Client,
    user_id: str
) -> List[Any]:
    """Return the ids of every account the user owns."""
    result = (
        supabase_client.table(ACCOUNTS_TABLE)
        .select("id")
        .eq("user_id", user_id)
        .execute()
    )

    rows = cast(List[Dict[str, Any]], result.data or [])
    return [row["id"] for row in rows]


async def get_all_account_ids(supabase_client: Client) -> List[Any]:
    """Ids of every account visible to the client (all of them for admins)."""
    result = supabase_client.table(ACCOUNTS_TABLE).select("id").execute()

    rows = cast(List[Dict[str, Any]], result.data or [])
    return [row["id"] for row in rows]


async def get_account(
    supabase_client: Client,
    account_id: Any
) -> Optional[Dict[str, Any]]:
    """
    Fetch a single account by ID.

    Returns:
        Account dict, or None if not found (or hidden by RLS)
    """
    logger.debug(f"Fetching account {account_id}")

    result = (
        supabase_client.table(ACCOUNTS_TABLE)
        .select("*")
        .eq("id", account_id)
        .execute()
    )

    if not result.data:
        logger.warning(account_not_found(account_id))
        return None

    return cast(Dict[str, Any], result.data[0])


async def require_account(supabase_client: Client, account_id: Any) -> Dict[str, Any]:
    """Like get_account, but raise NotFoundError instead of returning None."""
    account = await get_account(supabase_client, account_id)
    if account is None:
        raise NotFoundError(account_not_found(account_id))
    return account


async def create_account(
    supabase_client: Client,
    user_id: str,
    account_type: str,
    balance: float = 0,
    account_number: Optional[str] = None,
    routing_number: Optional[str] = None,
    is_frozen: bool = False,
) -> Dict[str, Any]:
    """
    Insert a new account.

    Missing account numbers are generated; missing routing numbers default
    to the bank's routing number.

    Raises:
        PreconditionError: Missing user id, unknown type or negative balance
    """
    if not user_id:
        raise PreconditionError("A customer must be selected for the new account")
    if account_type not in ACCOUNT_TYPES:
        raise PreconditionError(
            f"Invalid account_type: {account_type}. Must be one of {', '.join(ACCOUNT_TYPES)}"
        )
    if balance < 0:
        raise PreconditionError("Balance cannot be negative")

    account_data = {
        "user_id": user_id,
        "account_type": account_type,
        "account_number": account_number or generate_account_number(),
        "routing_number": routing_number or DEFAULT_ROUTING_NUMBER,
        "balance": balance,
        "is_frozen": is_frozen,
    }

    logger.info(f"Creating {account_type} account for user {user_id}")

    result = supabase_client.table(ACCOUNTS_TABLE).insert(account_data).execute()

    if not result.data:
        raise Exception("Failed to create account: no data returned")

    created = cast(Dict[str, Any], result.data[0])
    logger.info(f"Account created successfully: {created.get('id')}")

    return created


async def update_balance(
    supabase_client: Client,
    account_id: Any,
    new_balance: float
) -> Optional[Dict[str, Any]]:
    """
    Overwrite an account's balance.

    Low-level write: callers are responsible for recording the matching
    transaction and notification.
    """
    logger.debug(f"Updating balance for account {account_id}")

    result = (
        supabase_client.table(ACCOUNTS_TABLE)
        .update({"balance": new_balance})
        .eq("id", account_id)
        .execute()
    )

    return cast(Dict[str, Any], result.data[0]) if result.data else None


async def toggle_freeze(
    supabase_client: Client,
    account_id: Any,
    is_frozen: bool
) -> None:
    """Set is_frozen without touching frozen_by_admin."""
    logger.info(f"Setting is_frozen={is_frozen} on account {account_id}")

    (
        supabase_client.table(ACCOUNTS_TABLE)
        .update({"is_frozen": is_frozen})
        .eq("id", account_id)
        .execute()
    )


async def freeze_by_admin(supabase_client: Client, account_id: Any) -> None:
    """Freeze an account and mark the freeze as admin-owned."""
    logger.info(f"Admin freezing account {account_id}")

    (
        supabase_client.table(ACCOUNTS_TABLE)
        .update({"is_frozen": True, "frozen_by_admin": True})
        .eq("id", account_id)
        .execute()
    )


async def unfreeze_by_admin(supabase_client: Client, account_id: Any) -> None:
    """Clear both freeze flags. Safe to call on an unfrozen account."""
    logger.info(f"Admin unfreezing account {account_id}")

    (
        supabase_client.table(ACCOUNTS_TABLE)
        .update({"is_frozen": False, "frozen_by_admin": False})
        .eq("id", account_id)
        .execute()
    )


async def freeze_by_user(supabase_client: Client, account_id: Any) -> None:
    """
    Freeze an account on the owner's request.

    Raises:
        NotFoundError: If the account does not exist
        PreconditionError: If an admin already froze the account; nothing is written
    """
    result = (
        supabase_client.table(ACCOUNTS_TABLE)
        .select("frozen_by_admin")
        .eq("id", account_id)
        .execute()
    )

    if not result.data:
        raise NotFoundError(account_not_found(account_id))

    account = cast(Dict[str, Any], result.data[0])
    if account.get("frozen_by_admin"):
        logger.warning(f"User freeze rejected for account {account_id}: frozen by admin")
        raise PreconditionError("Cannot freeze account that is already frozen by admin")

    logger.info(f"User freezing account {account_id}")

    (
        supabase_client.table(ACCOUNTS_TABLE)
        .update({"is_frozen": True, "frozen_by_admin": False})
        .eq("id", account_id)
        .execute()
    )


async def unfreeze_by_user(supabase_client: Client, account_id: Any) -> None:
    """Unfreeze an account on the owner's request (no admin-freeze check)."""
    logger.info(f"User unfreezing account {account_id}")

    (
        supabase_client.table(ACCOUNTS_TABLE)
        .update({"is_frozen": False})
        .eq("id", account_id)
        .execute()
    )


async def delete_account(supabase_client: Client, account_id: Any) -> bool:
    """
    Delete an account row.

    Returns:
        True if a row was removed, False otherwise
    """
    logger.info(f"Deleting account {account_id}")

    result = (
        supabase_client.table(ACCOUNTS_TABLE)
        .delete()
        .eq("id", account_id)
        .execute()
    )

    return bool(result.data)
