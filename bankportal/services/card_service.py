"""
Card service.

Card numbers and CVVs are returned to the caller as stored but are never
written to logs.
"""

import logging
from typing import Any, Dict, List, Optional, cast

from supabase import Client

from bankportal.utils.errors import PreconditionError

logger = logging.getLogger(__name__)

CARDS_TABLE = "cards"
CARD_TRANSACTIONS_TABLE = "card_transactions"


async def get_user_cards(
    supabase_client: Client,
    user_id: str
) -> List[Dict[str, Any]]:
    """Fetch all cards for a user, newest first."""
    logger.debug(f"Fetching cards for user {user_id}")

    result = (
        supabase_client.table(CARDS_TABLE)
        .select("*")
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .execute()
    )

    cards = cast(List[Dict[str, Any]], result.data or [])
    logger.info(f"Found {len(cards)} cards for user {user_id}")

    return cards


async def get_card_transactions(
    supabase_client: Client,
    card_ids: List[Any],
    limit: int = 10
) -> List[Dict[str, Any]]:
    """Fetch the most recent card transactions across the given cards."""
    if not card_ids:
        return []

    result = (
        supabase_client.table(CARD_TRANSACTIONS_TABLE)
        .select("*")
        .in_("card_id", card_ids)
        .order("date", desc=True)
        .limit(limit)
        .execute()
    )

    return cast(List[Dict[str, Any]], result.data or [])


async def get_card(supabase_client: Client, card_id: Any) -> Optional[Dict[str, Any]]:
    result = (
        supabase_client.table(CARDS_TABLE)
        .select("*")
        .eq("id", card_id)
        .execute()
    )
    return cast(Dict[str, Any], result.data[0]) if result.data else None


async def create_card(
    supabase_client: Client,
    user_id: str,
    account_id: Any,
    card_number: str,
    card_type: str,
    expiry_date: str,
    cvv: str,
    card_holder_name: str,
    is_active: bool = True,
) -> Dict[str, Any]:
    """
    Issue a card against an account.

    Raises:
        PreconditionError: If no customer or account was selected
    """
    if not user_id:
        raise PreconditionError("A customer must be selected for the new card")
    if account_id is None:
        raise PreconditionError("An account must be selected for the new card")

    card_data = {
        "user_id": user_id,
        "account_id": account_id,
        "card_number": card_number,
        "card_type": card_type,
        "expiry_date": expiry_date,
        "cvv": cvv,
        "card_holder_name": card_holder_name,
        "is_active": is_active,
    }

    logger.info(f"Issuing {card_type} card for user {user_id} on account {account_id}")

    result = supabase_client.table(CARDS_TABLE).insert(card_data).execute()

    if not result.data:
        raise Exception("Failed to create card: no data returned")

    return cast(Dict[str, Any], result.data[0])


async def update_card(
    supabase_client: Client,
    card_id: Any,
    **updates: Any
) -> Optional[Dict[str, Any]]:
    """Update card fields; returns the updated row or None if not found."""
    logger.info(f"Updating card {card_id}: {list(updates.keys())}")

    result = (
        supabase_client.table(CARDS_TABLE)
        .update(updates)
        .eq("id", card_id)
        .execute()
    )

    return cast(Dict[str, Any], result.data[0]) if result.data else None


async def set_card_active(
    supabase_client: Client,
    card_id: Any,
    is_active: bool
) -> Optional[Dict[str, Any]]:
    """Activate or deactivate a card."""
    return await update_card(supabase_client, card_id, is_active=is_active)


async def delete_card(supabase_client: Client, card_id: Any) -> bool:
    logger.info(f"Deleting card {card_id}")

    result = (
        supabase_client.table(CARDS_TABLE)
        .delete()
        .eq("id", card_id)
        .execute()
    )

    return bool(result.data)
