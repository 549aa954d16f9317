"""
Card endpoints for the authenticated user.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from bankportal.auth.dependencies import AuthenticatedUser, get_authenticated_user
from bankportal.db.client import get_supabase_client
from bankportal.routes.errors import http_error
from bankportal.schemas.cards import (
    CardListResponse,
    CardResponse,
    CardTransactionListResponse,
    CardTransactionResponse,
)
from bankportal.services.card_service import get_card_transactions, get_user_cards

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cards", tags=["cards"])


@router.get("", response_model=CardListResponse, summary="List user cards")
async def list_cards(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> CardListResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        cards = await get_user_cards(supabase_client, auth_user.user_id)
    except Exception as e:
        raise http_error(e, "Failed to retrieve cards")

    return CardListResponse(cards=[CardResponse.from_row(row) for row in cards], count=len(cards))


@router.get(
    "/transactions",
    response_model=CardTransactionListResponse,
    summary="Recent card transactions",
    description="Most recent charges across all of the caller's cards."
)
async def list_card_transactions(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)],
    limit: int = Query(10, ge=1, le=100, description="Maximum rows to return")
) -> CardTransactionListResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        cards = await get_user_cards(supabase_client, auth_user.user_id)
        rows = await get_card_transactions(supabase_client, [card["id"] for card in cards], limit)
    except Exception as e:
        raise http_error(e, "Failed to retrieve card transactions")

    return CardTransactionListResponse(
        transactions=[CardTransactionResponse(**row) for row in rows],
        count=len(rows),
    )
