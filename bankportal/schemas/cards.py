"""
Pydantic schemas for card endpoints.

Full card numbers and CVVs are never returned; only the last four digits.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class CardResponse(BaseModel):
    id: int = Field(..., description="Card id")
    account_id: Optional[int] = Field(None, description="Linked account id")
    card_type: str = Field(..., description="Card type", examples=["debit", "credit"])
    card_holder_name: str = Field(..., description="Name printed on the card")
    last4: str = Field(..., description="Last four digits of the card number")
    expiry_date: str = Field(..., description="Expiry as printed (MM/YY)")
    is_active: bool = Field(True, description="False if the card is disabled")
    created_at: Optional[str] = Field(None, description="ISO-8601 timestamp")

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "CardResponse":
        return cls(
            id=row["id"],
            account_id=row.get("account_id"),
            card_type=str(row.get("card_type") or ""),
            card_holder_name=str(row.get("card_holder_name") or ""),
            last4=str(row.get("card_number") or "")[-4:],
            expiry_date=str(row.get("expiry_date") or ""),
            is_active=bool(row.get("is_active", True)),
            created_at=row.get("created_at"),
        )


class CardListResponse(BaseModel):
    cards: list[CardResponse] = Field(..., description="User's cards, newest first")
    count: int = Field(..., description="Number of cards returned")


class CardTransactionResponse(BaseModel):
    id: int = Field(..., description="Card transaction id")
    card_id: int = Field(..., description="Card the charge was made on")
    amount: float = Field(..., description="Charge amount")
    merchant: Optional[str] = Field(None, description="Merchant name")
    description: Optional[str] = Field(None, description="Free-text description")
    date: Optional[str] = Field(None, description="ISO-8601 timestamp of the charge")


class CardTransactionListResponse(BaseModel):
    transactions: list[CardTransactionResponse] = Field(..., description="Most recent first")
    count: int = Field(..., description="Number of rows returned")


# --- Admin card management ---

class CardCreateRequest(BaseModel):
    """Issue a card against a customer account."""
    user_id: str = Field(..., min_length=1, description="Card holder user UUID")
    account_id: int = Field(..., description="Account the card draws on")
    card_number: str = Field(..., pattern=r"^\d{13,19}$", description="Full card number")
    card_type: str = Field(..., min_length=1, examples=["debit", "credit"])
    expiry_date: str = Field(..., pattern=r"^(0[1-9]|1[0-2])/\d{2}$", examples=["08/29"])
    cvv: str = Field(..., pattern=r"^\d{3,4}$")
    card_holder_name: str = Field(..., min_length=1, max_length=100)
    is_active: bool = Field(True)


class CardActiveRequest(BaseModel):
    is_active: bool = Field(..., description="False disables the card")
