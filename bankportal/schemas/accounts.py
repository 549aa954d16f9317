"""
Pydantic schemas for customer account endpoints.

Accounts hold a stored balance and two freeze flags: is_frozen, and
frozen_by_admin which prevents the owner from changing the freeze state.
"""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

# Account type enum (matches DB CHECK constraint)
AccountType = Literal["checking", "savings", "investment", "escrow"]


class AccountResponse(BaseModel):
    """Account details as visible to the owner."""
    id: int = Field(..., description="Account id")
    user_id: str = Field(..., description="Owner user UUID (from auth.users)")
    account_number: str = Field(..., description="10-digit account number")
    routing_number: str = Field(..., description="Routing number", examples=["074000078"])
    account_type: AccountType = Field(..., description="Kind of account")
    balance: float = Field(..., description="Stored balance")
    is_frozen: bool = Field(False, description="True if no transactions may be posted")
    frozen_by_admin: bool = Field(False, description="True if an administrator froze the account")
    created_at: Optional[str] = Field(None, description="ISO-8601 timestamp when created")

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "AccountResponse":
        return cls(
            id=row["id"],
            user_id=str(row.get("user_id") or ""),
            account_number=str(row.get("account_number") or ""),
            routing_number=str(row.get("routing_number") or ""),
            account_type=row.get("account_type", "checking"),
            balance=float(row.get("balance") or 0),
            is_frozen=bool(row.get("is_frozen")),
            frozen_by_admin=bool(row.get("frozen_by_admin")),
            created_at=row.get("created_at"),
        )


class AccountListResponse(BaseModel):
    """Response for listing user accounts."""
    accounts: list[AccountResponse] = Field(..., description="User's accounts, by account type")
    count: int = Field(..., description="Number of accounts returned")


class AccountFreezeResponse(BaseModel):
    """Response after a freeze or unfreeze request."""
    status: str = Field("OK", description="Success indicator")
    account_id: int = Field(..., description="Account id")
    is_frozen: bool = Field(..., description="Freeze state after the request")
    message: str = Field(
        ...,
        description="Success message",
        examples=["Account frozen", "Account unfrozen"]
    )
