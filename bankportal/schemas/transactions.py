"""
Pydantic schemas for transaction endpoints.

Amounts are always positive; transaction_type decides whether a row adds to
(deposit) or subtracts from (withdrawal) an account. Transfers leave one
"transfer" row on each side and count toward neither total.
"""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

TransactionType = Literal["deposit", "withdrawal", "transfer"]


class TransactionResponse(BaseModel):
    """A single ledger entry."""
    id: int = Field(..., description="Transaction id")
    account_id: int = Field(..., description="Account the entry belongs to")
    amount: float = Field(..., description="Positive amount")
    description: str = Field(..., description="Free-text description")
    transaction_type: TransactionType = Field(..., description="deposit, withdrawal or transfer")
    created_at: Optional[str] = Field(None, description="ISO-8601 timestamp")

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "TransactionResponse":
        return cls(
            id=row["id"],
            account_id=row["account_id"],
            amount=float(row.get("amount") or 0),
            description=str(row.get("description") or ""),
            transaction_type=row.get("transaction_type", "deposit"),
            created_at=row.get("created_at"),
        )


class TransactionListResponse(BaseModel):
    """Response for GET /transactions."""
    transactions: list[TransactionResponse] = Field(..., description="Matching transactions, newest first")
    count: int = Field(..., description="Number of transactions returned")
    limit: Optional[int] = Field(None, description="Maximum number requested")
    offset: int = Field(0, description="Number of rows skipped")


class PaginatedTransactionsResponse(BaseModel):
    """Response for GET /transactions/paginated."""
    data: list[TransactionResponse] = Field(..., description="Rows on the requested page")
    total_count: int = Field(..., description="Rows matching the filters across all pages")
    total_pages: int = Field(..., description="ceil(total_count / page_size)")
    current_page: int = Field(..., description="The requested page (1-based)")
    has_next_page: bool = Field(..., description="current_page < total_pages")


class TransactionStatsResponse(BaseModel):
    """Totals over the transactions matching the filters."""
    total_deposits: float = Field(..., description="Sum of deposit amounts")
    total_withdrawals: float = Field(..., description="Sum of withdrawal amounts")
    net_amount: float = Field(..., description="total_deposits - total_withdrawals")
    transaction_count: int = Field(..., description="Number of transactions, transfers included")


class TransferRequest(BaseModel):
    """Request to move money between two of the caller's accounts."""
    from_account_id: int = Field(..., description="Source account id")
    to_account_id: int = Field(..., description="Destination account id")
    amount: float = Field(..., gt=0, description="Amount to move", examples=[250.0])
    description: Optional[str] = Field(
        None,
        max_length=500,
        description="Optional description applied to both legs",
        examples=["Monthly savings"]
    )


class TransferResponse(BaseModel):
    """Response after a completed transfer."""
    status: str = Field("CREATED", description="Success indicator")
    outgoing: TransactionResponse = Field(..., description="Transfer leg on the source account")
    incoming: TransactionResponse = Field(..., description="Transfer leg on the destination account")
    message: str = Field(..., description="Success message", examples=["Transfer completed"])
