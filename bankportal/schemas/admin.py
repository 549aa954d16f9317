"""
Pydantic schemas for admin endpoints.

Every admin endpoint requires the caller's profile to carry is_admin.
Balance-changing requests always produce a transaction record and a
customer notification.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from bankportal.schemas.accounts import AccountResponse, AccountType
from bankportal.schemas.notifications import NotificationType
from bankportal.schemas.transactions import TransactionResponse, TransactionType


# --- Account management ---

class AdminAccountCreateRequest(BaseModel):
    """Request to open an account for a customer."""
    user_id: str = Field(..., min_length=1, description="Owner user UUID")
    account_type: AccountType = Field(..., description="Kind of account", examples=["checking"])
    balance: float = Field(0, ge=0, description="Initial balance")
    account_number: Optional[str] = Field(
        None,
        pattern=r"^\d{10}$",
        description="10-digit account number (generated when omitted)"
    )
    routing_number: Optional[str] = Field(
        None,
        pattern=r"^\d{9}$",
        description="Routing number (defaults to 074000078)"
    )


class BalanceAdjustRequest(BaseModel):
    """Set an account balance; the difference is recorded as a transaction."""
    new_balance: float = Field(..., description="Target balance (must not be negative)")


class BalanceAdjustResponse(BaseModel):
    status: str = Field("OK", description="Success indicator")
    changed: bool = Field(..., description="False when the balance was already at the target")
    account: AccountResponse = Field(..., description="Account after the adjustment")
    transaction: Optional[TransactionResponse] = Field(
        None, description="Adjustment transaction, when one was recorded"
    )


class AdminTransactionRequest(BaseModel):
    """Post a transaction to a customer account."""
    account_id: int = Field(..., description="Target account id")
    amount: float = Field(..., description="Positive amount", examples=[100.0])
    transaction_type: TransactionType = Field(..., description="deposit, withdrawal or transfer")
    description: str = Field(..., max_length=500, description="Shown to the customer")
    created_at: Optional[str] = Field(
        None,
        description="ISO-8601 timestamp to backdate the entry (defaults to now)"
    )


class PostedTransactionResponse(BaseModel):
    status: str = Field("CREATED", description="Success indicator")
    transaction: TransactionResponse = Field(..., description="The inserted transaction")
    new_balance: float = Field(..., description="Account balance after posting")


class BulkUploadRequest(BaseModel):
    """
    Bulk transaction upload.

    content holds the raw file text; filename decides the parser
    (.csv, .txt or .json).
    """
    filename: str = Field(..., min_length=1, examples=["transactions.csv"])
    content: str = Field(..., description="Raw file text")
    default_account_id: Optional[int] = Field(
        None,
        description="Account used for rows without an account_id column"
    )


class RowErrorResponse(BaseModel):
    row: int = Field(..., description="1-based row number")
    field: str = Field(..., description="Offending field, or 'general' for posting failures")
    message: str = Field(..., description="What went wrong")


class BulkUploadResponse(BaseModel):
    success: bool = Field(..., description="True if every row was posted")
    processed: int = Field(..., description="Rows posted successfully")
    errors: list[RowErrorResponse] = Field(default_factory=list, description="Validation or posting errors")
    message: str = Field(..., description="Summary line")


# --- Notifications ---

class BroadcastRequest(BaseModel):
    """Send the same notification to several customers."""
    user_ids: list[str] = Field(..., description="Recipient user UUIDs")
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=2000)
    notification_type: NotificationType = Field("info", description="info, warning, success or error")


class BroadcastResponse(BaseModel):
    sent: int = Field(..., description="Notifications created")
    failed: int = Field(..., description="Recipients whose notification failed")
    message: str = Field(..., description="Summary line")


# --- User provisioning ---

class CreateUserRequest(BaseModel):
    """Create a confirmed user and their profile."""
    email: str = Field(..., min_length=3, examples=["jane@example.com"])
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    is_admin: bool = Field(False, description="Grant administrator privileges")
    phone: str = Field("", max_length=30)
    address: str = Field("", max_length=200)
    city: str = Field("", max_length=100)
    state: str = Field("", max_length=50)
    zip: str = Field("", max_length=20)
    date_of_birth: Optional[str] = Field(None, description="ISO date")
    ssn: str = Field("", max_length=11)
    mothers_maiden_name: str = Field("", max_length=100)
    referral_source: str = Field("", max_length=100)


class UserResponse(BaseModel):
    id: str = Field(..., description="Auth user UUID")
    email: Optional[str] = Field(None, description="Email address")
    created_at: Optional[str] = Field(None, description="ISO-8601 timestamp")

    @classmethod
    def from_user(cls, user: Any) -> "UserResponse":
        created_at = getattr(user, "created_at", None)
        return cls(
            id=str(user.id),
            email=getattr(user, "email", None),
            created_at=str(created_at) if created_at is not None else None,
        )


class UserListResponse(BaseModel):
    users: list[UserResponse] = Field(..., description="Auth users")
    count: int = Field(..., description="Number of users returned")


class DeleteResponse(BaseModel):
    status: str = Field("DELETED", description="Indicates successful deletion")
    message: str = Field(..., description="What was deleted")