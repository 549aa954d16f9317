"""
Pydantic schemas for customer notification endpoints.
"""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

NotificationType = Literal["info", "warning", "success", "error"]


class NotificationResponse(BaseModel):
    id: int = Field(..., description="Notification id")
    title: str = Field(..., description="Short title", examples=["Account Frozen"])
    message: str = Field(..., description="Notification body")
    type: Optional[str] = Field("info", description="info, warning, success or error")
    is_read: bool = Field(False, description="True once the user has read it")
    created_at: Optional[str] = Field(None, description="ISO-8601 timestamp")

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "NotificationResponse":
        return cls(
            id=row["id"],
            title=str(row.get("title") or ""),
            message=str(row.get("message") or ""),
            type=row.get("type") or "info",
            is_read=bool(row.get("is_read")),
            created_at=row.get("created_at"),
        )


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse] = Field(..., description="Newest first")
    count: int = Field(..., description="Number of notifications returned")
    unread_count: int = Field(..., description="How many of them are unread")


class MarkReadResponse(BaseModel):
    status: str = Field("OK", description="Success indicator")
    updated: int = Field(..., description="Number of notifications marked as read")
