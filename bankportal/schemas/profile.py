"""
Pydantic schemas for the profile endpoints.

Sensitive profile columns (ssn, mothers_maiden_name) are never returned and
cannot be edited through the API.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ProfileResponse(BaseModel):
    """Profile of the authenticated user."""
    id: str = Field(..., description="User UUID (same as auth.users.id)")
    email: str = Field(..., description="Email address")
    first_name: Optional[str] = Field(None, description="First name")
    last_name: Optional[str] = Field(None, description="Last name")
    phone: Optional[str] = Field(None, description="Phone number")
    address: Optional[str] = Field(None, description="Street address")
    city: Optional[str] = Field(None, description="City")
    state: Optional[str] = Field(None, description="State")
    zip: Optional[str] = Field(None, description="ZIP code")
    date_of_birth: Optional[str] = Field(None, description="ISO date of birth")
    avatar_url: Optional[str] = Field(None, description="Avatar image URL")
    is_admin: bool = Field(False, description="True for administrators")
    created_at: Optional[str] = Field(None, description="ISO-8601 timestamp when created")
    updated_at: Optional[str] = Field(None, description="ISO-8601 timestamp of last update")

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ProfileResponse":
        fields = {name: row.get(name) for name in cls.model_fields if name in row}
        fields["id"] = str(row.get("id") or "")
        fields["email"] = str(row.get("email") or "")
        fields["is_admin"] = bool(row.get("is_admin"))
        return cls(**fields)


class ProfileUpdateRequest(BaseModel):
    """
    Request to update the caller's profile.

    Only fields that are provided are updated.
    """
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30, examples=["+1 555 0100"])
    address: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    zip: Optional[str] = Field(None, max_length=20)
    avatar_url: Optional[str] = Field(None, max_length=500)
