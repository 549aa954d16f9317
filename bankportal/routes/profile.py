"""
Profile endpoints.

GET /profile creates a minimal profile the first time a signed-in user has
none.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from bankportal.auth.dependencies import AuthenticatedUser, get_authenticated_user
from bankportal.db.client import get_supabase_client
from bankportal.routes.errors import http_error
from bankportal.schemas.profile import ProfileResponse, ProfileUpdateRequest
from bankportal.services.profile_service import ensure_profile, update_profile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=ProfileResponse, summary="Get own profile")
async def get_profile(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> ProfileResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        profile = await ensure_profile(supabase_client, auth_user.user_id, auth_user.email or "")
    except Exception as e:
        raise http_error(e, "Failed to retrieve profile")

    return ProfileResponse.from_row(profile)


@router.patch("", response_model=ProfileResponse, summary="Update own profile")
async def patch_profile(
    request: ProfileUpdateRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> ProfileResponse:
    updates = request.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "validation_error", "details": "No fields to update"}
        )

    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        profile = await update_profile(supabase_client, auth_user.user_id, updates)
    except Exception as e:
        raise http_error(e, "Failed to update profile")

    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "details": "Profile not found"}
        )

    return ProfileResponse.from_row(profile)
