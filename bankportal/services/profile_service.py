"""
User profile service.

Profiles share their id with the auth.users identity. A minimal profile is
created lazily the first time a signed-in user has none.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, cast

from supabase import Client

from bankportal.utils.errors import PreconditionError

logger = logging.getLogger(__name__)

PROFILES_TABLE = "profiles"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


async def get_user_profile(
    supabase_client: Client,
    user_id: str
) -> Optional[Dict[str, Any]]:
    """
    Fetch the user's profile.

    Returns:
        The profile dict, or None if not found
    """
    logger.debug(f"Fetching profile for user {user_id}")

    result = (
        supabase_client.table(PROFILES_TABLE)
        .select("*")
        .eq("id", user_id)
        .execute()
    )

    if not result.data:
        logger.warning(f"Profile not found for user {user_id}")
        return None

    return cast(Dict[str, Any], result.data[0])


async def update_profile(
    supabase_client: Client,
    user_id: str,
    updates: Dict[str, Any]
) -> Optional[Dict[str, Any]]:
    """
    Update profile fields and stamp updated_at.

    Returns:
        The updated profile, or None if not found
    """
    if not user_id:
        raise PreconditionError("user_id is required")

    payload = {**updates, "updated_at": _now_iso()}

    logger.info(f"Updating profile for user {user_id}: {list(updates.keys())}")

    result = (
        supabase_client.table(PROFILES_TABLE)
        .update(payload)
        .eq("id", user_id)
        .execute()
    )

    if not result.data:
        logger.warning(f"Profile update matched no rows for user {user_id}")
        return None

    return cast(Dict[str, Any], result.data[0])


async def ensure_profile(
    supabase_client: Client,
    user_id: str,
    email: str
) -> Dict[str, Any]:
    """
    Return the user's profile, creating a minimal one if none exists.

    Called on first login.
    """
    existing = await get_user_profile(supabase_client, user_id)
    if existing is not None:
        return existing

    now = _now_iso()
    profile_data = {
        "id": user_id,
        "email": email,
        "is_admin": False,
        "role": "user",
        "created_at": now,
        "updated_at": now,
    }

    logger.info(f"Creating profile on first login for user {user_id}")

    result = supabase_client.table(PROFILES_TABLE).insert(profile_data).execute()

    if not result.data:
        raise Exception("Failed to create profile: no data returned")

    return cast(Dict[str, Any], result.data[0])


async def is_admin(supabase_client: Client, user_id: str) -> bool:
    """True if the user's profile carries the admin flag."""
    result = (
        supabase_client.table(PROFILES_TABLE)
        .select("is_admin")
        .eq("id", user_id)
        .execute()
    )

    if not result.data:
        return False

    return bool(cast(Dict[str, Any], result.data[0]).get("is_admin"))
