"""
Admin user provisioning.

CRITICAL: every function here expects the service-role client from
bankportal.db.client.get_service_role_client(). Never pass a per-user client
and never expose these operations to a non-admin route.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, cast

from supabase import Client

from bankportal.utils.errors import PreconditionError

logger = logging.getLogger(__name__)


@dataclass
class NewUser:
    email: str
    password: str
    first_name: str
    last_name: str
    is_admin: bool = False
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    date_of_birth: Optional[str] = None
    ssn: str = ""
    mothers_maiden_name: str = ""
    referral_source: str = ""

    def profile_row(self, user_id: str) -> Dict[str, Any]:
        now = datetime.now(timezone.utc).isoformat()
        return {
            "id": user_id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip": self.zip,
            "date_of_birth": self.date_of_birth,
            "ssn": self.ssn,
            "mothers_maiden_name": self.mothers_maiden_name,
            "referral_source": self.referral_source,
            "is_admin": self.is_admin,
            "role": "admin" if self.is_admin else "user",
            "created_at": now,
            "updated_at": now,
        }


async def create_user_with_service_role(admin_client: Client, new_user: NewUser) -> Any:
    """
    Create a confirmed auth user and their profile.

    If the profile insert fails, the freshly created auth user is deleted
    and the profile error is re-raised.

    Args:
        admin_client: Service-role Supabase client
        new_user: Account details

    Returns:
        The created auth user object

    Raises:
        PreconditionError: Missing email or password
        Exception: Auth or database errors from Supabase
    """
    if not new_user.email or not new_user.password:
        raise PreconditionError("Email and password are required")

    logger.info("Provisioning new user via service role")

    response = admin_client.auth.admin.create_user({
        "email": new_user.email,
        "password": new_user.password,
        "email_confirm": True,
    })

    user = getattr(response, "user", None)
    if user is None:
        raise Exception("Failed to create user: no user data received")

    user_id = str(user.id)
    logger.info(f"Auth user created: {user_id}")

    try:
        admin_client.table("profiles").insert(new_user.profile_row(user_id)).execute()
    except Exception as e:
        logger.error(f"Profile insert failed for {user_id}; removing auth user: {e}")
        admin_client.auth.admin.delete_user(user_id)
        raise

    logger.info(f"Profile created for user {user_id}")

    return user


async def list_users(admin_client: Client) -> List[Any]:
    """List auth users (first page as returned by GoTrue)."""
    users = admin_client.auth.admin.list_users()
    return cast(List[Any], users or [])


async def delete_user(admin_client: Client, user_id: str) -> None:
    """Delete an auth user. The profile row is removed by the FK cascade."""
    if not user_id:
        raise PreconditionError("user_id is required")

    logger.info(f"Deleting auth user {user_id}")
    admin_client.auth.admin.delete_user(user_id)
