"""
Supabase client factories with two privilege tiers.

- get_supabase_client(): low-privilege client bound to the caller's JWT.
  Row Level Security applies to every query it issues.
- get_service_role_client(): high-privilege client built with the
  service-role key. Bypasses RLS. Only used from server-trusted code paths
  (admin user provisioning, startup catalog check).
- get_realtime_client(): async low-privilege client for change feeds.

Handles are constructed on demand; nothing here is a module-level singleton.
"""

import logging

from bankportal.config import settings
from supabase import AsyncClient, Client, ClientOptions, acreate_client, create_client

logger = logging.getLogger(__name__)


def get_supabase_client(access_token: str) -> Client:
    """
    Create an authenticated Supabase client for a specific user.

    Args:
        access_token: The user's JWT access token from Supabase Auth,
                      as verified in bankportal/auth/dependencies.py.

    Returns:
        An authenticated Supabase client that enforces RLS.

    Example:
        >>> client = get_supabase_client(auth_user.access_token)
        >>> client.table("accounts").select("*").execute()
    """
    client: Client = create_client(
        supabase_url=settings.SUPABASE_URL,
        supabase_key=settings.SUPABASE_ANON_KEY
    )

    # The token's 'sub' claim becomes auth.uid() inside RLS policies
    client.auth.set_session(access_token, access_token)

    logger.debug("Created authenticated Supabase client with user token (RLS enforced)")

    return client


def get_service_role_client() -> Client:
    """
    Create a Supabase client with service_role privileges.

    WARNING: This bypasses RLS and must ONLY be used for:
    - Admin user provisioning (auth.admin.create_user / delete_user)
    - The startup table-catalog consistency check

    Returns:
        A Supabase client with service_role privileges.

    Raises:
        ValueError: If SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY is missing.
                    Only this code path fails; the anon client is unaffected.
    """
    settings.validate_service_role()

    client: Client = create_client(
        supabase_url=settings.SUPABASE_URL,
        supabase_key=settings.SUPABASE_SERVICE_ROLE_KEY,
        options=ClientOptions(auto_refresh_token=False, persist_session=False)
    )

    logger.info("Created service-role Supabase client (RLS bypassed)")

    return client


async def get_realtime_client(access_token: str) -> AsyncClient:
    """
    Create an async Supabase client for realtime change feeds.

    Realtime channels are only available on the async client. The user's
    token is applied so server-side row filters respect RLS.

    Args:
        access_token: The user's JWT access token.

    Returns:
        An authenticated AsyncClient.
    """
    client: AsyncClient = await acreate_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_ANON_KEY
    )
    await client.auth.set_session(access_token, access_token)

    logger.debug("Created async Supabase client for realtime subscriptions")

    return client
