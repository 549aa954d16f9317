"""
Notification service.

Notifications are created as side effects of admin actions on accounts and
read by the customer's notification view.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, cast

from supabase import Client

from bankportal.utils.constants import NOTIFICATION_TYPES
from bankportal.utils.errors import PreconditionError

logger = logging.getLogger(__name__)

NOTIFICATIONS_TABLE = "notifications"


async def get_user_notifications(
    supabase_client: Client,
    user_id: str,
    unread_only: bool = False
) -> List[Dict[str, Any]]:
    """Fetch a user's notifications, newest first."""
    query = (
        supabase_client.table(NOTIFICATIONS_TABLE)
        .select("*")
        .eq("user_id", user_id)
        .order("created_at", desc=True)
    )

    if unread_only:
        query = query.eq("is_read", False)

    result = query.execute()

    notifications = cast(List[Dict[str, Any]], result.data or [])
    logger.debug(f"Fetched {len(notifications)} notifications for user {user_id}")

    return notifications


async def mark_as_read(supabase_client: Client, notification_id: Any) -> None:
    (
        supabase_client.table(NOTIFICATIONS_TABLE)
        .update({"is_read": True})
        .eq("id", notification_id)
        .execute()
    )


async def mark_all_as_read(supabase_client: Client, user_id: str) -> int:
    """Mark every unread notification of the user as read; returns rows changed."""
    result = (
        supabase_client.table(NOTIFICATIONS_TABLE)
        .update({"is_read": True})
        .eq("user_id", user_id)
        .eq("is_read", False)
        .execute()
    )

    updated = len(result.data or [])
    logger.info(f"Marked {updated} notifications as read for user {user_id}")

    return updated


async def create_notification(
    supabase_client: Client,
    user_id: str,
    title: str,
    message: str,
    notification_type: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Insert a notification for a user.

    Raises:
        PreconditionError: Missing user id or unknown notification type
    """
    if not user_id:
        raise PreconditionError("user_id is required")
    if notification_type is not None and notification_type not in NOTIFICATION_TYPES:
        raise PreconditionError(
            f"Invalid notification type: {notification_type}. "
            f"Must be one of {', '.join(NOTIFICATION_TYPES)}"
        )

    notification_data: Dict[str, Any] = {
        "user_id": user_id,
        "title": title,
        "message": message,
    }
    if notification_type is not None:
        notification_data["type"] = notification_type

    logger.info(f"Creating notification '{title}' for user {user_id}")

    result = supabase_client.table(NOTIFICATIONS_TABLE).insert(notification_data).execute()

    if not result.data:
        raise Exception("Failed to create notification: no data returned")

    return cast(Dict[str, Any], result.data[0])


async def broadcast_notification(
    supabase_client: Client,
    user_ids: Sequence[str],
    title: str,
    message: str,
    notification_type: str = "info",
) -> Tuple[int, int]:
    """
    Send the same notification to several users.

    A failure for one recipient is logged and counted; it does not stop the
    remaining sends.

    Returns:
        Tuple of (sent, failed)

    Raises:
        PreconditionError: If no recipients were selected
    """
    if not user_ids:
        raise PreconditionError("Select at least one customer")

    sent = 0
    failed = 0
    for user_id in user_ids:
        try:
            await create_notification(
                supabase_client, user_id, title, message, notification_type
            )
            sent += 1
        except Exception as e:
            failed += 1
            logger.warning(f"Failed to notify user {user_id}: {e}")

    logger.info(f"Broadcast '{title}' finished: {sent} sent, {failed} failed")

    return sent, failed
