"""
Notification endpoints for the authenticated user.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query

from bankportal.auth.dependencies import AuthenticatedUser, get_authenticated_user
from bankportal.db.client import get_supabase_client
from bankportal.routes.errors import http_error
from bankportal.schemas.notifications import (
    MarkReadResponse,
    NotificationListResponse,
    NotificationResponse,
)
from bankportal.services.notification_service import (
    get_user_notifications,
    mark_all_as_read,
    mark_as_read,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse, summary="List notifications")
async def list_notifications(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)],
    unread_only: bool = Query(False, description="Only unread notifications")
) -> NotificationListResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        rows = await get_user_notifications(supabase_client, auth_user.user_id, unread_only)
    except Exception as e:
        raise http_error(e, "Failed to retrieve notifications")

    notifications = [NotificationResponse.from_row(row) for row in rows]

    return NotificationListResponse(
        notifications=notifications,
        count=len(notifications),
        unread_count=sum(1 for n in notifications if not n.is_read),
    )


@router.post("/read-all", response_model=MarkReadResponse, summary="Mark all as read")
async def read_all_notifications(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> MarkReadResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        updated = await mark_all_as_read(supabase_client, auth_user.user_id)
    except Exception as e:
        raise http_error(e, "Failed to update notifications")

    return MarkReadResponse(updated=updated)


@router.post(
    "/{notification_id}/read",
    response_model=MarkReadResponse,
    summary="Mark one notification as read",
)
async def read_notification(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)],
    notification_id: int = Path(..., description="Notification id")
) -> MarkReadResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        await mark_as_read(supabase_client, notification_id)
    except Exception as e:
        raise http_error(e, "Failed to update notification")

    return MarkReadResponse(updated=1)
