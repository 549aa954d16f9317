"""
Realtime WebSocket endpoint.

A connected client receives its own account, transaction and notification
changes as JSON frames. The subscriptions live exactly as long as the socket:
when the client disconnects every channel is removed.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect, status

from bankportal.auth.dependencies import authenticate_token
from bankportal.db.client import get_realtime_client
from bankportal.services.realtime_service import (
    ChangeEvent,
    RealtimeSubscription,
    subscribe_to_user_accounts,
    subscribe_to_user_notifications,
    subscribe_to_user_transactions,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])

SUBSCRIBERS = (
    subscribe_to_user_accounts,
    subscribe_to_user_transactions,
    subscribe_to_user_notifications,
)


def event_frame(event: ChangeEvent) -> Dict[str, Any]:
    return {
        "table": event.table,
        "event_type": event.event_type,
        "new": event.new,
        "old": event.old,
    }


@router.websocket("/realtime")
async def realtime_feed(websocket: WebSocket, token: Optional[str] = None) -> None:
    """
    Stream the caller's data changes.

    Authenticate with an Authorization header or a `token` query parameter.
    Invalid credentials close the handshake with 1008; a failure while
    opening the channels closes with 1011. Messages sent by the client are
    ignored.
    """
    authorization = websocket.headers.get("authorization") or (f"Bearer {token}" if token else None)

    try:
        auth_user = authenticate_token(authorization)
    except HTTPException as e:
        await websocket.close(
            code=status.WS_1008_POLICY_VIOLATION,
            reason=e.detail.get("details", "unauthorized") if isinstance(e.detail, dict) else None,
        )
        return

    await websocket.accept()

    async def forward(event: ChangeEvent) -> None:
        await websocket.send_json(event_frame(event))

    subscriptions: List[RealtimeSubscription] = []

    try:
        try:
            client = await get_realtime_client(auth_user.access_token)
            for subscribe in SUBSCRIBERS:
                subscriptions.append(await subscribe(client, auth_user.user_id, forward))
        except Exception as e:
            logger.error(f"Failed to open realtime channels for user {auth_user.user_id}: {e}")
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
            return

        logger.info(f"Realtime stream open for user {auth_user.user_id}")

        while True:
            await websocket.receive_text()

    except WebSocketDisconnect:
        logger.info(f"Realtime stream closed by user {auth_user.user_id}")

    finally:
        for subscription in subscriptions:
            await subscription.unsubscribe()
