"""
Tests for the realtime WebSocket endpoint.

Authentication and the async Supabase client are mocked. Each mocked channel
replays its queued payloads as soon as it is subscribed, so frames arrive
without a live realtime server.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from bankportal.auth.dependencies import AuthenticatedUser
from bankportal.main import app

client = TestClient(app)


def _realtime_client(payloads=None, failing_table=None):
    realtime = MagicMock()
    realtime.remove_channel = AsyncMock()
    realtime.opened = []

    def channel(name):
        handlers = []
        opened = MagicMock(name=name)

        def on_postgres_changes(event, callback, **options):
            handlers.append((callback, options))
            return opened

        async def subscribe(*args, **kwargs):
            for callback, options in handlers:
                if options["table"] == failing_table:
                    raise RuntimeError("realtime unavailable")
                for payload in (payloads or {}).get(options["table"], []):
                    callback(payload)
            return opened

        opened.on_postgres_changes.side_effect = on_postgres_changes
        opened.subscribe = AsyncMock(side_effect=subscribe)
        realtime.opened.append(opened)
        return opened

    realtime.channel.side_effect = channel
    return realtime


def _payload(table, record):
    return {"data": {"type": "INSERT", "table": table, "record": record, "old_record": None}}


@pytest.fixture
def authenticated():
    user = AuthenticatedUser(user_id="test-user-id", access_token="test-access-token")
    with patch("bankportal.routes.realtime.authenticate_token", return_value=user) as mock_auth:
        yield mock_auth


class TestRealtimeFeed:

    def test_forwards_events_and_unsubscribes_on_disconnect(self, authenticated):
        realtime = _realtime_client({
            "accounts": [_payload("accounts", {"id": 1, "user_id": "test-user-id", "balance": 80.0})],
            "notifications": [_payload("notifications", {"id": 5, "title": "Account Frozen"})],
        })

        with patch("bankportal.routes.realtime.get_realtime_client", AsyncMock(return_value=realtime)):
            with client.websocket_connect("/realtime?token=abc") as websocket:
                frames = [websocket.receive_json(), websocket.receive_json()]

        by_table = {frame["table"]: frame for frame in frames}
        assert by_table["accounts"]["event_type"] == "INSERT"
        assert by_table["accounts"]["new"]["balance"] == 80.0
        assert by_table["notifications"]["new"]["title"] == "Account Frozen"

        authenticated.assert_called_once_with("Bearer abc")
        assert [call.args[0] for call in realtime.channel.call_args_list] == [
            "user-accounts", "user-transactions", "user-notifications",
        ]
        assert realtime.remove_channel.await_count == 3

    def test_server_side_filters_scope_to_caller(self, authenticated):
        realtime = _realtime_client()

        with patch("bankportal.routes.realtime.get_realtime_client", AsyncMock(return_value=realtime)):
            with client.websocket_connect("/realtime", headers={"Authorization": "Bearer abc"}):
                pass

        filters = [
            opened.on_postgres_changes.call_args.kwargs.get("filter") for opened in realtime.opened
        ]
        assert filters == ["user_id=eq.test-user-id", None, "user_id=eq.test-user-id"]
        authenticated.assert_called_once_with("Bearer abc")
        assert realtime.remove_channel.await_count == 3

    def test_invalid_token_rejects_handshake(self):
        denied = HTTPException(
            status_code=401, detail={"error": "invalid_token", "details": "Invalid authentication token"}
        )

        with patch("bankportal.routes.realtime.authenticate_token", side_effect=denied):
            with pytest.raises(WebSocketDisconnect) as exc_info:
                with client.websocket_connect("/realtime?token=bad"):
                    pass

        assert exc_info.value.code == 1008

    def test_channel_failure_closes_and_releases_opened_channels(self, authenticated):
        realtime = _realtime_client(failing_table="transactions")

        with patch("bankportal.routes.realtime.get_realtime_client", AsyncMock(return_value=realtime)):
            with client.websocket_connect("/realtime?token=abc") as websocket:
                with pytest.raises(WebSocketDisconnect) as exc_info:
                    websocket.receive_json()

        assert exc_info.value.code == 1011
        # only the accounts channel was fully opened
        assert realtime.remove_channel.await_count == 1
