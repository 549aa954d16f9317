"""
Realtime bridge over Supabase row-level change feeds.

Two stages:
1. ChangeFeed: the raw source. Subscribes to postgres_changes for one table,
   optionally with a server-side column filter.
2. A predicate: async callable deciding whether an event belongs to the
   current user. accounts and notifications are filtered server-side and use
   accept_all; transactions carry no user_id, so AccountOwnershipPredicate
   looks up the parent account. If the backend ever supports joined filters,
   only the predicate needs replacing.

Accepted events are handed to the caller's callback, typically LiveState.apply.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Union

from supabase import AsyncClient

from bankportal.db.operations import retry_operation

logger = logging.getLogger(__name__)

Predicate = Callable[["ChangeEvent"], Awaitable[bool]]
EventCallback = Callable[["ChangeEvent"], Any]


@dataclass
class ChangeEvent:
    """A normalized insert/update/delete event."""
    event_type: str
    table: Optional[str]
    new: Dict[str, Any] = field(default_factory=dict)
    old: Dict[str, Any] = field(default_factory=dict)

    @property
    def row(self) -> Dict[str, Any]:
        """The new row, or the old one for deletes."""
        return self.new or self.old

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ChangeEvent":
        """
        Build an event from a realtime payload.

        Accepts the realtime-py shape ({"data": {"type", "record", "old_record"}})
        and the flat shape ({"eventType", "new", "old"}).
        """
        data = payload.get("data", payload)
        event_type = data.get("type") or data.get("eventType") or payload.get("eventType") or ""
        new = data.get("record") if "record" in data else data.get("new")
        old = data.get("old_record") if "old_record" in data else data.get("old")
        return cls(
            event_type=str(event_type).upper(),
            table=data.get("table"),
            new=new or {},
            old=old or {},
        )


async def accept_all(event: ChangeEvent) -> bool:
    return True


class AccountOwnershipPredicate:
    """
    Accept transaction events whose parent account belongs to user_id.

    The account lookup is a read, so it is retried with backoff.
    """

    def __init__(self, client: AsyncClient, user_id: str):
        self.client = client
        self.user_id = user_id

    async def __call__(self, event: ChangeEvent) -> bool:
        account_id = event.new.get("account_id") or event.old.get("account_id")
        if account_id is None:
            return False

        async def lookup():
            return await (
                self.client.table("accounts")
                .select("user_id")
                .eq("id", account_id)
                .execute()
            )

        result = await retry_operation(lookup)

        if not result.data:
            return False

        return result.data[0].get("user_id") == self.user_id


class LiveState:
    """
    Locally held copy of subscribed data.

    List-shaped state gets each event's row prepended; anything else is
    replaced by the row. Once closed, events are dropped.
    """

    def __init__(self, initial: Union[List[Dict[str, Any]], Dict[str, Any], None] = None):
        self.value = initial
        self.closed = False

    def apply(self, event: ChangeEvent) -> None:
        if self.closed:
            logger.debug("Dropping realtime event for closed state")
            return
        if isinstance(self.value, list):
            self.value = [event.row, *self.value]
        else:
            self.value = event.row

    def close(self) -> None:
        self.closed = True


class RealtimeSubscription:
    """Handle to an open channel; unsubscribe() may be called any number of times."""

    def __init__(self, client: AsyncClient, channel: Any, name: str):
        self.client = client
        self.channel = channel
        self.name = name
        self.active = True
        self._pending: Set["asyncio.Task[Any]"] = set()

    def track(self, task: "asyncio.Task[Any]") -> None:
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def wait_pending(self) -> None:
        """Wait for events still being filtered."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        await self.client.remove_channel(self.channel)
        logger.info(f"Unsubscribed from realtime channel {self.name}")


class ChangeFeed:
    """Raw change source for one table, wired to a predicate and a callback."""

    def __init__(
        self,
        client: AsyncClient,
        channel_name: str,
        table: str,
        server_filter: Optional[str] = None,
        predicate: Predicate = accept_all,
        schema: str = "public",
    ):
        self.client = client
        self.channel_name = channel_name
        self.table = table
        self.server_filter = server_filter
        self.predicate = predicate
        self.schema = schema

    async def dispatch(
        self,
        payload: Dict[str, Any],
        callback: EventCallback,
        subscription: Optional[RealtimeSubscription] = None,
    ) -> bool:
        """
        Run one payload through the predicate and, if accepted, the callback.

        Returns:
            True if the callback was invoked
        """
        if subscription is not None and not subscription.active:
            return False

        event = ChangeEvent.from_payload(payload)
        try:
            accepted = await self.predicate(event)
        except Exception as e:
            logger.warning(f"Realtime filter failed on {self.table} event: {e}")
            return False

        if not accepted:
            return False
        if subscription is not None and not subscription.active:
            return False

        result = callback(event)
        if asyncio.iscoroutine(result):
            await result
        return True

    async def subscribe(self, callback: EventCallback) -> RealtimeSubscription:
        channel = self.client.channel(self.channel_name)
        subscription = RealtimeSubscription(self.client, channel, self.channel_name)

        def on_change(payload: Dict[str, Any]) -> None:
            task = asyncio.ensure_future(self.dispatch(payload, callback, subscription))
            subscription.track(task)

        options: Dict[str, Any] = {"schema": self.schema, "table": self.table}
        if self.server_filter:
            options["filter"] = self.server_filter

        channel.on_postgres_changes("*", callback=on_change, **options)
        await channel.subscribe()

        logger.info(f"Subscribed to realtime channel {self.channel_name} ({self.table})")

        return subscription


async def subscribe_to_user_transactions(
    client: AsyncClient,
    user_id: str,
    callback: EventCallback
) -> RealtimeSubscription:
    """Transaction events for accounts owned by user_id (filtered client-side)."""
    feed = ChangeFeed(
        client,
        "user-transactions",
        "transactions",
        predicate=AccountOwnershipPredicate(client, user_id),
    )
    return await feed.subscribe(callback)


async def subscribe_to_user_accounts(
    client: AsyncClient,
    user_id: str,
    callback: EventCallback
) -> RealtimeSubscription:
    feed = ChangeFeed(client, "user-accounts", "accounts", server_filter=f"user_id=eq.{user_id}")
    return await feed.subscribe(callback)


async def subscribe_to_user_notifications(
    client: AsyncClient,
    user_id: str,
    callback: EventCallback
) -> RealtimeSubscription:
    feed = ChangeFeed(
        client, "user-notifications", "notifications", server_filter=f"user_id=eq.{user_id}"
    )
    return await feed.subscribe(callback)
