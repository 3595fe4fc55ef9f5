"""Realtime order events from the Supabase change feed."""
import asyncio
from typing import Any, AsyncIterator, Callable, Dict, Optional

import logfire
from supabase import AsyncClient

from storefront.core.models.storefront_models import OrderStatus, OrderStatusEvent
from storefront.core.service.supabase_connectors.orders_client import ORDERS_TABLE_NAME

ORDERS_SCHEMA = "public"
NEW_ORDERS_CHANNEL = "new-orders"


def extract_record(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Get the new row out of a postgres_changes payload.

    The realtime client wraps the row as payload["data"]["record"]; older
    clients deliver it flat as payload["new"].
    """
    data = payload.get("data", payload)
    return data.get("record") or data.get("new") or {}


class OrderFeed:
    """Turns realtime channel callbacks into async iterators of order events."""

    def __init__(self, async_client: AsyncClient):
        self.client = async_client

    @staticmethod
    def _on_subscribe(channel_name: str):
        def callback(status, error: Optional[Exception] = None):
            if error is not None:
                logfire.error(f"Realtime subscription {channel_name} failed: {error}")
            else:
                logfire.debug(f"Realtime subscription {channel_name}: {status}")
        return callback

    async def _listen(self, channel_name: str, event: str, filter: Optional[str] = None):
        queue: asyncio.Queue = asyncio.Queue()

        channel = self.client.channel(channel_name)
        channel.on_postgres_changes(
            event,
            schema=ORDERS_SCHEMA,
            table=ORDERS_TABLE_NAME,
            filter=filter,
            callback=queue.put_nowait,
        )
        await channel.subscribe(self._on_subscribe(channel_name))
        return channel, queue

    async def watch_order(self, order_id: str,
                          current: Optional[Callable[[], OrderStatusEvent]] = None) -> AsyncIterator[OrderStatusEvent]:
        """
        Yield the status changes of one order until it is completed or rejected.

        Args:
            order_id: ID of the order to watch
            current: Reads the status as stored now. It is called once the
                channel is subscribed and its event is yielded first, so a
                change made before the subscription is not lost.

        Yields:
            OrderStatusEvent for every UPDATE of the order row
        """
        channel, queue = await self._listen(f"order-{order_id}", "UPDATE", filter=f"id=eq.{order_id}")
        try:
            if current is not None:
                event = current()
                yield event
                if event.is_terminal:
                    return
            while True:
                record = extract_record(await queue.get())
                if not record.get("status"):
                    continue
                event = OrderStatusEvent(
                    order_id=str(record.get("id", order_id)),
                    status=OrderStatus(record["status"]),
                    response_message=record.get("response_message"),
                )
                logfire.debug(f"Order {order_id} changed to {event.status.value}")
                yield event
                if event.is_terminal:
                    break
        finally:
            await self.client.remove_channel(channel)

    async def watch_new_orders(self) -> AsyncIterator[dict]:
        """Yield every order row inserted while the iterator is open."""
        channel, queue = await self._listen(NEW_ORDERS_CHANNEL, "INSERT")
        try:
            while True:
                record = extract_record(await queue.get())
                if record:
                    logfire.info(f"New order {record.get('id')} with amount {record.get('amount')}")
                    yield record
        finally:
            await self.client.remove_channel(channel)
