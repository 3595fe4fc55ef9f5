import asyncio
from contextlib import aclosing

from storefront.core.models.storefront_models import OrderStatus, OrderStatusEvent
from storefront.core.service.realtime.order_feed import NEW_ORDERS_CHANNEL, OrderFeed, extract_record


def test_extract_record_from_both_payload_shapes():
    record = {"id": "o1", "status": "pending"}

    assert extract_record({"data": {"type": "UPDATE", "record": record}}) == record
    assert extract_record({"new": record}) == record
    assert extract_record({"data": {}}) == {}


def test_watch_order_stops_at_terminal_status(fake):
    """
    Only changes of the watched order are yielded, and the channel is removed once it is done.
    """
    fake.queue_change("UPDATE", "orders", {"id": "o1", "status": "in_progress"})
    fake.queue_change("UPDATE", "orders", {"id": "o2", "status": "rejected"})
    fake.queue_change("UPDATE", "orders", {"id": "o1", "status": "completed", "response_message": "done"})

    async def collect():
        return [event async for event in OrderFeed(fake).watch_order("o1")]

    events = asyncio.run(collect())

    assert [event.status for event in events] == [OrderStatus.IN_PROGRESS, OrderStatus.COMPLETED]
    assert events[-1].response_message == "done"
    assert events[-1].is_terminal

    channel = fake.channels[0]
    assert channel.name == "order-o1"
    assert channel.bindings[0]["filter"] == "id=eq.o1"
    assert channel.subscribed and channel.removed


def test_watch_order_skips_changes_without_status(fake):
    fake.queue_change("UPDATE", "orders", {"id": "o1"})
    fake.queue_change("UPDATE", "orders", {"id": "o1", "status": "rejected"})

    async def collect():
        return [event async for event in OrderFeed(fake).watch_order("o1")]

    assert [event.status for event in asyncio.run(collect())] == [OrderStatus.REJECTED]


def test_watch_order_reads_current_status_after_subscribing(fake):
    reads = []

    def current():
        reads.append(fake.channels[0].subscribed)
        return OrderStatusEvent(order_id="o1", status=OrderStatus.IN_PROGRESS)

    fake.queue_change("UPDATE", "orders", {"id": "o1", "status": "completed"})

    async def collect():
        return [event async for event in OrderFeed(fake).watch_order("o1", current=current)]

    events = asyncio.run(collect())

    assert reads == [True]
    assert [event.status for event in events] == [OrderStatus.IN_PROGRESS, OrderStatus.COMPLETED]


def test_watch_order_ends_when_current_status_is_final(fake):
    fake.queue_change("UPDATE", "orders", {"id": "o1", "status": "in_progress"})

    async def collect():
        current = lambda: OrderStatusEvent(order_id="o1", status=OrderStatus.REJECTED, response_message="no")
        return [event async for event in OrderFeed(fake).watch_order("o1", current=current)]

    events = asyncio.run(collect())

    assert [event.status for event in events] == [OrderStatus.REJECTED]
    assert fake.channels[0].removed


def test_watch_new_orders_only_sees_inserts(fake):
    fake.queue_change("UPDATE", "orders", {"id": "o1", "status": "completed"})
    fake.queue_change("INSERT", "orders", {"id": "o2", "status": "pending", "amount": "4.00"})

    async def first_new_order():
        async with aclosing(OrderFeed(fake).watch_new_orders()) as orders:
            async for order in orders:
                return order

    assert asyncio.run(first_new_order())["id"] == "o2"

    channel = fake.channels[0]
    assert channel.name == NEW_ORDERS_CHANNEL
    assert channel.removed
