from datetime import datetime, timezone
from typing import List, Optional

import logfire
from supabase import Client

from storefront.core.exceptions import NotFoundError

STOCK_ITEMS_TABLE_NAME = "stock_items"


def add_stock_items(option: dict, contents: List[str], service_client: Client) -> List[dict]:
    """Add pre-provisioned items (credentials, keys, text) for an option.

    Args:
        option: The option row the items belong to
        contents: One entry per stock item, blank entries are skipped
        service_client: Supabase client instance

    Returns:
        List of created stock item dictionaries
    """
    rows = [
        {
            'product_id': option.get('product_id'),
            'option_id': option['id'],
            'content': content.strip(),
            'is_sold': False,
        }
        for content in contents
        if content and content.strip()
    ]

    if not rows:
        raise ValueError("No stock content given")

    logfire.info(f"Adding {len(rows)} stock items to option {option['id']}")

    response = service_client.table(STOCK_ITEMS_TABLE_NAME).insert(rows).execute()

    return response.data or []


def find_stock_items(service_client: Client, option_id: Optional[str] = None,
                     include_sold: bool = False) -> List[dict]:
    logfire.debug(f"Finding stock items (option_id={option_id}, include_sold={include_sold})")

    query = service_client.table(STOCK_ITEMS_TABLE_NAME).select('*')
    if option_id:
        query = query.eq('option_id', option_id)
    if not include_sold:
        query = query.eq('is_sold', False)

    response = query.order('created_at').execute()

    return response.data or []


def count_available(option_id: str, service_client: Client) -> int:
    """Number of unsold stock items of an option."""
    response = service_client.table(STOCK_ITEMS_TABLE_NAME) \
        .select('id', count='exact') \
        .eq('option_id', option_id) \
        .eq('is_sold', False) \
        .execute()

    if response.count is not None:
        return response.count
    return len(response.data or [])


def claim_stock_item(option_id: str, order_id: str, service_client: Client, attempts: int = 3) -> Optional[dict]:
    """Mark the oldest unsold item of an option as sold to an order.

    The update only matches while the item is still unsold, so two orders can
    never receive the same item. When another order wins the race the next
    free item is tried.

    Args:
        option_id: ID of the option to take stock from
        order_id: ID of the order the item is sold to
        service_client: Supabase client instance
        attempts: How many items to try before giving up

    Returns:
        The claimed stock item, or None if the option has no free stock
    """
    for _ in range(attempts):
        candidate = service_client.table(STOCK_ITEMS_TABLE_NAME) \
            .select('*') \
            .eq('option_id', option_id) \
            .eq('is_sold', False) \
            .order('created_at') \
            .limit(1) \
            .execute()

        if not candidate.data:
            logfire.warning(f"No free stock left for option {option_id}")
            return None

        item_id = candidate.data[0]['id']
        response = service_client.table(STOCK_ITEMS_TABLE_NAME) \
            .update({
                'is_sold': True,
                'sold_at': datetime.now(timezone.utc).isoformat(),
                'sold_to_order_id': order_id,
            }) \
            .eq('id', item_id) \
            .eq('is_sold', False) \
            .execute()

        if response.data:
            logfire.info(f"Stock item {item_id} sold to order {order_id}")
            return response.data[0]

        logfire.debug(f"Stock item {item_id} was taken by another order, retrying")

    logfire.warning(f"Could not claim stock for order {order_id} after {attempts} attempts")
    return None


def find_stock_item_for_order(order_id: str, service_client: Client) -> Optional[dict]:
    response = service_client.table(STOCK_ITEMS_TABLE_NAME) \
        .select('*') \
        .eq('sold_to_order_id', order_id) \
        .execute()

    if not response.data:
        return None

    return response.data[0]


def release_stock_item(item_id: str, service_client: Client) -> dict:
    """Put a sold item back on the shelf."""
    logfire.info(f"Releasing stock item {item_id}")

    response = service_client.table(STOCK_ITEMS_TABLE_NAME) \
        .update({'is_sold': False, 'sold_at': None, 'sold_to_order_id': None}) \
        .eq('id', item_id) \
        .execute()

    if not response.data:
        raise NotFoundError(f"Stock item {item_id} not found")

    return response.data[0]


def delete_stock_item(item_id: str, service_client: Client) -> None:
    logfire.info(f"Deleting stock item {item_id}")

    service_client.table(STOCK_ITEMS_TABLE_NAME) \
        .delete() \
        .eq('id', item_id) \
        .execute()
