from typing import List, Optional

import logfire
from supabase import Client

from storefront.core.exceptions import ConcurrentUpdateError, NotFoundError

ORDERS_TABLE_NAME = "orders"


def create_order(order_data: dict, service_client: Client) -> dict:
    """Insert a new order row.

    Args:
        order_data: Dictionary with order fields
        service_client: Supabase client instance

    Returns:
        The created order dictionary
    """
    logfire.info(f"Creating order for option {order_data.get('option_id')} with amount {order_data.get('amount')}")

    response = service_client.table(ORDERS_TABLE_NAME).insert(order_data).execute()

    if not response.data:
        raise ValueError("Failed to create order")

    return response.data[0]


def find_order_by_id(order_id: str, service_client: Client) -> Optional[dict]:
    logfire.debug(f"Finding order {order_id}")

    response = service_client.table(ORDERS_TABLE_NAME) \
        .select('*') \
        .eq('id', order_id) \
        .execute()

    if not response.data:
        return None

    return response.data[0]


def find_all_orders(service_client: Client, status: Optional[str] = None,
                    limit: Optional[int] = None) -> List[dict]:
    """Get orders, newest first.

    Args:
        service_client: Supabase client instance
        status: Only orders in this status
        limit: Optional limit on number of results

    Returns:
        List of order dictionaries
    """
    logfire.debug(f"Finding all orders (status={status}, limit={limit})")

    query = service_client.table(ORDERS_TABLE_NAME).select('*')
    if status:
        query = query.eq('status', status)
    query = query.order('created_at', desc=True)
    if limit:
        query = query.limit(limit)

    response = query.execute()

    return response.data or []


def find_orders_by_token_id(token_id: str, service_client: Client) -> List[dict]:
    logfire.debug(f"Finding orders of token {token_id}")

    response = service_client.table(ORDERS_TABLE_NAME) \
        .select('*') \
        .eq('token_id', token_id) \
        .order('created_at', desc=True) \
        .execute()

    return response.data or []


def update_order(order_id: str, order_data: dict, service_client: Client,
                 expected_status: Optional[str] = None) -> dict:
    """Update an order row.

    Args:
        order_id: ID of the order
        order_data: Columns to write
        service_client: Supabase client instance
        expected_status: Only write while the order still has this status

    Raises:
        NotFoundError: If the order does not exist
        ConcurrentUpdateError: If the order left expected_status before the write
    """
    logfire.info(f"Updating order {order_id}: {sorted(order_data)}")

    query = service_client.table(ORDERS_TABLE_NAME) \
        .update(order_data) \
        .eq('id', order_id)
    if expected_status is not None:
        query = query.eq('status', expected_status)

    response = query.execute()

    if not response.data:
        if expected_status is not None:
            raise ConcurrentUpdateError(f"Order {order_id} is no longer {expected_status}, please reload it")
        raise NotFoundError(f"Order {order_id} not found")

    return response.data[0]


def delete_order(order_id: str, service_client: Client) -> None:
    logfire.info(f"Deleting order {order_id}")

    service_client.table(ORDERS_TABLE_NAME) \
        .delete() \
        .eq('id', order_id) \
        .execute()
