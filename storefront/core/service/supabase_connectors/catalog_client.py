from collections import Counter, defaultdict
from typing import List, Optional

import logfire
from supabase import Client

from storefront.core.exceptions import NotFoundError
from storefront.core.service.supabase_connectors.stock_client import STOCK_ITEMS_TABLE_NAME

PRODUCTS_TABLE_NAME = "products"
PRODUCT_OPTIONS_TABLE_NAME = "product_options"


def find_all_products(service_client: Client, order_by: str = "name") -> List[dict]:
    """Get all products.

    Args:
        service_client: Supabase client instance
        order_by: Column to sort by. The storefront sorts by name, the dashboard by created_at

    Returns:
        List of product dictionaries
    """
    logfire.debug(f"Finding all products (order_by={order_by})")

    query = service_client.table(PRODUCTS_TABLE_NAME).select('*')
    if order_by == "created_at":
        query = query.order('created_at', desc=True)
    else:
        query = query.order(order_by)

    response = query.execute()

    return response.data or []


def find_product_by_id(product_id: str, service_client: Client) -> Optional[dict]:
    logfire.debug(f"Finding product {product_id}")

    response = service_client.table(PRODUCTS_TABLE_NAME) \
        .select('*') \
        .eq('id', product_id) \
        .execute()

    if not response.data:
        return None

    return response.data[0]


def create_product(product_data: dict, service_client: Client) -> str:
    """Create a new product.

    Args:
        product_data: Dictionary with product fields, name is required
        service_client: Supabase client instance

    Returns:
        ID of created product
    """
    if not (product_data.get('name') or '').strip():
        raise ValueError("Product name is required")

    logfire.info(f"Creating product {product_data['name']}")

    response = service_client.table(PRODUCTS_TABLE_NAME).insert(product_data).execute()

    if not response.data:
        raise ValueError("Failed to create product")

    return response.data[0]['id']


def update_product(product_id: str, product_data: dict, service_client: Client) -> dict:
    if 'name' in product_data and not (product_data['name'] or '').strip():
        raise ValueError("Product name is required")

    logfire.info(f"Updating product {product_id}")

    response = service_client.table(PRODUCTS_TABLE_NAME) \
        .update(product_data) \
        .eq('id', product_id) \
        .execute()

    if not response.data:
        raise NotFoundError(f"Product {product_id} not found")

    return response.data[0]


def delete_product(product_id: str, service_client: Client) -> None:
    logfire.info(f"Deleting product {product_id}")

    service_client.table(PRODUCTS_TABLE_NAME) \
        .delete() \
        .eq('id', product_id) \
        .execute()


def find_options(service_client: Client, product_id: Optional[str] = None) -> List[dict]:
    """Get product options, optionally only those of one product."""
    logfire.debug(f"Finding options (product_id={product_id})")

    query = service_client.table(PRODUCT_OPTIONS_TABLE_NAME).select('*')
    if product_id:
        query = query.eq('product_id', product_id)

    response = query.order('created_at').execute()

    return response.data or []


def find_option_by_id(option_id: str, service_client: Client) -> Optional[dict]:
    logfire.debug(f"Finding option {option_id}")

    response = service_client.table(PRODUCT_OPTIONS_TABLE_NAME) \
        .select('*') \
        .eq('id', option_id) \
        .execute()

    if not response.data:
        return None

    return response.data[0]


def create_option(product_id: str, option_data: dict, service_client: Client) -> str:
    """Create an option under a product.

    Args:
        product_id: ID of the owning product
        option_data: Dictionary with option fields, name is required
        service_client: Supabase client instance

    Returns:
        ID of created option
    """
    if not (option_data.get('name') or '').strip():
        raise ValueError("Option name is required")

    if find_product_by_id(product_id, service_client) is None:
        raise NotFoundError(f"Product {product_id} not found")

    data = {'price': '0.00', **option_data, 'product_id': product_id}

    logfire.info(f"Creating option {data['name']} for product {product_id}")

    response = service_client.table(PRODUCT_OPTIONS_TABLE_NAME).insert(data).execute()

    if not response.data:
        raise ValueError("Failed to create option")

    return response.data[0]['id']


def update_option(option_id: str, option_data: dict, service_client: Client) -> dict:
    if 'name' in option_data and not (option_data['name'] or '').strip():
        raise ValueError("Option name is required")

    logfire.info(f"Updating option {option_id}")

    response = service_client.table(PRODUCT_OPTIONS_TABLE_NAME) \
        .update(option_data) \
        .eq('id', option_id) \
        .execute()

    if not response.data:
        raise NotFoundError(f"Option {option_id} not found")

    return response.data[0]


def delete_option(option_id: str, service_client: Client) -> None:
    logfire.info(f"Deleting option {option_id}")

    service_client.table(PRODUCT_OPTIONS_TABLE_NAME) \
        .delete() \
        .eq('id', option_id) \
        .execute()


def build_catalog(service_client: Client) -> List[dict]:
    """Products sorted by name, each with its options and their free stock count.

    Args:
        service_client: Supabase client instance

    Returns:
        List of product dictionaries with an 'options' list
    """
    products = find_all_products(service_client)
    options = find_options(service_client)

    stock_response = service_client.table(STOCK_ITEMS_TABLE_NAME) \
        .select('option_id') \
        .eq('is_sold', False) \
        .execute()
    in_stock = Counter(item['option_id'] for item in stock_response.data or [])

    options_by_product = defaultdict(list)
    for option in options:
        options_by_product[option['product_id']].append({**option, 'in_stock': in_stock.get(option['id'], 0)})

    return [{**product, 'options': options_by_product.get(product['id'], [])} for product in products]
