"""Shared FastAPI dependencies."""
from supabase import Client

from fastapi import Depends

from storefront.core.service.order_service.checkout_service import CheckoutService
from storefront.core.service.realtime.order_feed import OrderFeed
from storefront.core.service.supabase_connectors.supabase_client import (
    get_async_supabase_client,
    get_supabase_anon_client,
    get_supabase_service_role_client,
)


def get_service_client() -> Client:
    return get_supabase_service_role_client()


def get_anon_client() -> Client:
    return get_supabase_anon_client()


def get_checkout_service(client: Client = Depends(get_service_client)) -> CheckoutService:
    return CheckoutService(service_client=client)


async def get_order_feed() -> OrderFeed:
    return OrderFeed(await get_async_supabase_client())
