"""Admin endpoints for order fulfilment."""
from contextlib import aclosing
from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from supabase import Client
from typing import List, Optional
import logfire

from storefront.app.api.deps import get_order_feed
from storefront.core.exceptions import StorefrontError
from storefront.core.models.storefront_models import OrderModel, OrderStatus, UpdateOrderStatusRequest
from storefront.core.security.admin_auth import (
    AdminContext,
    authenticate_admin,
    get_websocket_admin_client,
    require_admin,
)
from storefront.core.service.order_service.fulfillment_service import FulfillmentService
from storefront.core.service.realtime.order_feed import OrderFeed
from storefront.core.service.supabase_connectors import orders_client

router = APIRouter()


@router.get("/", response_model=List[OrderModel])
async def list_orders(
    status: Optional[OrderStatus] = None,
    limit: Optional[int] = None,
    admin: AdminContext = Depends(require_admin)
):
    """List orders, newest first."""
    try:
        return orders_client.find_all_orders(admin.client, status=status.value if status else None, limit=limit)

    except Exception as e:
        logfire.error(f"Error listing orders: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{order_id}", response_model=OrderModel)
async def get_order(order_id: str, admin: AdminContext = Depends(require_admin)):
    """Get an order with the customer input."""
    try:
        order = orders_client.find_order_by_id(order_id, admin.client)

        if not order:
            raise HTTPException(status_code=404, detail="Order not found")

        return order

    except HTTPException:
        raise
    except Exception as e:
        logfire.error(f"Error fetching order: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/{order_id}/status", response_model=OrderModel)
async def update_order_status(
    order_id: str,
    request: UpdateOrderStatusRequest,
    admin: AdminContext = Depends(require_admin)
):
    """Change the status of an order. Rejecting refunds the token."""
    try:
        fulfillment = FulfillmentService(service_client=admin.client)

        return fulfillment.update_status(order_id, request.status, request.response_message)

    except StorefrontError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logfire.error(f"Error updating order {order_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{order_id}", response_model=dict)
async def delete_order(order_id: str, admin: AdminContext = Depends(require_admin)):
    """Delete an order."""
    try:
        FulfillmentService(service_client=admin.client).delete_order(order_id)

        return {"message": "Order deleted successfully"}

    except StorefrontError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logfire.error(f"Error deleting order {order_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.websocket("/feed")
async def new_orders_feed(
    websocket: WebSocket,
    access_token: str = Query(...),
    client: Client = Depends(get_websocket_admin_client),
    feed: OrderFeed = Depends(get_order_feed)
):
    """Push every new order to the dashboard as it is placed."""
    try:
        admin = authenticate_admin(access_token, client)
    except StorefrontError as e:
        await websocket.close(code=4401 if e.status_code == 401 else 4403, reason=e.message)
        return

    await websocket.accept()
    logfire.info(f"Admin {admin.user_id} subscribed to new orders")

    try:
        async with aclosing(feed.watch_new_orders()) as orders:
            async for order in orders:
                await websocket.send_json(OrderModel(**order).model_dump(mode="json", exclude={"password"}))
    except WebSocketDisconnect:
        logfire.debug(f"Admin {admin.user_id} left the order feed")
