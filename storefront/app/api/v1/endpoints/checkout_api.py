"""Checkout endpoints: balance, ordering and order status for token holders."""
from contextlib import aclosing
from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from typing import List, Optional
import logfire

from storefront.app.api.deps import get_checkout_service, get_order_feed
from storefront.core.exceptions import StorefrontError
from storefront.core.models.storefront_models import (
    OrderReceipt,
    OrderStatus,
    OrderStatusEvent,
    OrderStatusView,
    PlaceOrderRequest,
    TokenBalance,
    TokenRequest,
    VerifyPurchaseRequest,
)
from storefront.core.service.order_service.checkout_service import CheckoutService
from storefront.core.service.realtime.order_feed import OrderFeed

router = APIRouter()


def _status_message(order_id: str, status: OrderStatus, response_message: Optional[str]) -> dict:
    return {"id": order_id, "status": status.value, "response_message": response_message}


@router.post("/balance", response_model=TokenBalance)
async def show_balance(
    request: TokenRequest,
    checkout: CheckoutService = Depends(get_checkout_service)
):
    """Show the balance of a token."""
    try:
        return checkout.check_balance(request.token)

    except StorefrontError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logfire.error(f"Error checking balance: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/verify", response_model=TokenBalance)
async def verify_purchase(
    request: VerifyPurchaseRequest,
    checkout: CheckoutService = Depends(get_checkout_service)
):
    """Check that a token can pay for an option before the order details are entered."""
    try:
        return checkout.verify_purchase(request.token, request.option_id)

    except StorefrontError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logfire.error(f"Error verifying purchase: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/orders", response_model=OrderReceipt, status_code=201)
async def place_order(
    request: PlaceOrderRequest,
    checkout: CheckoutService = Depends(get_checkout_service)
):
    """Place an order paid with a token."""
    try:
        return checkout.place_order(request)

    except StorefrontError as e:
        logfire.info(f"Order rejected: {e.message}")
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logfire.error(f"Error placing order: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/orders", response_model=List[OrderStatusView])
async def list_token_orders(
    token: str = Query(...),
    checkout: CheckoutService = Depends(get_checkout_service)
):
    """List the orders paid with a token, newest first."""
    try:
        return checkout.list_orders_for_token(token)

    except StorefrontError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logfire.error(f"Error listing orders: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/orders/{order_id}", response_model=OrderStatusView)
async def get_order_status(
    order_id: str,
    token: str = Query(...),
    checkout: CheckoutService = Depends(get_checkout_service)
):
    """Get the status of an order paid with the given token."""
    try:
        return checkout.get_order_for_token(order_id, token)

    except StorefrontError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logfire.error(f"Error fetching order {order_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.websocket("/orders/{order_id}/watch")
async def watch_order(
    websocket: WebSocket,
    order_id: str,
    token: str = Query(...),
    checkout: CheckoutService = Depends(get_checkout_service),
    feed: OrderFeed = Depends(get_order_feed)
):
    """
    Push status changes of an order until it is completed or rejected.

    The channel is subscribed before the current status is read and sent, so a
    change made while the socket opens is not missed.
    """
    try:
        order = checkout.get_order_for_token(order_id, token)
    except StorefrontError as e:
        await websocket.close(code=4404, reason=e.message)
        return

    await websocket.accept()

    if order.status.is_terminal:
        # finished orders do not change any more
        await websocket.send_json(_status_message(order.id, order.status, order.response_message))
        await websocket.close()
        return

    def current_status() -> OrderStatusEvent:
        latest = checkout.get_order_for_token(order_id, token)
        return OrderStatusEvent(order_id=latest.id, status=latest.status,
                                response_message=latest.response_message)

    try:
        async with aclosing(feed.watch_order(order_id, current=current_status)) as events:
            async for event in events:
                await websocket.send_json(_status_message(event.order_id, event.status, event.response_message))
        await websocket.close()
    except WebSocketDisconnect:
        logfire.debug(f"Watcher of order {order_id} disconnected")
