"""Admin side of the order lifecycle."""
from typing import Optional

import logfire
from supabase import Client

from storefront.core.config.general_config import settings
from storefront.core.exceptions import InvalidStatusTransitionError, NotFoundError
from storefront.core.models.storefront_models import OrderStatus, to_money
from storefront.core.service.supabase_connectors import orders_client, stock_client, tokens_client
from storefront.core.service.supabase_connectors.supabase_client import get_supabase_service_role_client

ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.IN_PROGRESS, OrderStatus.COMPLETED, OrderStatus.REJECTED},
    OrderStatus.IN_PROGRESS: {OrderStatus.PENDING, OrderStatus.COMPLETED, OrderStatus.REJECTED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.REJECTED: set(),
}


def check_transition(current: OrderStatus, requested: OrderStatus) -> None:
    if requested == current:
        return
    if requested not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStatusTransitionError(current.value, requested.value)


class FulfillmentService:
    """Moves orders through pending, in_progress, completed and rejected."""

    def __init__(self, service_client: Optional[Client] = None):
        self.supabase = service_client or get_supabase_service_role_client()

    def update_status(self, order_id: str, status: OrderStatus,
                      response_message: Optional[str] = None) -> dict:
        """
        Change the status of an order.

        The write only matches while the order still has the status that was
        read, so of two admins handling the same order only one wins. Rejecting
        an order gives its amount back to the token and puts a stock item sold
        to it back on the shelf. When the refund fails the previous status is
        restored, so the reject can be retried.

        Args:
            order_id: ID of the order
            status: The new status
            response_message: Message for the customer, an empty string clears it

        Returns:
            The updated order dictionary

        Raises:
            ConcurrentUpdateError: If the order changed since it was read
        """
        order = orders_client.find_order_by_id(order_id, self.supabase)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")

        current = OrderStatus(order['status'])
        check_transition(current, status)

        update_data = {'status': status.value}
        if response_message is not None:
            update_data['response_message'] = response_message or None

        updated = orders_client.update_order(order_id, update_data, self.supabase,
                                             expected_status=current.value)
        logfire.info(f"Order {order_id} moved from {current.value} to {status.value}")

        if status == OrderStatus.REJECTED and current != OrderStatus.REJECTED:
            try:
                self._refund(order)
            except Exception:
                logfire.error(f"Refund of order {order_id} failed, restoring status {current.value}")
                orders_client.update_order(order_id, {
                    'status': current.value,
                    'response_message': order.get('response_message'),
                }, self.supabase, expected_status=OrderStatus.REJECTED.value)
                raise

        return updated

    def _refund(self, order: dict) -> None:
        # credit last
        item = stock_client.find_stock_item_for_order(order['id'], self.supabase)
        if item is not None:
            stock_client.release_stock_item(item['id'], self.supabase)

        amount = to_money(order.get('amount'))
        token_id = order.get('token_id')

        if token_id and amount > 0:
            try:
                tokens_client.credit_balance(token_id, amount, self.supabase,
                                             attempts=settings.BALANCE_UPDATE_ATTEMPTS)
            except NotFoundError:
                logfire.warning(f"Token {token_id} of rejected order {order['id']} no longer exists, no refund")

    def delete_order(self, order_id: str) -> None:
        if orders_client.find_order_by_id(order_id, self.supabase) is None:
            raise NotFoundError(f"Order {order_id} not found")
        orders_client.delete_order(order_id, self.supabase)
