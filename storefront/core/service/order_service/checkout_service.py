"""Customer checkout: token redemption for product options."""
from decimal import Decimal
from typing import List, Optional

import logfire
from supabase import Client

from storefront.core.config.general_config import settings
from storefront.core.exceptions import (
    InsufficientBalanceError,
    InvalidTokenError,
    MissingOrderInputError,
    NotFoundError,
    OutOfStockError,
    StorefrontError,
)
from storefront.core.models.storefront_models import (
    OptionType,
    OrderReceipt,
    OrderStatus,
    OrderStatusView,
    PlaceOrderRequest,
    TokenBalance,
    money_to_db,
    to_money,
)
from storefront.core.service.supabase_connectors import (
    catalog_client,
    orders_client,
    stock_client,
    tokens_client,
)
from storefront.core.service.supabase_connectors.supabase_client import get_supabase_service_role_client

# Order columns each option type fills in, all others are stored as NULL
REQUIRED_INPUT = {
    OptionType.EMAIL_PASSWORD: ("email", "password"),
    OptionType.LINK: ("verification_link",),
    OptionType.TEXT: ("text",),
    OptionType.AUTO: (),
}
INPUT_FIELDS = ("email", "password", "verification_link", "text")

OUT_OF_STOCK_MESSAGE = "Out of stock, the amount was refunded"
REFUND_PENDING_MESSAGE = "Out of stock, the refund is being processed"


def collect_order_input(option_type: OptionType, request: PlaceOrderRequest) -> dict:
    """Pick the customer input an option type needs.

    Args:
        option_type: Type of the purchased option
        request: The order request

    Returns:
        Dictionary with every input column, unused ones set to None

    Raises:
        MissingOrderInputError: If a required field is missing or blank
    """
    required = REQUIRED_INPUT[option_type]
    values = {}
    missing = []
    for field in INPUT_FIELDS:
        value = getattr(request, field)
        value = value.strip() if value else None
        if field in required:
            if not value:
                missing.append(field)
            values[field] = value
        else:
            values[field] = None

    if missing:
        raise MissingOrderInputError(missing)

    return values


class CheckoutService:
    """Places orders against a prepaid token balance."""

    def __init__(self, service_client: Optional[Client] = None):
        self.supabase = service_client or get_supabase_service_role_client()

    def _resolve_token(self, token_value: str) -> dict:
        token = tokens_client.find_token_by_value(token_value, self.supabase)
        if token is None:
            logfire.info("Rejected unknown token")
            raise InvalidTokenError()
        return token

    def check_balance(self, token_value: str) -> TokenBalance:
        token = self._resolve_token(token_value)
        return TokenBalance(token_id=token['id'], balance=to_money(token['balance']))

    def verify_purchase(self, token_value: str, option_id: str) -> TokenBalance:
        """Check that a token exists and covers an option, before details are collected."""
        token = self._resolve_token(token_value)
        option = catalog_client.find_option_by_id(option_id, self.supabase)
        if option is None:
            raise NotFoundError(f"Option {option_id} not found")

        balance = to_money(token['balance'])
        price = to_money(option['price'])
        if balance < price:
            raise InsufficientBalanceError(balance=balance, required=price)

        return TokenBalance(token_id=token['id'], balance=balance)

    def place_order(self, request: PlaceOrderRequest) -> OrderReceipt:
        """
        Create an order paid with a token.

        The order is written as pending and the balance debited. Options that
        deliver from stock are completed immediately with the content of the
        claimed stock item.

        Args:
            request: Token, product, option and the customer input

        Returns:
            OrderReceipt with the order id, status and the new balance
        """
        token = self._resolve_token(request.token)

        product = catalog_client.find_product_by_id(request.product_id, self.supabase)
        if product is None:
            raise NotFoundError(f"Product {request.product_id} not found")

        option = catalog_client.find_option_by_id(request.option_id, self.supabase)
        if option is None or option.get('product_id') != product['id']:
            raise NotFoundError(f"Option {request.option_id} not found for product {product['id']}")

        # instant delivery products hand out stock whatever the option type says
        if product.get('instant_delivery'):
            option_type = OptionType.AUTO
        else:
            option_type = OptionType.parse(option.get('type'))
        order_input = collect_order_input(option_type, request)

        price = to_money(option['price'])
        balance = to_money(token['balance'])
        if balance < price:
            raise InsufficientBalanceError(balance=balance, required=price)

        auto_delivery = option_type == OptionType.AUTO
        if auto_delivery and stock_client.count_available(option['id'], self.supabase) == 0:
            raise OutOfStockError(option['id'])

        order = orders_client.create_order({
            'token_id': token['id'],
            'product_id': product['id'],
            'option_id': option['id'],
            'amount': money_to_db(price),
            'status': OrderStatus.PENDING.value,
            **order_input,
        }, self.supabase)

        try:
            new_balance = tokens_client.debit_balance(token, price, self.supabase)
        except Exception:
            # nothing was charged, the order must not stay behind
            orders_client.delete_order(order['id'], self.supabase)
            raise

        logfire.info(f"Order {order['id']} placed for option {option['id']}, amount {price}")

        if not auto_delivery:
            return OrderReceipt(order_id=order['id'], status=OrderStatus.PENDING,
                                amount=price, balance=new_balance)

        return self._deliver_from_stock(order, option, price, new_balance)

    def _deliver_from_stock(self, order: dict, option: dict, price: Decimal, balance: Decimal) -> OrderReceipt:
        item = stock_client.claim_stock_item(option['id'], order['id'], self.supabase,
                                             attempts=settings.STOCK_CLAIM_ATTEMPTS)

        if item is None:
            # the last item went to a concurrent order after our availability check
            orders_client.update_order(order['id'], {
                'status': OrderStatus.REJECTED.value,
                'response_message': OUT_OF_STOCK_MESSAGE,
            }, self.supabase, expected_status=OrderStatus.PENDING.value)
            try:
                new_balance = tokens_client.credit_balance(order['token_id'], price, self.supabase,
                                                           attempts=settings.BALANCE_UPDATE_ATTEMPTS)
            except Exception:
                # back to pending and paid, rejecting it from the dashboard refunds the token
                logfire.error(f"Refund of order {order['id']} failed after stock ran out")
                orders_client.update_order(order['id'], {
                    'status': OrderStatus.PENDING.value,
                    'response_message': REFUND_PENDING_MESSAGE,
                }, self.supabase, expected_status=OrderStatus.REJECTED.value)
                raise
            logfire.warning(f"Order {order['id']} rejected, stock ran out during checkout")
            return OrderReceipt(order_id=order['id'], status=OrderStatus.REJECTED, amount=price,
                                balance=new_balance, response_message=OUT_OF_STOCK_MESSAGE)

        orders_client.update_order(order['id'], {
            'status': OrderStatus.COMPLETED.value,
            'response_message': item['content'],
        }, self.supabase)
        logfire.info(f"Order {order['id']} delivered from stock item {item['id']}")

        return OrderReceipt(order_id=order['id'], status=OrderStatus.COMPLETED, amount=price,
                            balance=balance, response_message=item['content'])

    def get_order_for_token(self, order_id: str, token_value: str) -> OrderStatusView:
        """An order as seen by the token that paid for it."""
        token = self._resolve_token(token_value)
        order = orders_client.find_order_by_id(order_id, self.supabase)
        if order is None or order.get('token_id') != token['id']:
            raise NotFoundError(f"Order {order_id} not found")
        return OrderStatusView(**order)

    def list_orders_for_token(self, token_value: str) -> List[OrderStatusView]:
        token = self._resolve_token(token_value)
        orders = orders_client.find_orders_by_token_id(token['id'], self.supabase)
        return [OrderStatusView(**order) for order in orders]
