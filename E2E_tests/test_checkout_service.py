from decimal import Decimal

import pytest
from postgrest.exceptions import APIError

from decorators_E2E import test_with_mock_service as with_mock_service
from mock_service import FakeSupabaseClient, seed_catalog

from storefront.core.exceptions import (
    ConcurrentUpdateError,
    InsufficientBalanceError,
    InvalidTokenError,
    MissingOrderInputError,
    NotFoundError,
    OutOfStockError,
)
from storefront.core.models.storefront_models import OptionType, OrderStatus, PlaceOrderRequest
from storefront.core.service.order_service.checkout_service import (
    REFUND_PENDING_MESSAGE,
    CheckoutService,
    collect_order_input,
)
from storefront.core.service.order_service.fulfillment_service import FulfillmentService


def _order(seeded, option: str, **fields) -> PlaceOrderRequest:
    product = seeded["instant_product"] if option == "instant" else seeded["product"]
    return PlaceOrderRequest(token="TOKEN-123", product_id=product["id"],
                             option_id=seeded["options"][option]["id"], **fields)


def _balance(fake, seeded) -> str:
    return fake.row("tokens", seeded["token"]["id"])["balance"]


def test_collect_order_input_keeps_only_required_fields():
    request = PlaceOrderRequest(token="t", product_id="p", option_id="o",
                                email=" me@example.com ", password="pw", text="ignored")

    values = collect_order_input(OptionType.EMAIL_PASSWORD, request)

    assert values == {"email": "me@example.com", "password": "pw", "verification_link": None, "text": None}


def test_collect_order_input_reports_all_missing_fields():
    request = PlaceOrderRequest(token="t", product_id="p", option_id="o", email="   ")

    with pytest.raises(MissingOrderInputError) as exc:
        collect_order_input(OptionType.EMAIL_PASSWORD, request)

    assert exc.value.missing == ["email", "password"]


@with_mock_service(FakeSupabaseClient, seed=seed_catalog)
def test_check_balance(fake, seeded):
    balance = CheckoutService(service_client=fake).check_balance(" TOKEN-123 ")

    assert balance.token_id == seeded["token"]["id"]
    assert balance.balance == Decimal("20.00")


@with_mock_service(FakeSupabaseClient, seed=seed_catalog)
def test_unknown_token(fake, seeded):
    with pytest.raises(InvalidTokenError):
        CheckoutService(service_client=fake).check_balance("NOPE")


def test_verify_purchase(fake, seeded):
    checkout = CheckoutService(service_client=fake)

    assert checkout.verify_purchase("TOKEN-123", seeded["options"]["email_password"]["id"]).balance == Decimal("20.00")

    fake.row("tokens", seeded["token"]["id"])["balance"] = "4.00"
    with pytest.raises(InsufficientBalanceError):
        checkout.verify_purchase("TOKEN-123", seeded["options"]["email_password"]["id"])
    with pytest.raises(NotFoundError):
        checkout.verify_purchase("TOKEN-123", "missing")


def test_manual_order_stays_pending(fake, seeded):
    """
    Options needing manual work are stored as pending with the customer input, and paid right away.
    """
    receipt = CheckoutService(service_client=fake).place_order(
        _order(seeded, "email_password", email="me@example.com", password="hunter2"))

    assert receipt.status == OrderStatus.PENDING
    assert receipt.amount == Decimal("10.00")
    assert receipt.balance == Decimal("10.00")
    assert _balance(fake, seeded) == "10.00"

    order = fake.row("orders", receipt.order_id)
    assert order["status"] == "pending"
    assert order["amount"] == "10.00"
    assert order["email"] == "me@example.com"
    assert order["password"] == "hunter2"
    assert order["verification_link"] is None
    assert order["token_id"] == seeded["token"]["id"]


def test_missing_input_writes_nothing(fake, seeded):
    with pytest.raises(MissingOrderInputError):
        CheckoutService(service_client=fake).place_order(_order(seeded, "link"))

    assert fake.tables.get("orders", []) == []
    assert _balance(fake, seeded) == "20.00"


def test_insufficient_balance_writes_nothing(fake, seeded):
    fake.row("tokens", seeded["token"]["id"])["balance"] = "3.00"

    with pytest.raises(InsufficientBalanceError):
        CheckoutService(service_client=fake).place_order(
            _order(seeded, "email_password", email="me@example.com", password="pw"))

    assert fake.tables.get("orders", []) == []


def test_auto_option_delivers_oldest_stock(fake, seeded):
    receipt = CheckoutService(service_client=fake).place_order(_order(seeded, "auto"))

    assert receipt.status == OrderStatus.COMPLETED
    assert receipt.response_message == "user1:pass1"
    assert receipt.balance == Decimal("16.00")

    order = fake.row("orders", receipt.order_id)
    assert order["status"] == "completed"
    assert order["response_message"] == "user1:pass1"

    item = fake.row("stock_items", seeded["stock"][0]["id"])
    assert item["is_sold"] is True
    assert item["sold_to_order_id"] == receipt.order_id


def test_instant_delivery_product_needs_no_input(fake, seeded):
    """
    The option of an instant delivery product has no type of its own, it still hands out stock.
    """
    receipt = CheckoutService(service_client=fake).place_order(_order(seeded, "instant"))

    assert receipt.status == OrderStatus.COMPLETED
    assert receipt.response_message == "KEY-AAAA"
    assert _balance(fake, seeded) == "18.00"


def test_out_of_stock_is_refused_before_payment(fake, seeded):
    for item in fake.tables["stock_items"]:
        item["is_sold"] = True

    with pytest.raises(OutOfStockError):
        CheckoutService(service_client=fake).place_order(_order(seeded, "auto"))

    assert fake.tables.get("orders", []) == []
    assert _balance(fake, seeded) == "20.00"


def test_stock_gone_after_payment_is_refunded(fake, seeded):
    """
    When a concurrent order takes the last items after the availability check, the order is rejected and refunded.
    """
    def sell_everything(service):
        for item in service.tables["stock_items"]:
            item["is_sold"] = True

    fake.before_update["stock_items"] = sell_everything

    receipt = CheckoutService(service_client=fake).place_order(_order(seeded, "auto"))

    assert receipt.status == OrderStatus.REJECTED
    assert receipt.balance == Decimal("20.00")
    assert _balance(fake, seeded) == "20.00"
    order = fake.row("orders", receipt.order_id)
    assert order["status"] == "rejected"
    assert "refunded" in order["response_message"]


def test_failed_debit_removes_order(fake, seeded):
    def spend_elsewhere(service):
        service.row("tokens", seeded["token"]["id"])["balance"] = "15.00"

    fake.before_update["tokens"] = spend_elsewhere

    with pytest.raises(ConcurrentUpdateError):
        CheckoutService(service_client=fake).place_order(_order(seeded, "text", text="please"))

    assert fake.tables["orders"] == []
    assert _balance(fake, seeded) == "15.00"


def _tokens_table_down(service):
    raise APIError({"message": "connection reset by peer", "code": "500"})


def test_debit_error_from_supabase_removes_order(fake, seeded):
    fake.before_update["tokens"] = _tokens_table_down

    with pytest.raises(APIError):
        CheckoutService(service_client=fake).place_order(_order(seeded, "text", text="please"))

    assert fake.tables["orders"] == []
    assert _balance(fake, seeded) == "20.00"


def test_failed_refund_after_stock_race_leaves_order_refundable(fake, seeded):
    """
    If the refund after a lost stock race fails, the paid order goes back to pending so an admin can reject it,
    and that reject refunds the token.
    """
    def sell_everything(service):
        for item in service.tables["stock_items"]:
            item["is_sold"] = True
        service.before_update["tokens"] = _tokens_table_down

    fake.before_update["stock_items"] = sell_everything

    with pytest.raises(APIError):
        CheckoutService(service_client=fake).place_order(_order(seeded, "auto"))

    [order] = fake.tables["orders"]
    assert order["status"] == "pending"
    assert order["response_message"] == REFUND_PENDING_MESSAGE
    assert _balance(fake, seeded) == "16.00"

    FulfillmentService(service_client=fake).update_status(order["id"], OrderStatus.REJECTED)

    assert _balance(fake, seeded) == "20.00"
    assert fake.row("orders", order["id"])["status"] == "rejected"


def test_option_must_belong_to_product(fake, seeded):
    request = PlaceOrderRequest(token="TOKEN-123", product_id=seeded["product"]["id"],
                                option_id=seeded["options"]["instant"]["id"])

    with pytest.raises(NotFoundError):
        CheckoutService(service_client=fake).place_order(request)


def test_orders_are_private_to_their_token(fake, seeded):
    checkout = CheckoutService(service_client=fake)
    first = checkout.place_order(_order(seeded, "text", text="first"))
    second = checkout.place_order(_order(seeded, "text", text="second"))
    fake.add_row("tokens", {"token": "OTHER", "balance": "0.00"})

    assert checkout.get_order_for_token(first.order_id, "TOKEN-123").status == OrderStatus.PENDING
    with pytest.raises(NotFoundError):
        checkout.get_order_for_token(first.order_id, "OTHER")

    assert [order.id for order in checkout.list_orders_for_token("TOKEN-123")] == [second.order_id, first.order_id]
    assert checkout.list_orders_for_token("OTHER") == []
