import pytest

from decorators_E2E import test_with_mock_service as with_mock_service
from mock_service import FakeSupabaseClient

from storefront.core.exceptions import NotFoundError
from storefront.core.service.supabase_connectors import catalog_client, stock_client


def test_build_catalog_sorted_with_stock_counts(fake, seeded):
    """
    The storefront lists products by name, each option with its free stock.
    """
    catalog = catalog_client.build_catalog(fake)

    assert [product["name"] for product in catalog] == ["Activation keys", "Streaming"]

    streaming = catalog[1]
    in_stock = {option["name"]: option["in_stock"] for option in streaming["options"]}
    assert in_stock == {
        "Full activation": 0,
        "Student verification": 0,
        "Custom request": 0,
        "Shared account": 2,
    }
    assert catalog[0]["options"][0]["in_stock"] == 1


def test_build_catalog_ignores_sold_items(fake, seeded):
    stock_client.claim_stock_item(seeded["options"]["auto"]["id"], "order-1", fake)

    streaming = catalog_client.build_catalog(fake)[1]
    auto = next(option for option in streaming["options"] if option["id"] == seeded["options"]["auto"]["id"])

    assert auto["in_stock"] == 1


def test_products_newest_first_for_dashboard(fake, seeded):
    products = catalog_client.find_all_products(fake, order_by="created_at")

    assert [product["name"] for product in products] == ["Activation keys", "Streaming"]
    assert products[0]["id"] == seeded["instant_product"]["id"]


@with_mock_service(FakeSupabaseClient)
def test_create_product_requires_name(fake):
    with pytest.raises(ValueError):
        catalog_client.create_product({"name": "  "}, fake)

    product_id = catalog_client.create_product({"name": "Music"}, fake)
    assert catalog_client.find_product_by_id(product_id, fake)["name"] == "Music"


@with_mock_service(FakeSupabaseClient)
def test_create_option_needs_existing_product(fake):
    with pytest.raises(NotFoundError):
        catalog_client.create_option("missing", {"name": "Monthly"}, fake)


def test_create_option_defaults_price(fake, seeded):
    option_id = catalog_client.create_option(seeded["product"]["id"], {"name": "Yearly", "type": "text"}, fake)

    option = catalog_client.find_option_by_id(option_id, fake)
    assert option["price"] == "0.00"
    assert option["product_id"] == seeded["product"]["id"]


def test_update_missing_rows(fake, seeded):
    with pytest.raises(NotFoundError):
        catalog_client.update_product("missing", {"name": "X"}, fake)
    with pytest.raises(NotFoundError):
        catalog_client.update_option("missing", {"name": "X"}, fake)
    with pytest.raises(ValueError):
        catalog_client.update_product(seeded["product"]["id"], {"name": ""}, fake)


def test_find_options_of_one_product(fake, seeded):
    options = catalog_client.find_options(fake, product_id=seeded["instant_product"]["id"])

    assert [option["id"] for option in options] == [seeded["options"]["instant"]["id"]]
