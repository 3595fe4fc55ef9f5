from decimal import Decimal

import pytest

from decorators_E2E import test_with_mock_service as with_mock_service
from mock_service import FakeSupabaseClient

from storefront.core.exceptions import ConcurrentUpdateError, InsufficientBalanceError, NotFoundError
from storefront.core.service.supabase_connectors import tokens_client


def _set_balance(value: str):
    """before_update hook simulating another request writing the balance first."""
    def hook(service: FakeSupabaseClient):
        for row in service.tables["tokens"]:
            row["balance"] = value
    return hook


@with_mock_service(FakeSupabaseClient)
def test_find_token_by_value_ignores_whitespace(fake):
    token = fake.add_row("tokens", {"token": "ABC", "balance": "5.00"})

    found = tokens_client.find_token_by_value("  ABC \n", fake)

    assert found == {"id": token["id"], "balance": "5.00"}
    assert tokens_client.find_token_by_value("   ", fake) is None
    assert tokens_client.find_token_by_value("XYZ", fake) is None


def test_debit_balance_writes_new_balance(fake):
    token = fake.add_row("tokens", {"token": "ABC", "balance": "20.00"})

    new_balance = tokens_client.debit_balance(token, Decimal("4.50"), fake)

    assert new_balance == Decimal("15.50")
    assert fake.row("tokens", token["id"])["balance"] == "15.50"


def test_debit_balance_refuses_overdraft(fake):
    token = fake.add_row("tokens", {"token": "ABC", "balance": "3.00"})

    with pytest.raises(InsufficientBalanceError) as exc:
        tokens_client.debit_balance(token, Decimal("4.00"), fake)

    assert exc.value.balance == Decimal("3.00")
    assert exc.value.required == Decimal("4.00")
    assert fake.row("tokens", token["id"])["balance"] == "3.00"


def test_debit_balance_detects_concurrent_write(fake):
    """
    A balance changed between read and write must not be overwritten.
    """
    token = fake.add_row("tokens", {"token": "ABC", "balance": "20.00"})
    fake.before_update["tokens"] = _set_balance("1.00")

    with pytest.raises(ConcurrentUpdateError):
        tokens_client.debit_balance(token, Decimal("10.00"), fake)

    assert fake.row("tokens", token["id"])["balance"] == "1.00"


def test_credit_balance_rereads_after_conflict(fake):
    token = fake.add_row("tokens", {"token": "ABC", "balance": "20.00"})
    fake.before_update["tokens"] = _set_balance("5.00")

    new_balance = tokens_client.credit_balance(token["id"], Decimal("3.00"), fake, attempts=2)

    assert new_balance == Decimal("8.00")
    assert fake.row("tokens", token["id"])["balance"] == "8.00"


def test_credit_balance_gives_up_after_attempts(fake):
    token = fake.add_row("tokens", {"token": "ABC", "balance": "20.00"})
    fake.before_update["tokens"] = _set_balance("5.00")

    with pytest.raises(ConcurrentUpdateError):
        tokens_client.credit_balance(token["id"], Decimal("3.00"), fake, attempts=1)


def test_credit_balance_unknown_token(fake):
    with pytest.raises(NotFoundError):
        tokens_client.credit_balance("missing", Decimal("1.00"), fake)


def test_create_token_validation(fake):
    with pytest.raises(ValueError):
        tokens_client.create_token({"token": "  ", "balance": "1.00"}, fake)
    with pytest.raises(ValueError):
        tokens_client.create_token({"token": "ABC", "balance": "-1.00"}, fake)

    created = tokens_client.create_token({"token": "ABC", "balance": "1.00"}, fake)
    assert created["token"] == "ABC"


def test_update_unknown_token(fake):
    with pytest.raises(NotFoundError):
        tokens_client.update_token("missing", {"balance": "2.00"}, fake)


def test_generated_tokens_are_unique():
    values = {tokens_client.generate_token_value() for _ in range(50)}

    assert len(values) == 50
