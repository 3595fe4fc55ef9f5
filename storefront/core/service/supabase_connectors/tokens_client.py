import secrets
from decimal import Decimal
from typing import List, Optional

import logfire
from supabase import Client

from storefront.core.exceptions import ConcurrentUpdateError, InsufficientBalanceError, NotFoundError
from storefront.core.models.storefront_models import money_to_db, to_money

TOKENS_TABLE_NAME = "tokens"
GENERATED_TOKEN_BYTES = 12


def generate_token_value() -> str:
    """Random opaque token for the dashboard's "generate" button."""
    return secrets.token_urlsafe(GENERATED_TOKEN_BYTES)


def find_token_by_value(token_value: str, service_client: Client) -> Optional[dict]:
    """Look a token up by its opaque string.

    Args:
        token_value: Token as typed by the customer, surrounding whitespace is ignored
        service_client: Supabase client instance

    Returns:
        Dictionary with id and balance, or None if the token does not exist
    """
    token_value = (token_value or "").strip()
    if not token_value:
        return None

    response = service_client.table(TOKENS_TABLE_NAME) \
        .select('id, balance') \
        .eq('token', token_value) \
        .maybe_single() \
        .execute()

    # maybe_single() returns no response object at all when nothing matched
    if response is None or not response.data:
        return None

    return response.data


def find_token_by_id(token_id: str, service_client: Client) -> Optional[dict]:
    response = service_client.table(TOKENS_TABLE_NAME) \
        .select('*') \
        .eq('id', token_id) \
        .execute()

    if not response.data:
        return None

    return response.data[0]


def find_all_tokens(service_client: Client) -> List[dict]:
    logfire.debug("Finding all tokens")

    response = service_client.table(TOKENS_TABLE_NAME) \
        .select('*') \
        .order('created_at', desc=True) \
        .execute()

    return response.data or []


def create_token(token_data: dict, service_client: Client) -> dict:
    if not (token_data.get('token') or '').strip():
        raise ValueError("Token value is required")
    if to_money(token_data.get('balance')) < 0:
        raise ValueError("Balance cannot be negative")

    logfire.info("Creating token")

    response = service_client.table(TOKENS_TABLE_NAME).insert(token_data).execute()

    if not response.data:
        raise ValueError("Failed to create token")

    return response.data[0]


def update_token(token_id: str, token_data: dict, service_client: Client) -> dict:
    if 'token' in token_data and not (token_data['token'] or '').strip():
        raise ValueError("Token value is required")
    if 'balance' in token_data and to_money(token_data['balance']) < 0:
        raise ValueError("Balance cannot be negative")

    logfire.info(f"Updating token {token_id}")

    response = service_client.table(TOKENS_TABLE_NAME) \
        .update(token_data) \
        .eq('id', token_id) \
        .execute()

    if not response.data:
        raise NotFoundError(f"Token {token_id} not found")

    return response.data[0]


def delete_token(token_id: str, service_client: Client) -> None:
    logfire.info(f"Deleting token {token_id}")

    service_client.table(TOKENS_TABLE_NAME) \
        .delete() \
        .eq('id', token_id) \
        .execute()


def _swap_balance(token_id: str, expected_raw, new_balance: Decimal, service_client: Client) -> bool:
    """Write the new balance only if the stored one is still the value we read."""
    response = service_client.table(TOKENS_TABLE_NAME) \
        .update({'balance': money_to_db(new_balance)}) \
        .eq('id', token_id) \
        .eq('balance', expected_raw) \
        .execute()

    return bool(response.data)


def debit_balance(token: dict, amount: Decimal, service_client: Client) -> Decimal:
    """Take an amount from a token balance.

    Args:
        token: Token row as read during checkout (id and balance)
        amount: Amount to take
        service_client: Supabase client instance

    Returns:
        The new balance

    Raises:
        InsufficientBalanceError: If the balance does not cover the amount
        ConcurrentUpdateError: If the balance changed since it was read
    """
    balance = to_money(token['balance'])
    amount = to_money(amount)

    if balance < amount:
        raise InsufficientBalanceError(balance=balance, required=amount)

    new_balance = balance - amount
    if not _swap_balance(token['id'], token['balance'], new_balance, service_client):
        logfire.warning(f"Balance of token {token['id']} changed during checkout")
        raise ConcurrentUpdateError("Token balance changed while the order was being placed, please retry")

    logfire.info(f"Debited {amount} from token {token['id']}, new balance {new_balance}")
    return new_balance


def credit_balance(token_id: str, amount: Decimal, service_client: Client, attempts: int = 3) -> Decimal:
    """Give an amount back to a token, rereading the balance if a concurrent write wins.

    Returns:
        The new balance
    """
    amount = to_money(amount)

    for _ in range(attempts):
        token = find_token_by_id(token_id, service_client)
        if token is None:
            raise NotFoundError(f"Token {token_id} not found")

        new_balance = to_money(token['balance']) + amount
        if _swap_balance(token_id, token['balance'], new_balance, service_client):
            logfire.info(f"Credited {amount} to token {token_id}, new balance {new_balance}")
            return new_balance

    raise ConcurrentUpdateError(f"Could not credit token {token_id}, balance kept changing")
