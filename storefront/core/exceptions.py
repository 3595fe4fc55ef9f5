"""Domain errors raised by the storefront services.

Each error carries the HTTP status code the API layer answers with, so the
endpoints can translate them without knowing every subclass.
"""
from decimal import Decimal
from typing import Optional


class StorefrontError(Exception):
    """Base class for all expected storefront failures."""

    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(StorefrontError):
    status_code = 404


class InvalidTokenError(StorefrontError):
    status_code = 404

    def __init__(self, message: str = "Token is not valid"):
        super().__init__(message)


class InsufficientBalanceError(StorefrontError):
    """The token balance does not cover the option price."""

    status_code = 402

    def __init__(self, balance: Decimal, required: Decimal):
        super().__init__(f"Insufficient balance: current balance is {balance}, required {required}")
        self.balance = balance
        self.required = required


class MissingOrderInputError(StorefrontError):
    status_code = 422

    def __init__(self, missing: list[str]):
        super().__init__(f"Missing required order input: {', '.join(missing)}")
        self.missing = missing


class OutOfStockError(StorefrontError):
    status_code = 409

    def __init__(self, option_id: str):
        super().__init__(f"Option {option_id} is out of stock")
        self.option_id = option_id


class ConcurrentUpdateError(StorefrontError):
    """A compare-and-set write matched no row because another request won."""

    status_code = 409


class InvalidStatusTransitionError(StorefrontError):
    status_code = 409

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot change order status from {current} to {requested}")
        self.current = current
        self.requested = requested


class AuthenticationError(StorefrontError):
    status_code = 401


class NotAdminError(StorefrontError):
    status_code = 403

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "This account does not have admin permissions")


class SignupDisabledError(StorefrontError):
    status_code = 403

    def __init__(self):
        super().__init__("Admin sign-up is disabled")
