"""Pydantic models for the storefront tables and API payloads."""
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Optional, List

from pydantic import BaseModel, Field, field_validator

CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Convert a numeric column value (int, float, str or Decimal) to a two-place Decimal."""
    if value is None:
        return Decimal("0.00")
    if isinstance(value, float):
        value = repr(value)
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def money_to_db(value: Decimal) -> str:
    """PostgREST accepts numeric columns as strings, which keeps the cents exact."""
    return str(to_money(value))


class OptionType(str, Enum):
    """Kind of input a customer must provide for an option."""
    EMAIL_PASSWORD = "email_password"
    LINK = "link"
    TEXT = "text"
    AUTO = "auto"

    @classmethod
    def parse(cls, value: Optional[str]) -> "OptionType":
        """Normalise the values stored by older dashboards."""
        if value is None or value == "":
            return cls.EMAIL_PASSWORD
        if isinstance(value, cls):
            return value
        return cls(LEGACY_OPTION_TYPES.get(value, value))


LEGACY_OPTION_TYPES = {
    "full_activation": "email_password",
    "student_verification": "link",
    "verification_bypass": "link",
    "none": "auto",
}


class OrderStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.COMPLETED, OrderStatus.REJECTED)


class ProductModel(BaseModel):
    """Model for the products table."""
    id: Optional[str] = None
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    price: Decimal = Decimal("0.00")
    duration: Optional[str] = None
    available: Optional[int] = None
    instant_delivery: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        extra = "ignore"

    @field_validator("price", mode="before")
    @classmethod
    def parse_price(cls, v):
        return to_money(v)

    @field_validator("instant_delivery", mode="before")
    @classmethod
    def parse_instant_delivery(cls, v):
        return bool(v)


class ProductOptionModel(BaseModel):
    """Model for the product_options table."""
    id: Optional[str] = None
    product_id: str
    name: str
    price: Decimal = Decimal("0.00")
    duration: Optional[str] = None
    available: Optional[int] = None
    type: OptionType = OptionType.EMAIL_PASSWORD
    estimated_time: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        extra = "ignore"

    @field_validator("price", mode="before")
    @classmethod
    def parse_price(cls, v):
        return to_money(v)

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, v):
        return OptionType.parse(v)


class StockItemModel(BaseModel):
    """Model for the stock_items table."""
    id: Optional[str] = None
    product_id: Optional[str] = None
    option_id: Optional[str] = None
    content: str
    is_sold: bool = False
    sold_at: Optional[datetime] = None
    sold_to_order_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        extra = "ignore"


class TokenModel(BaseModel):
    """Model for the tokens table."""
    id: Optional[str] = None
    token: str
    balance: Decimal = Decimal("0.00")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        extra = "ignore"

    @field_validator("balance", mode="before")
    @classmethod
    def parse_balance(cls, v):
        return to_money(v)


class OrderModel(BaseModel):
    """Model for the orders table."""
    id: Optional[str] = None
    token_id: Optional[str] = None
    product_id: Optional[str] = None
    option_id: Optional[str] = None
    amount: Decimal = Decimal("0.00")
    status: OrderStatus = OrderStatus.PENDING
    email: Optional[str] = None
    password: Optional[str] = None
    verification_link: Optional[str] = None
    text: Optional[str] = None
    response_message: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        extra = "ignore"

    @field_validator("amount", mode="before")
    @classmethod
    def parse_amount(cls, v):
        return to_money(v)


# Storefront views

class CatalogOption(ProductOptionModel):
    """An option as shown on the storefront, with its free stock count."""
    in_stock: int = 0


class CatalogProduct(ProductModel):
    options: List[CatalogOption] = []


class TokenBalance(BaseModel):
    token_id: str
    balance: Decimal


class OrderReceipt(BaseModel):
    """Result of a successful checkout."""
    order_id: str
    status: OrderStatus
    amount: Decimal
    balance: Decimal
    response_message: Optional[str] = None


class OrderStatusView(BaseModel):
    """What a customer may see about one of their orders."""
    id: str
    product_id: Optional[str] = None
    option_id: Optional[str] = None
    amount: Decimal
    status: OrderStatus
    response_message: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        extra = "ignore"

    @field_validator("amount", mode="before")
    @classmethod
    def parse_amount(cls, v):
        return to_money(v)


class OrderStatusEvent(BaseModel):
    """A status change pushed through the realtime feed."""
    order_id: str
    status: OrderStatus
    response_message: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


# Request models for API endpoints

class TokenRequest(BaseModel):
    token: str = Field(..., description="Opaque prepaid token")


class VerifyPurchaseRequest(BaseModel):
    token: str
    option_id: str


class PlaceOrderRequest(BaseModel):
    """Request model for placing an order with a token."""
    token: str
    product_id: str
    option_id: str
    email: Optional[str] = None
    password: Optional[str] = None
    verification_link: Optional[str] = None
    text: Optional[str] = None


class CreateProductRequest(BaseModel):
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    price: Decimal = Decimal("0")
    duration: Optional[str] = None
    available: Optional[int] = 0
    instant_delivery: bool = False


class UpdateProductRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    price: Optional[Decimal] = None
    duration: Optional[str] = None
    available: Optional[int] = None
    instant_delivery: Optional[bool] = None


class CreateOptionRequest(BaseModel):
    product_id: str
    name: str
    type: OptionType = OptionType.EMAIL_PASSWORD
    price: Decimal = Decimal("0")
    duration: Optional[str] = None
    available: Optional[int] = None
    estimated_time: Optional[str] = None
    description: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, v):
        return OptionType.parse(v)


class UpdateOptionRequest(BaseModel):
    name: Optional[str] = None
    type: Optional[OptionType] = None
    price: Optional[Decimal] = None
    duration: Optional[str] = None
    available: Optional[int] = None
    estimated_time: Optional[str] = None
    description: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, v):
        if v is None:
            return None
        return OptionType.parse(v)


class AddStockRequest(BaseModel):
    """Stock contents, either as a list or one item per line."""
    option_id: str
    items: List[str] = []
    bulk_text: Optional[str] = None

    def contents(self) -> List[str]:
        lines = list(self.items)
        if self.bulk_text:
            lines.extend(self.bulk_text.splitlines())
        return lines


class CreateTokenRequest(BaseModel):
    token: Optional[str] = None
    balance: Decimal = Decimal("0")


class UpdateTokenRequest(BaseModel):
    token: Optional[str] = None
    balance: Optional[Decimal] = None


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus
    response_message: Optional[str] = None


class AdminCredentials(BaseModel):
    email: str
    password: str
