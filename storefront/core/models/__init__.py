"""Data models."""
from storefront.core.models.storefront_models import (
    OptionType,
    OrderStatus,
    ProductModel,
    ProductOptionModel,
    StockItemModel,
    TokenModel,
    OrderModel,
)

__all__ = [
    "OptionType",
    "OrderStatus",
    "ProductModel",
    "ProductOptionModel",
    "StockItemModel",
    "TokenModel",
    "OrderModel",
]
