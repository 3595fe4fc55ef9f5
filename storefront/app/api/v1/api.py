"""
Main API router that includes all endpoint routers.
"""
from fastapi import APIRouter

from storefront.app.api.v1.endpoints import (
    health,
    catalog_api,
    checkout_api,
    # Admin dashboard endpoints
    admin_auth_api,
    admin_catalog_api,
    admin_stock_api,
    admin_tokens_api,
    admin_orders_api,
)


api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(catalog_api.router, prefix="/catalog", tags=["catalog"])
api_router.include_router(checkout_api.router, prefix="/checkout", tags=["checkout"])

# Admin dashboard endpoints
api_router.include_router(admin_auth_api.router, prefix="/admin/auth", tags=["admin-auth"])
api_router.include_router(admin_catalog_api.router, prefix="/admin", tags=["admin-catalog"])
api_router.include_router(admin_stock_api.router, prefix="/admin/stock", tags=["admin-stock"])
api_router.include_router(admin_tokens_api.router, prefix="/admin/tokens", tags=["admin-tokens"])
api_router.include_router(admin_orders_api.router, prefix="/admin/orders", tags=["admin-orders"])
