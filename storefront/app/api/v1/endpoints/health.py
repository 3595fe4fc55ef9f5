"""
Health check endpoints.
"""
from fastapi import APIRouter
from typing import Dict, Any

from storefront.core.config.general_config import settings

router = APIRouter()


@router.get("/")
async def health_check() -> Dict[str, Any]:
    """
    Health check endpoint.
    """
    return {
        "status": "healthy",
        "message": "Service is running",
        "service": "storefront-api"
    }


@router.get("/detailed")
async def detailed_health_check() -> Dict[str, Any]:
    """
    Detailed health check endpoint.

    Reports which storefront features can work with the current settings,
    without contacting Supabase.
    """
    supabase_url = bool(settings.SUPABASE_URL)
    return {
        "status": "healthy" if supabase_url and settings.SUPABASE_SERVICE_ROLE_KEY else "degraded",
        "message": "Service is running",
        "service": "storefront-api",
        "version": settings.VERSION,
        "environment": "development" if settings.DEBUG else "production",
        "checks": {
            # checkout, catalog and the realtime feeds run on the service role
            "checkout": supabase_url and bool(settings.SUPABASE_SERVICE_ROLE_KEY),
            "realtime": supabase_url and bool(settings.SUPABASE_SERVICE_ROLE_KEY or settings.SUPABASE_KEY),
            "admin_dashboard": supabase_url and bool(settings.SUPABASE_KEY),
            "admin_signup": settings.ALLOW_ADMIN_SIGNUP,
        },
    }
