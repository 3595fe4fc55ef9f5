"""Security modules."""
from storefront.core.security.admin_auth import (
    AdminContext,
    require_admin,
)

__all__ = [
    "AdminContext",
    "require_admin",
]
