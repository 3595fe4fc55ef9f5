"""Admin dashboard sign-in, sign-up and sign-out."""
from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from supabase import Client
import logfire

from storefront.app.api.deps import get_anon_client, get_service_client
from storefront.core.exceptions import StorefrontError
from storefront.core.models.storefront_models import AdminCredentials
from storefront.core.security.admin_auth import (
    AdminContext,
    require_admin,
    sign_in_admin,
    sign_up_admin,
)

router = APIRouter()


@router.post("/sign-in")
def sign_in(
    form: OAuth2PasswordRequestForm = Depends(),
    client: Client = Depends(get_anon_client)
):
    """Sign an admin in and return the access token.

    Takes the OAuth2 password form so the interactive docs can authorise with it.
    """
    try:
        return sign_in_admin(form.username, form.password, client)

    except StorefrontError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logfire.error(f"Error signing in: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/sign-up", status_code=201)
def sign_up(
    request: AdminCredentials,
    client: Client = Depends(get_anon_client),
    service_client: Client = Depends(get_service_client)
):
    """Create an admin account, only when ALLOW_ADMIN_SIGNUP is enabled."""
    try:
        return sign_up_admin(request.email, request.password, client, service_client)

    except StorefrontError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logfire.error(f"Error signing up: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/sign-out")
def sign_out(
    admin: AdminContext = Depends(require_admin),
    service_client: Client = Depends(get_service_client)
):
    """End the admin session."""
    try:
        service_client.auth.admin.sign_out(admin.access_token)
        logfire.info(f"Admin {admin.user_id} signed out")
        return {"message": "Signed out"}

    except Exception as e:
        logfire.error(f"Error signing out: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/me")
def who_am_i(admin: AdminContext = Depends(require_admin)):
    """Session check used by the dashboard on load."""
    return {"user_id": admin.user_id, "email": admin.email}
