"""Admin dashboard access: Supabase session plus the admin role."""
from dataclasses import dataclass

import logfire
from fastapi import Depends, HTTPException, Query
from fastapi.security import OAuth2PasswordBearer
from supabase import Client
from supabase_auth.errors import AuthError

from storefront.core.config.general_config import settings
from storefront.core.exceptions import AuthenticationError, NotAdminError, SignupDisabledError
from storefront.core.service.supabase_connectors.roles_client import grant_role, has_role
from storefront.core.service.supabase_connectors.supabase_client import get_supabase_client, sign_in_with_password

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/admin/auth/sign-in")


@dataclass
class AdminContext:
    """The signed-in admin and a client acting on their behalf."""
    user_id: str
    email: str | None
    access_token: str
    client: Client


def authenticate_admin(token: str, client: Client) -> AdminContext:
    """
    Resolve a bearer token to an admin.

    Args:
        token: Supabase access token (JWT)
        client: Client to run the user and role lookups with

    Returns:
        AdminContext of the signed-in admin

    Raises:
        AuthenticationError: If the token does not belong to a session
        NotAdminError: If the user does not hold the admin role
    """
    try:
        user_response = client.auth.get_user(token)
    except AuthError as e:
        logfire.warning(f"Admin session lookup failed: {e}")
        raise AuthenticationError("Session is not valid") from e

    if user_response is None or user_response.user is None:
        raise AuthenticationError("Session is not valid")

    user = user_response.user
    if not has_role(str(user.id), settings.ADMIN_ROLE, client):
        logfire.warning(f"User {user.id} tried to access the dashboard without the admin role")
        raise NotAdminError()

    return AdminContext(user_id=str(user.id), email=getattr(user, "email", None),
                        access_token=token, client=client)


def get_admin_client(token: str = Depends(oauth2_scheme)) -> Client:
    return get_supabase_client(jwt_token=token)


async def require_admin(
    token: str = Depends(oauth2_scheme),
    client: Client = Depends(get_admin_client)
) -> AdminContext:
    """FastAPI dependency guarding every dashboard endpoint."""
    try:
        return authenticate_admin(token, client)
    except (AuthenticationError, NotAdminError) as e:
        raise HTTPException(status_code=e.status_code, detail=e.message,
                            headers={"WWW-Authenticate": "Bearer"} if e.status_code == 401 else None)


def sign_in_admin(email: str, password: str, client: Client) -> dict:
    """
    Password sign-in that only lets admins through.

    A user without the admin role is signed out again right away.

    Returns:
        Dictionary with the access token, refresh token and user id
    """
    auth_response = sign_in_with_password(email, password, client)
    user_id = str(auth_response.user.id)

    if not has_role(user_id, settings.ADMIN_ROLE, client):
        client.auth.sign_out()
        logfire.warning(f"User {user_id} signed in but is not an admin")
        raise NotAdminError()

    logfire.info(f"Admin {user_id} signed in")
    return {
        "access_token": auth_response.session.access_token,
        "refresh_token": auth_response.session.refresh_token,
        "token_type": "bearer",
        "user_id": user_id,
    }


def sign_up_admin(email: str, password: str, client: Client, service_client: Client) -> dict:
    """Create a dashboard account and grant it the admin role."""
    if not settings.ALLOW_ADMIN_SIGNUP:
        raise SignupDisabledError()

    auth_response = client.auth.sign_up({"email": email, "password": password})
    if auth_response is None or auth_response.user is None:
        raise AuthenticationError(f"Could not create account for {email}")

    user_id = str(auth_response.user.id)
    grant_role(user_id, settings.ADMIN_ROLE, service_client)
    logfire.info(f"Admin account {user_id} created")

    session = auth_response.session
    return {
        "user_id": user_id,
        "access_token": session.access_token if session else None,
        "token_type": "bearer",
    }


def get_websocket_admin_client(access_token: str = Query(...)) -> Client:
    """Browsers cannot set headers on a WebSocket, the token comes as a query parameter."""
    return get_supabase_client(jwt_token=access_token)
