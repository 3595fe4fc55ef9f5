import logfire
from dotenv import load_dotenv

from supabase import create_client, acreate_client, Client, AsyncClient
from supabase.lib.client_options import SyncClientOptions
from supabase_auth import SignInWithEmailAndPasswordCredentials, AuthResponse
from supabase_auth.errors import AuthError

from storefront.core.config.general_config import settings
from storefront.core.exceptions import AuthenticationError

load_dotenv()


def _require_credentials(key: str | None, name: str) -> tuple[str, str]:
    if not settings.SUPABASE_URL:
        raise RuntimeError("SUPABASE_URL environment variable is not set")
    if not key:
        raise RuntimeError(f"{name} environment variable is not set")
    return settings.SUPABASE_URL, key


def get_supabase_client(jwt_token: str) -> Client:
    """Client acting as the signed-in user, so row level security applies."""
    url, key = _require_credentials(settings.SUPABASE_KEY, "SUPABASE_KEY")
    return create_client(supabase_url=url, supabase_key=key, options=SyncClientOptions(
        headers={
            "Authorization": f"Bearer {jwt_token}"
        }
    ))


def get_supabase_anon_client() -> Client:
    url, key = _require_credentials(settings.SUPABASE_KEY, "SUPABASE_KEY")
    return create_client(supabase_url=url, supabase_key=key)


def get_supabase_service_role_client() -> Client:
    """This function returns a supabase client with the service role key.

    The storefront needs it for checkout: anonymous customers have no session,
    but their order and balance writes must still go through.
    """
    url, key = _require_credentials(settings.SUPABASE_SERVICE_ROLE_KEY, "SUPABASE_SERVICE_ROLE_KEY")
    return create_client(supabase_url=url, supabase_key=key)


async def get_async_supabase_client() -> AsyncClient:
    """Async client used for realtime channel subscriptions."""
    url, key = _require_credentials(
        settings.SUPABASE_SERVICE_ROLE_KEY or settings.SUPABASE_KEY, "SUPABASE_SERVICE_ROLE_KEY")
    return await acreate_client(supabase_url=url, supabase_key=key)


def sign_in_with_password(email: str, password: str, client: Client) -> AuthResponse:
    credentials = SignInWithEmailAndPasswordCredentials(email=email, password=password)
    try:
        auth_response = client.auth.sign_in_with_password(credentials)
    except AuthError as e:
        logfire.warning(f"Sign-in failed for {email}: {e}")
        raise AuthenticationError(f"Authentication failed for user {email}") from e
    if not auth_response or not auth_response.user:
        raise AuthenticationError(f"Authentication failed for user {email}")
    logfire.info(f"User {auth_response.user.id} signed in")
    return auth_response
