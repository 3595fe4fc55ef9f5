import logfire
from postgrest.exceptions import APIError
from supabase import Client

USER_ROLES_TABLE_NAME = "user_roles"
HAS_ROLE_FUNCTION_NAME = "has_role"


def has_role(user_id: str, role: str, service_client: Client) -> bool:
    """Ask the database whether a user holds a role.

    A failing role lookup is treated as "no role", the dashboard stays closed.
    """
    try:
        response = service_client.rpc(HAS_ROLE_FUNCTION_NAME, {
            "_user_id": user_id,
            "_role": role,
        }).execute()
    except APIError as e:
        logfire.warning(f"Role lookup for user {user_id} failed: {e}")
        return False

    return bool(response.data)


def grant_role(user_id: str, role: str, service_client: Client) -> None:
    logfire.info(f"Granting role {role} to user {user_id}")

    response = service_client.table(USER_ROLES_TABLE_NAME) \
        .insert({"user_id": user_id, "role": role}) \
        .execute()

    if not response.data:
        raise ValueError(f"Failed to grant role {role} to user {user_id}")
