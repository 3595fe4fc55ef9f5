from decimal import Decimal, InvalidOperation

from storefront.core.config.general_config import settings
from storefront.core.models.storefront_models import money_to_db
from storefront.core.service.supabase_connectors.roles_client import grant_role
from storefront.core.service.supabase_connectors.supabase_client import get_supabase_service_role_client
from storefront.core.service.supabase_connectors.tokens_client import create_token, generate_token_value


def add_token_to_supabase():
    # get the priviled client
    client = get_supabase_service_role_client()
    token_value = input("Enter the token (leave empty to generate one): ").strip() or generate_token_value()
    try:
        balance = Decimal(input("Enter the balance: ").strip() or "0")
    except InvalidOperation:
        print("Invalid balance")
        return
    token = create_token({"token": token_value, "balance": money_to_db(balance)}, client)
    print(f"Token {token['token']} added with balance {token['balance']}")


def grant_admin_role():
    client = get_supabase_service_role_client()
    user_id = input("Enter the uuid of the user: ").strip()
    grant_role(user_id, settings.ADMIN_ROLE, client)
    print("Admin role granted successfully")


if __name__ == "__main__":
    # ask for an input to select one of the functions
    print("Select a function to run:")
    print("(1) add_token_to_supabase")
    print("(2) grant_admin_role")
    choice = input("Enter the number of the function to run: ")
    match choice:
        case "1":
            add_token_to_supabase()

        case "2":
            grant_admin_role()

        case _:
            print("Invalid choice")
