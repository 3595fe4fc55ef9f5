"""Admin endpoints for prepaid tokens."""
from fastapi import APIRouter, Depends, HTTPException
from typing import List
import logfire

from storefront.core.exceptions import StorefrontError
from storefront.core.models.storefront_models import (
    CreateTokenRequest,
    TokenModel,
    UpdateTokenRequest,
    money_to_db,
)
from storefront.core.security.admin_auth import AdminContext, require_admin
from storefront.core.service.supabase_connectors import tokens_client

router = APIRouter()


@router.get("/", response_model=List[TokenModel])
async def list_tokens(admin: AdminContext = Depends(require_admin)):
    """List all tokens, newest first."""
    try:
        return tokens_client.find_all_tokens(admin.client)

    except Exception as e:
        logfire.error(f"Error listing tokens: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/", response_model=TokenModel, status_code=201)
async def create_token(request: CreateTokenRequest, admin: AdminContext = Depends(require_admin)):
    """Create a token. A random value is generated when none is given."""
    try:
        token_value = (request.token or "").strip() or tokens_client.generate_token_value()

        return tokens_client.create_token({
            'token': token_value,
            'balance': money_to_db(request.balance),
        }, admin.client)

    except ValueError as e:
        logfire.error(f"Validation error creating token: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logfire.error(f"Error creating token: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/{token_id}", response_model=TokenModel)
async def update_token(
    token_id: str,
    request: UpdateTokenRequest,
    admin: AdminContext = Depends(require_admin)
):
    """Change the value or the balance of a token."""
    try:
        token_data = {}
        if request.token is not None:
            token_data['token'] = request.token.strip()
        if request.balance is not None:
            token_data['balance'] = money_to_db(request.balance)

        return tokens_client.update_token(token_id, token_data, admin.client)

    except StorefrontError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except ValueError as e:
        logfire.error(f"Validation error updating token: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logfire.error(f"Error updating token: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{token_id}", response_model=dict)
async def delete_token(token_id: str, admin: AdminContext = Depends(require_admin)):
    """Delete a token."""
    try:
        tokens_client.delete_token(token_id, admin.client)

        return {"message": "Token deleted successfully"}

    except Exception as e:
        logfire.error(f"Error deleting token: {e}")
        raise HTTPException(status_code=500, detail=str(e))
