"""Admin endpoints for products and product options."""
from fastapi import APIRouter, Depends, HTTPException
from typing import List
import logfire

from storefront.core.exceptions import StorefrontError
from storefront.core.models.storefront_models import (
    CreateOptionRequest,
    CreateProductRequest,
    ProductModel,
    ProductOptionModel,
    UpdateOptionRequest,
    UpdateProductRequest,
    money_to_db,
)
from storefront.core.security.admin_auth import AdminContext, require_admin
from storefront.core.service.supabase_connectors import catalog_client

router = APIRouter()


def _to_row(data: dict) -> dict:
    """Prepare request fields for the table API."""
    row = {}
    for key, value in data.items():
        if key == 'price' and value is not None:
            value = money_to_db(value)
        elif key == 'type' and value is not None:
            value = value.value
        elif isinstance(value, str) and key != 'name':
            # empty optional text is stored as NULL, like the dashboard forms did
            value = value.strip() or None
        row[key] = value
    return row


@router.get("/products", response_model=List[ProductModel])
async def list_products(admin: AdminContext = Depends(require_admin)):
    """List all products, newest first."""
    try:
        return catalog_client.find_all_products(admin.client, order_by="created_at")

    except Exception as e:
        logfire.error(f"Error listing products: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/products", response_model=dict, status_code=201)
async def create_product(
    request: CreateProductRequest,
    admin: AdminContext = Depends(require_admin)
):
    """Create a new product."""
    try:
        product_id = catalog_client.create_product(_to_row(request.model_dump()), admin.client)

        return {"id": product_id, "message": "Product created successfully"}

    except ValueError as e:
        logfire.error(f"Validation error creating product: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logfire.error(f"Error creating product: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/products/{product_id}", response_model=ProductModel)
async def update_product(
    product_id: str,
    request: UpdateProductRequest,
    admin: AdminContext = Depends(require_admin)
):
    """Update a product."""
    try:
        product_data = _to_row(request.model_dump(exclude_unset=True))

        return catalog_client.update_product(product_id, product_data, admin.client)

    except StorefrontError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except ValueError as e:
        logfire.error(f"Validation error updating product: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logfire.error(f"Error updating product: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/products/{product_id}", response_model=dict)
async def delete_product(product_id: str, admin: AdminContext = Depends(require_admin)):
    """Delete a product."""
    try:
        catalog_client.delete_product(product_id, admin.client)

        return {"message": "Product deleted successfully"}

    except Exception as e:
        logfire.error(f"Error deleting product: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/options", response_model=List[ProductOptionModel])
async def list_options(
    product_id: str | None = None,
    admin: AdminContext = Depends(require_admin)
):
    """List options, optionally of one product."""
    try:
        return catalog_client.find_options(admin.client, product_id=product_id)

    except Exception as e:
        logfire.error(f"Error listing options: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/options", response_model=dict, status_code=201)
async def create_option(
    request: CreateOptionRequest,
    admin: AdminContext = Depends(require_admin)
):
    """Create an option under a product."""
    try:
        option_data = _to_row(request.model_dump(exclude={'product_id'}))
        option_id = catalog_client.create_option(request.product_id, option_data, admin.client)

        return {"id": option_id, "message": "Option created successfully"}

    except StorefrontError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except ValueError as e:
        logfire.error(f"Validation error creating option: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logfire.error(f"Error creating option: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/options/{option_id}", response_model=ProductOptionModel)
async def update_option(
    option_id: str,
    request: UpdateOptionRequest,
    admin: AdminContext = Depends(require_admin)
):
    """Update an option."""
    try:
        option_data = _to_row(request.model_dump(exclude_unset=True))

        return catalog_client.update_option(option_id, option_data, admin.client)

    except StorefrontError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except ValueError as e:
        logfire.error(f"Validation error updating option: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logfire.error(f"Error updating option: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/options/{option_id}", response_model=dict)
async def delete_option(option_id: str, admin: AdminContext = Depends(require_admin)):
    """Delete an option."""
    try:
        catalog_client.delete_option(option_id, admin.client)

        return {"message": "Option deleted successfully"}

    except Exception as e:
        logfire.error(f"Error deleting option: {e}")
        raise HTTPException(status_code=500, detail=str(e))
