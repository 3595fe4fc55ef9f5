"""Public storefront catalog endpoints."""
from fastapi import APIRouter, Depends, HTTPException
from supabase import Client
from typing import List
import logfire

from storefront.app.api.deps import get_service_client
from storefront.core.service.supabase_connectors import catalog_client, stock_client
from storefront.core.models.storefront_models import CatalogProduct

router = APIRouter()


@router.get("/", response_model=List[CatalogProduct])
async def list_catalog(client: Client = Depends(get_service_client)):
    """List products by name, with their options and free stock."""
    try:
        return catalog_client.build_catalog(client)

    except Exception as e:
        logfire.error(f"Error listing catalog: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{product_id}", response_model=CatalogProduct)
async def get_catalog_product(product_id: str, client: Client = Depends(get_service_client)):
    """Get one product with its options."""
    try:
        product = catalog_client.find_product_by_id(product_id, client)

        if product is None:
            raise HTTPException(status_code=404, detail="Product not found")

        options = [
            {**option, 'in_stock': stock_client.count_available(option['id'], client)}
            for option in catalog_client.find_options(client, product_id=product_id)
        ]

        return {**product, 'options': options}

    except HTTPException:
        raise
    except Exception as e:
        logfire.error(f"Error fetching product {product_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
