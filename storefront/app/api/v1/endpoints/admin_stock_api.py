"""Admin endpoints for stock items of auto-delivered options."""
from fastapi import APIRouter, Depends, HTTPException
from typing import List, Optional
import logfire

from storefront.core.models.storefront_models import AddStockRequest, StockItemModel
from storefront.core.security.admin_auth import AdminContext, require_admin
from storefront.core.service.supabase_connectors import catalog_client, stock_client

router = APIRouter()


@router.get("/", response_model=List[StockItemModel])
async def list_stock(
    option_id: Optional[str] = None,
    include_sold: bool = False,
    admin: AdminContext = Depends(require_admin)
):
    """List stock items, unsold only unless include_sold is set."""
    try:
        return stock_client.find_stock_items(admin.client, option_id=option_id, include_sold=include_sold)

    except Exception as e:
        logfire.error(f"Error listing stock: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/count/{option_id}", response_model=dict)
async def count_stock(option_id: str, admin: AdminContext = Depends(require_admin)):
    """Number of unsold items of an option."""
    try:
        return {"option_id": option_id, "available": stock_client.count_available(option_id, admin.client)}

    except Exception as e:
        logfire.error(f"Error counting stock: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/", response_model=List[StockItemModel], status_code=201)
async def add_stock(request: AddStockRequest, admin: AdminContext = Depends(require_admin)):
    """Add stock items to an option, from a list or one item per line."""
    try:
        option = catalog_client.find_option_by_id(request.option_id, admin.client)

        if option is None:
            raise HTTPException(status_code=404, detail="Option not found")

        return stock_client.add_stock_items(option, request.contents(), admin.client)

    except ValueError as e:
        logfire.error(f"Validation error adding stock: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logfire.error(f"Error adding stock: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{item_id}", response_model=dict)
async def delete_stock_item(item_id: str, admin: AdminContext = Depends(require_admin)):
    """Delete a stock item."""
    try:
        stock_client.delete_stock_item(item_id, admin.client)

        return {"message": "Stock item deleted successfully"}

    except Exception as e:
        logfire.error(f"Error deleting stock item: {e}")
        raise HTTPException(status_code=500, detail=str(e))
