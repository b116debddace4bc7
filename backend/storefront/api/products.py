"""
Products API Endpoints
Stock and price snapshot used by the cart
"""
from fastapi import APIRouter, Depends

from storefront.core.dependencies import get_inventory_service
from storefront.services.inventory_service import InventoryService

router = APIRouter()


@router.get("/products/{product_id}")
def get_product(
    product_id: str,
    inventory: InventoryService = Depends(get_inventory_service),
):
    product = inventory.get_product(product_id)
    return {"status": "success", "data": product.snapshot()}
