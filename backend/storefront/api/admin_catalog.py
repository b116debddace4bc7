"""
Admin Catalog API Endpoints
Categories, products and restock
"""
from fastapi import APIRouter, Depends, status

from storefront.core.auth import AdminPrincipal, require_admin
from storefront.core.dependencies import get_inventory_service
from storefront.domain.product import CategoryCreate, ProductCreate, RestockRequest
from storefront.services.inventory_service import InventoryService

router = APIRouter(dependencies=[Depends(require_admin)])


@router.post("/categories", status_code=status.HTTP_201_CREATED)
def create_category(
    body: CategoryCreate,
    admin: AdminPrincipal = Depends(require_admin),
    inventory: InventoryService = Depends(get_inventory_service),
):
    category = inventory.create_category(body, actor=admin.email or admin.id)
    return {"status": "success", "data": category.model_dump()}


@router.delete("/categories/{category_id}")
def delete_category(
    category_id: str,
    admin: AdminPrincipal = Depends(require_admin),
    inventory: InventoryService = Depends(get_inventory_service),
):
    """Refused with 409 while products still belong to the category"""
    inventory.delete_category(category_id, actor=admin.email or admin.id)
    return {"status": "success", "data": {"category_id": category_id, "deleted": True}}


@router.post("/products", status_code=status.HTTP_201_CREATED)
def create_product(
    body: ProductCreate,
    admin: AdminPrincipal = Depends(require_admin),
    inventory: InventoryService = Depends(get_inventory_service),
):
    product = inventory.create_product(body, actor=admin.email or admin.id)
    return {"status": "success", "data": product.model_dump(mode="json")}


@router.post("/products/{product_id}/restock")
def restock_product(
    product_id: str,
    body: RestockRequest,
    admin: AdminPrincipal = Depends(require_admin),
    inventory: InventoryService = Depends(get_inventory_service),
):
    product = inventory.restock(product_id, body.quantity, actor=admin.email or admin.id)
    return {"status": "success", "data": product.snapshot()}
