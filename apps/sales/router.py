from fastapi import APIRouter, Depends, status, Query
from typing import List, Optional

from apps.sales.schemas import (
    AccessorySaleCreate, AccessorySaleResponse,
    InventoryCreate, InventoryUpdate, InventoryResponse, InventoryStatus,
    MotorcycleSaleCreate, MotorcycleSaleResponse
)
from apps.sales.services import SalesService, get_sales_service
from apps.auth.services import get_current_user, get_current_owner
from apps.auth.models import StaffUser

router = APIRouter()

# ============ ACCESSORY SALES ============

@router.post(
    "/accessories",
    response_model=AccessorySaleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sell accessories",
    description="Record a counter sale and take every line out of stock"
)
def create_accessory_sale(
    sale: AccessorySaleCreate,
    service: SalesService = Depends(get_sales_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.create_accessory_sale(sale)

@router.get(
    "/accessories",
    response_model=List[AccessorySaleResponse],
    summary="Recent accessory sales"
)
def list_accessory_sales(
    limit: int = Query(50, ge=1, le=500),
    service: SalesService = Depends(get_sales_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.get_accessory_sales(limit=limit)

@router.get(
    "/accessories/{sale_id}",
    response_model=AccessorySaleResponse,
    summary="Get an accessory sale"
)
def get_accessory_sale(
    sale_id: int,
    service: SalesService = Depends(get_sales_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.get_accessory_sale_or_404(sale_id)

# ============ MOTORCYCLE SALES (Owner only) ============

@router.get(
    "/motorcycles/history",
    response_model=List[MotorcycleSaleResponse],
    summary="Motorcycle sales history",
    description="Every bike sold with its sale price and profit (Owner only)"
)
def list_motorcycle_sales(
    service: SalesService = Depends(get_sales_service),
    owner: StaffUser = Depends(get_current_owner)
):
    return service.get_motorcycle_sales()

@router.post(
    "/motorcycles",
    response_model=InventoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a motorcycle to the sales inventory"
)
def add_inventory_item(
    bike: InventoryCreate,
    service: SalesService = Depends(get_sales_service),
    owner: StaffUser = Depends(get_current_owner)
):
    return service.add_inventory_item(bike)

@router.get(
    "/motorcycles",
    response_model=List[InventoryResponse],
    summary="Motorcycles for sale"
)
def list_inventory(
    search: Optional[str] = Query(None, description="Search in make, model, registration, colour"),
    status_filter: Optional[InventoryStatus] = Query(None, alias="status", description="available, reserved or sold"),
    service: SalesService = Depends(get_sales_service),
    owner: StaffUser = Depends(get_current_owner)
):
    return service.get_inventory(search=search, status_filter=status_filter)

@router.get(
    "/motorcycles/{inventory_id}",
    response_model=InventoryResponse,
    summary="Get a motorcycle from the sales inventory"
)
def get_inventory_item(
    inventory_id: int,
    service: SalesService = Depends(get_sales_service),
    owner: StaffUser = Depends(get_current_owner)
):
    return service.get_inventory_item_or_404(inventory_id)

@router.patch(
    "/motorcycles/{inventory_id}",
    response_model=InventoryResponse,
    summary="Update a motorcycle in the sales inventory"
)
def update_inventory_item(
    inventory_id: int,
    bike_update: InventoryUpdate,
    service: SalesService = Depends(get_sales_service),
    owner: StaffUser = Depends(get_current_owner)
):
    return service.update_inventory_item(inventory_id, bike_update)

@router.delete(
    "/motorcycles/{inventory_id}",
    summary="Remove an unsold motorcycle from the sales inventory"
)
def delete_inventory_item(
    inventory_id: int,
    service: SalesService = Depends(get_sales_service),
    owner: StaffUser = Depends(get_current_owner)
):
    service.delete_inventory_item(inventory_id)
    return {"message": "Motorcycle removed from inventory"}

@router.post(
    "/motorcycles/{inventory_id}/sell",
    response_model=MotorcycleSaleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sell a motorcycle",
    description="Record the sale at the agreed price and mark the bike sold"
)
def sell_motorcycle(
    inventory_id: int,
    sale: MotorcycleSaleCreate,
    service: SalesService = Depends(get_sales_service),
    owner: StaffUser = Depends(get_current_owner)
):
    return service.sell_motorcycle(inventory_id, sale)
