from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import List, Optional
from apps.stock.schemas import (
    StockItemCreate,
    StockItemUpdate,
    StockItemResponse,
    StockAdjustment,
    StockItemListResponse,
    StockMovementResponse,
    LowStockAlert
)
from apps.stock.services import StockService, get_stock_service
from apps.auth.services import get_current_user, get_current_owner
from apps.auth.models import StaffUser
import math

router = APIRouter()

# ============ STATIC ROUTES FIRST (before /{item_id}) ============

@router.get(
    "/alerts/low-stock",
    response_model=List[LowStockAlert],
    summary="Get low stock alerts",
    description="Items at or below their minimum stock level"
)
def get_low_stock_alerts(
    service: StockService = Depends(get_stock_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.get_low_stock_items()

@router.get(
    "/categories/list",
    response_model=List[str],
    summary="Get all categories"
)
def get_categories(
    service: StockService = Depends(get_stock_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.get_categories()

@router.get(
    "/sku/{sku}",
    response_model=StockItemResponse,
    summary="Get stock item by SKU"
)
def get_stock_item_by_sku(
    sku: str,
    service: StockService = Depends(get_stock_service),
    current_user: StaffUser = Depends(get_current_user)
):
    item = service.get_stock_item_by_sku(sku)
    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Stock item not found"
        )
    return item

# ============ CRUD ROUTES ============

@router.post(
    "/",
    response_model=StockItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new stock item"
)
def create_stock_item(
    item: StockItemCreate,
    service: StockService = Depends(get_stock_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.create_stock_item(item)

@router.get(
    "/",
    response_model=StockItemListResponse,
    summary="Get all stock items",
    description="Retrieve stock items with filtering and pagination"
)
def get_stock_items(
    skip: int = Query(0, ge=0, description="Number of items to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Number of items to return"),
    search: Optional[str] = Query(None, description="Search in name, SKU or supplier"),
    category: Optional[str] = Query(None, description="Filter by category"),
    accessories_only: bool = Query(False, description="Show only accessories"),
    low_stock_only: bool = Query(False, description="Show only low stock items"),
    service: StockService = Depends(get_stock_service),
    current_user: StaffUser = Depends(get_current_user)
):
    items, total = service.get_stock_items(
        skip=skip,
        limit=limit,
        search=search,
        category=category,
        accessories_only=accessories_only,
        low_stock_only=low_stock_only
    )

    total_pages = math.ceil(total / limit) if limit > 0 else 1
    current_page = (skip // limit) + 1 if limit > 0 else 1

    return StockItemListResponse(
        items=items,
        total=total,
        page=current_page,
        size=limit,
        total_pages=total_pages
    )

@router.get("/{item_id}", response_model=StockItemResponse, summary="Get stock item by ID")
def get_stock_item(
    item_id: int,
    service: StockService = Depends(get_stock_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.get_stock_item_or_404(item_id)

@router.put("/{item_id}", response_model=StockItemResponse, summary="Update stock item")
def update_stock_item(
    item_id: int,
    item_update: StockItemUpdate,
    service: StockService = Depends(get_stock_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.update_stock_item(item_id, item_update)

@router.delete(
    "/{item_id}",
    summary="Delete stock item",
    description="Soft delete (Owner only)"
)
def delete_stock_item(
    item_id: int,
    service: StockService = Depends(get_stock_service),
    owner: StaffUser = Depends(get_current_owner)
):
    service.delete_stock_item(item_id)
    return {"message": "Stock item deleted successfully"}

@router.patch(
    "/{item_id}/stock",
    response_model=StockItemResponse,
    summary="Adjust stock quantity",
    description="Add or remove stock and record the movement"
)
def adjust_stock(
    item_id: int,
    adjustment: StockAdjustment,
    service: StockService = Depends(get_stock_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.adjust_stock(item_id, adjustment)

@router.get(
    "/{item_id}/movements",
    response_model=List[StockMovementResponse],
    summary="Stock movement history"
)
def get_movements(
    item_id: int,
    limit: int = Query(100, ge=1, le=1000),
    service: StockService = Depends(get_stock_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.get_movements(item_id, limit=limit)
