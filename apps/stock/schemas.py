from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import datetime
from enum import Enum


class MovementType(str, Enum):
    IN = "in"
    OUT = "out"
    ADJUSTMENT = "adjustment"

class StockItemBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Item name")
    sku: Optional[str] = Field(None, max_length=100, description="Stock Keeping Unit")
    category: str = Field("General", max_length=100, description="Category")
    cost_price: float = Field(0.0, ge=0, description="Purchase price")
    sell_price: float = Field(0.0, ge=0, description="Price charged when used or sold")
    quantity: int = Field(0, ge=0, description="Quantity cannot be negative")
    min_quantity: int = Field(0, ge=0, description="Minimum stock level for alerts")
    is_accessory: bool = Field(False, description="Sold over the counter as an accessory")
    location: Optional[str] = Field(None, max_length=100)
    supplier: Optional[str] = Field(None, max_length=255)

    @validator('sku')
    def sku_uppercase(cls, v):
        if v is not None:
            return v.upper()
        return v

class StockItemCreate(StockItemBase):
    pass

class StockItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    sku: Optional[str] = Field(None, max_length=100)
    category: Optional[str] = Field(None, max_length=100)
    cost_price: Optional[float] = Field(None, ge=0)
    sell_price: Optional[float] = Field(None, ge=0)
    min_quantity: Optional[int] = Field(None, ge=0)
    is_accessory: Optional[bool] = None
    location: Optional[str] = Field(None, max_length=100)
    supplier: Optional[str] = Field(None, max_length=255)
    is_active: Optional[bool] = None

    @validator('sku')
    def sku_uppercase(cls, v):
        if v is not None:
            return v.upper()
        return v

class StockItemResponse(StockItemBase):
    id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class StockAdjustment(BaseModel):
    quantity_change: int = Field(..., description="Positive to add stock, negative to remove")
    reason: Optional[str] = Field(None, description="Reason for stock change")

class StockMovementResponse(BaseModel):
    id: int
    stock_item_id: int
    type: MovementType
    quantity: int
    reference: Optional[str]
    notes: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True

class StockItemListResponse(BaseModel):
    items: List[StockItemResponse]
    total: int
    page: int
    size: int
    total_pages: int

class LowStockAlert(BaseModel):
    stock_item: StockItemResponse
    current_stock: int
    minimum_level: int
    needs_reorder: bool
