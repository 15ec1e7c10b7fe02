from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import datetime
from enum import Enum


class InventoryStatus(str, Enum):
    AVAILABLE = "available"
    RESERVED = "reserved"
    SOLD = "sold"

class BikeCondition(str, Enum):
    NEW = "new"
    USED = "used"
    REFURBISHED = "refurbished"

class PaymentMethod(str, Enum):
    CASH = "cash"
    TRANSFER = "transfer"
    FINANCE = "finance"
    CARD = "card"

# ============ ACCESSORY SALES ============

class SaleLine(BaseModel):
    stock_item_id: int
    quantity: int = Field(1, ge=1)
    unit_price: Optional[float] = Field(None, ge=0, description="Defaults to the item's sell price")

class AccessorySaleCreate(BaseModel):
    customer_id: Optional[int] = None
    items: List[SaleLine] = Field(..., min_length=1, description="At least one item")
    notes: Optional[str] = None

class AccessorySaleItemResponse(BaseModel):
    id: int
    stock_item_id: int
    name: str
    quantity: int
    unit_price: float
    line_total: float

    class Config:
        from_attributes = True

class AccessorySaleResponse(BaseModel):
    id: int
    customer_id: Optional[int]
    total: float
    notes: Optional[str]
    created_at: datetime
    items: List[AccessorySaleItemResponse]

    class Config:
        from_attributes = True

# ============ MOTORCYCLE INVENTORY ============

class InventoryBase(BaseModel):
    make: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    year: Optional[int] = Field(None, ge=1900, le=2100)
    color: Optional[str] = Field(None, max_length=50)
    registration: Optional[str] = Field(None, max_length=20)
    vin: Optional[str] = Field(None, max_length=50)
    mileage: int = Field(0, ge=0)
    condition: BikeCondition = BikeCondition.USED
    cost_price: float = Field(0.0, ge=0, description="What the workshop paid")
    sell_price: float = Field(0.0, ge=0, description="Asking price")
    notes: Optional[str] = None

    @validator('registration')
    def registration_uppercase(cls, v):
        if v is not None:
            return v.strip().upper()
        return v

class InventoryCreate(InventoryBase):
    pass

class InventoryUpdate(BaseModel):
    make: Optional[str] = Field(None, min_length=1, max_length=100)
    model: Optional[str] = Field(None, min_length=1, max_length=100)
    year: Optional[int] = Field(None, ge=1900, le=2100)
    color: Optional[str] = Field(None, max_length=50)
    registration: Optional[str] = Field(None, max_length=20)
    vin: Optional[str] = Field(None, max_length=50)
    mileage: Optional[int] = Field(None, ge=0)
    condition: Optional[BikeCondition] = None
    cost_price: Optional[float] = Field(None, ge=0)
    sell_price: Optional[float] = Field(None, ge=0)
    status: Optional[InventoryStatus] = Field(None, description="available or reserved; sell a bike to mark it sold")
    notes: Optional[str] = None

    @validator('registration')
    def registration_uppercase(cls, v):
        if v is not None:
            return v.strip().upper()
        return v

class InventoryResponse(InventoryBase):
    id: int
    status: InventoryStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

# ============ MOTORCYCLE SALES ============

class MotorcycleSaleCreate(BaseModel):
    customer_id: Optional[int] = None
    sale_price: Optional[float] = Field(None, ge=0, description="Defaults to the asking price")
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: Optional[str] = None

class MotorcycleSaleResponse(BaseModel):
    id: int
    inventory_id: Optional[int]
    customer_id: Optional[int]
    sale_price: float
    cost_price: float
    profit: float
    sale_date: datetime
    payment_method: Optional[PaymentMethod]
    notes: Optional[str]

    class Config:
        from_attributes = True
