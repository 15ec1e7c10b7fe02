from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum


class JobStatus(str, Enum):
    RECEIVED = "received"
    DIAGNOSING = "diagnosing"
    WAITING_PARTS = "waiting_parts"
    IN_REPAIR = "in_repair"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"

class JobCreate(BaseModel):
    customer_id: int
    motorcycle_id: int
    description: Optional[str] = Field(None, description="Defaults to the service list joined by commas")
    services: List[str] = Field(
        default_factory=list,
        description="Work requested. The first service is priced at the estimated cost, the rest at 0"
    )
    estimated_cost: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def needs_description(self):
        if not (self.description and self.description.strip()) and not any(s.strip() for s in self.services):
            raise ValueError("Provide a description or at least one service")
        return self

class JobUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1)
    diagnosis: Optional[str] = None
    notes: Optional[str] = None
    motorcycle_id: Optional[int] = None

class JobStatusUpdate(BaseModel):
    status: JobStatus

class JobCostUpdate(BaseModel):
    estimated_cost: Optional[float] = Field(None, ge=0)
    labor_cost: Optional[float] = Field(None, ge=0)
    final_cost: Optional[float] = Field(None, ge=0, description="Manual total, overrides the calculated one when above 0")

class PartAdd(BaseModel):
    stock_item_id: Optional[int] = Field(None, description="Leave empty for a part bought in for this job")
    description: Optional[str] = Field(None, max_length=255, description="Name of a part not held in stock")
    quantity: int = Field(1, ge=1)
    unit_price: Optional[float] = Field(None, ge=0, description="Defaults to the stock sell price")

    @model_validator(mode="after")
    def stock_or_manual(self):
        if self.stock_item_id is None:
            if not (self.description and self.description.strip()):
                raise ValueError("A part not held in stock needs a description")
            if self.unit_price is None:
                raise ValueError("A part not held in stock needs a unit price")
        return self

class PartsAdd(BaseModel):
    parts: List[PartAdd] = Field(..., min_length=1)

class PartUpdate(BaseModel):
    unit_price: Optional[float] = Field(None, ge=0)

class PartResponse(BaseModel):
    id: int
    stock_item_id: Optional[int]
    name: str
    quantity: int
    unit_price: float
    line_total: float
    is_manual: bool

class ServiceAdd(BaseModel):
    description: str = Field(..., min_length=1, max_length=255)
    price: float = Field(..., ge=0)

class ServicesAdd(BaseModel):
    services: List[ServiceAdd] = Field(..., min_length=1)

class ServiceUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1, max_length=255)
    price: Optional[float] = Field(None, ge=0)

class ServiceResponse(BaseModel):
    id: int
    description: str
    price: float

    class Config:
        from_attributes = True

class JobResponse(BaseModel):
    id: int
    job_number: str
    customer_id: int
    customer_name: str
    motorcycle_id: int
    registration: str
    vehicle: str
    description: str
    diagnosis: Optional[str]
    notes: Optional[str]
    status: JobStatus
    estimated_cost: Optional[float]
    final_cost: Optional[float]
    labor_cost: Optional[float]
    invoice_number: Optional[str]
    payment_status: PaymentStatus
    payment_date: Optional[datetime]
    received_at: datetime
    completed_at: Optional[datetime]
    delivered_at: Optional[datetime]
    updated_at: datetime
    version: int
    parts: List[PartResponse]
    services: List[ServiceResponse]
    parts_total: float
    services_total: float
    display_value: float

class JobListResponse(BaseModel):
    items: List[JobResponse]
    total: int
    page: int
    size: int
    total_pages: int

class JobStatsResponse(BaseModel):
    total_jobs: int
    received: int
    diagnosing: int
    waiting_parts: int
    in_repair: int
    ready: int
    delivered: int
    cancelled: int
    unpaid: int
