from pydantic import BaseModel, Field, EmailStr, validator
from typing import Optional, List
from datetime import date, datetime


class MotorcycleBase(BaseModel):
    registration: str = Field(..., min_length=1, max_length=20)
    make: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    year: Optional[int] = Field(None, ge=1900, le=2100)
    mot_expiry_date: Optional[date] = Field(None, description="MOT certificate runs out on this day")
    last_service_date: Optional[date] = None
    last_service_type: Optional[str] = Field(None, max_length=100)

    @validator('registration')
    def registration_uppercase(cls, v):
        return v.strip().upper()

class MotorcycleCreate(MotorcycleBase):
    pass

class MotorcycleUpdate(BaseModel):
    registration: Optional[str] = Field(None, min_length=1, max_length=20)
    make: Optional[str] = Field(None, min_length=1, max_length=100)
    model: Optional[str] = Field(None, min_length=1, max_length=100)
    year: Optional[int] = Field(None, ge=1900, le=2100)
    mot_expiry_date: Optional[date] = None
    last_service_date: Optional[date] = None
    last_service_type: Optional[str] = Field(None, max_length=100)

    @validator('registration')
    def registration_uppercase(cls, v):
        if v is not None:
            return v.strip().upper()
        return v

class MotorcycleResponse(MotorcycleBase):
    id: int
    customer_id: int
    created_at: datetime

    class Config:
        from_attributes = True


class CustomerBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    notes: Optional[str] = None

class CustomerCreate(CustomerBase):
    motorcycles: List[MotorcycleCreate] = Field(default_factory=list)

class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    notes: Optional[str] = None

class CustomerResponse(CustomerBase):
    id: int
    created_at: datetime
    motorcycles: List[MotorcycleResponse] = []

    class Config:
        from_attributes = True

class CustomerJobSummary(BaseModel):
    id: int
    job_number: str
    description: str
    status: str
    payment_status: str
    total: float
    received_at: datetime

class CustomerDetailResponse(CustomerResponse):
    jobs: List[CustomerJobSummary]
    total_spent: float
    unpaid_balance: float

class CustomerListResponse(BaseModel):
    items: List[CustomerResponse]
    total: int
    page: int
    size: int
    total_pages: int
