from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum


class InvoiceFilter(str, Enum):
    ALL = "all"
    PAID = "paid"
    UNPAID = "unpaid"

class LaborSave(BaseModel):
    labor_cost: float = Field(..., ge=0)
    include_vat: bool = Field(True, description="Whether the saved total includes VAT")
    expected_version: Optional[int] = Field(None, description="Job version the invoice was opened at")

class MarkPaidRequest(BaseModel):
    labor_cost: Optional[float] = Field(None, ge=0, description="Labour as currently edited; defaults to the opening figure")
    include_vat: bool = Field(True, description="Whether the paid total includes VAT")
    expected_version: Optional[int] = Field(None, description="Job version the invoice was opened at")

class WorkshopDetails(BaseModel):
    name: str
    phone: str
    email: str
    address: str

class InvoiceCustomer(BaseModel):
    name: str
    phone: Optional[str]
    email: Optional[str]
    address: Optional[str]

class InvoiceVehicle(BaseModel):
    registration: str
    make: str
    model: str
    year: Optional[int]

class InvoicePartLine(BaseModel):
    name: str
    quantity: int
    unit_price: float
    line_total: float

class InvoiceServiceLine(BaseModel):
    description: str
    price: float

class InvoiceTotals(BaseModel):
    parts_total: float
    services_total: float
    labor: float
    subtotal: float
    vat_rate: float
    include_vat: bool
    vat: float
    display_total: float

class InvoiceResponse(BaseModel):
    job_id: int
    job_number: str
    invoice_number: str
    description: str
    payment_status: str
    payment_date: Optional[datetime]
    received_at: datetime
    completed_at: Optional[datetime]
    version: int
    currency: str
    workshop: WorkshopDetails
    customer: InvoiceCustomer
    vehicle: InvoiceVehicle
    parts: List[InvoicePartLine]
    services: List[InvoiceServiceLine]
    totals: InvoiceTotals
    authoritative_total: float

class InvoiceSummary(BaseModel):
    job_id: int
    job_number: str
    invoice_number: Optional[str]
    customer_name: str
    registration: str
    vehicle: str
    payment_status: str
    payment_date: Optional[datetime]
    received_at: datetime
    total: float

class InvoiceListResponse(BaseModel):
    items: List[InvoiceSummary]
    count: int
    total_paid: float
    total_unpaid: float

class InvoiceShareResponse(BaseModel):
    text: str
    subject: str
    whatsapp_url: Optional[str]
    mailto_url: Optional[str]
