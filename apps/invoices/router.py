from fastapi import APIRouter, Depends, Query
from typing import Optional

from apps.invoices.schemas import (
    InvoiceResponse, InvoiceListResponse, InvoiceShareResponse, InvoiceFilter,
    LaborSave, MarkPaidRequest
)
from apps.invoices.services import InvoiceService, get_invoice_service
from apps.auth.services import get_current_user, get_current_owner
from apps.auth.models import StaffUser

router = APIRouter()


@router.get(
    "/",
    response_model=InvoiceListResponse,
    summary="List invoices",
    description="Invoiced or paid jobs with paid and outstanding totals (Owner only)"
)
def list_invoices(
    payment_status: InvoiceFilter = Query(InvoiceFilter.ALL, description="all, paid or unpaid"),
    search: Optional[str] = Query(None, description="Search in job/invoice number, customer, vehicle"),
    service: InvoiceService = Depends(get_invoice_service),
    owner: StaffUser = Depends(get_current_owner)
):
    return service.list_invoices(payment_filter=payment_status, search=search)

@router.get(
    "/{job_id}",
    response_model=InvoiceResponse,
    summary="Invoice preview for a job",
    description="Totals with or without VAT; labor_cost previews an edited labour figure without saving"
)
def get_invoice(
    job_id: int,
    include_vat: bool = Query(True),
    labor_cost: Optional[float] = Query(None, ge=0),
    service: InvoiceService = Depends(get_invoice_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.get_invoice(job_id, include_vat=include_vat, labor_cost=labor_cost)

@router.get(
    "/{job_id}/share",
    response_model=InvoiceShareResponse,
    summary="Invoice text for WhatsApp or e-mail"
)
def share_invoice(
    job_id: int,
    include_vat: bool = Query(True),
    labor_cost: Optional[float] = Query(None, ge=0),
    service: InvoiceService = Depends(get_invoice_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.invoice_text(job_id, include_vat=include_vat, labor_cost=labor_cost)

@router.patch(
    "/{job_id}/labour",
    response_model=InvoiceResponse,
    summary="Save labour",
    description="Store labour and the resulting invoice total before printing or sharing"
)
def save_labor(
    job_id: int,
    labor_save: LaborSave,
    service: InvoiceService = Depends(get_invoice_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.save_labor(job_id, labor_save)

@router.post(
    "/{job_id}/mark-paid",
    response_model=InvoiceResponse,
    summary="Mark a job paid",
    description="Stamp the payment date and snapshot the invoice total and labour"
)
def mark_paid(
    job_id: int,
    payment: MarkPaidRequest,
    service: InvoiceService = Depends(get_invoice_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.mark_paid(job_id, payment)
