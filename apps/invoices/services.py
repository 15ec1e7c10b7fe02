from sqlalchemy.orm import Session
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from typing import Dict, List, Optional
from fastapi import HTTPException, status, Depends
from datetime import datetime
from urllib.parse import quote
import re
import logging

from apps.repairs.models import RepairJob, PaymentStatus
from apps.repairs.services import JobService
from apps.customers.models import Customer, Motorcycle
from apps.settings.services import WorkshopSettingsService
from apps.invoices.pricing import (
    CostBreakdown, compute_total, initial_labor, job_total, round_money
)
from apps.invoices.schemas import InvoiceFilter, LaborSave, MarkPaidRequest
from core.database import get_db, commit_or_fail

logger = logging.getLogger(__name__)


def format_phone_for_whatsapp(phone: Optional[str]) -> str:
    """Digits-only international number for wa.me links. A leading 0 is taken as a UK number."""
    if not phone:
        return ""
    cleaned = re.sub(r"[\s\-\(\)]", "", phone)
    if cleaned.startswith("0"):
        cleaned = "44" + cleaned[1:]
    return cleaned.lstrip("+")


def invoice_number_for(job: RepairJob) -> str:
    digits = "".join(ch for ch in job.job_number if ch.isdigit()) or str(job.id)
    return f"INV-{digits}"


class InvoiceService:
    def __init__(self, db: Session):
        self.db = db
        self.jobs = JobService(db)
        self.settings = WorkshopSettingsService(db)

    def opening_labor(self, job: RepairJob) -> float:
        return initial_labor(
            job.parts,
            job.services,
            labor_cost=job.labor_cost,
            final_cost=job.final_cost,
            estimated_cost=job.estimated_cost
        )

    def price(self, job: RepairJob, labor, include_vat: bool) -> CostBreakdown:
        return compute_total(
            job.parts,
            job.services,
            labor_cost=labor,
            vat_rate=self.settings.get_vat_rate(),
            include_vat=include_vat
        )

    def _check_version(self, job: RepairJob, expected_version: Optional[int]) -> None:
        if expected_version is not None and job.version != expected_version:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Job {job.job_number} was changed since the invoice was opened, reload and try again"
            )

    def get_invoice(self, job_id: int, include_vat: bool = True, labor_cost: Optional[float] = None) -> Dict:
        """Invoice preview. labor_cost overrides the opening labour figure without saving it."""
        job = self.jobs.get_job_or_404(job_id)
        labor = labor_cost if labor_cost is not None else self.opening_labor(job)
        return self.build_invoice(job, include_vat, labor)

    def build_invoice(self, job: RepairJob, include_vat: bool, labor) -> Dict:
        breakdown = self.price(job, labor, include_vat)
        workshop = self.settings.get_map()
        customer = job.customer
        motorcycle = job.motorcycle

        return {
            "job_id": job.id,
            "job_number": job.job_number,
            "invoice_number": job.invoice_number or job.job_number,
            "description": job.description,
            "payment_status": job.payment_status.value,
            "payment_date": job.payment_date,
            "received_at": job.received_at,
            "completed_at": job.completed_at,
            "version": job.version,
            "currency": self.settings.get_currency(),
            "workshop": {
                "name": workshop["workshop_name"],
                "phone": workshop["workshop_phone"],
                "email": workshop["workshop_email"],
                "address": workshop["workshop_address"],
            },
            "customer": {
                "name": customer.name,
                "phone": customer.phone,
                "email": customer.email,
                "address": customer.address,
            },
            "vehicle": {
                "registration": motorcycle.registration,
                "make": motorcycle.make,
                "model": motorcycle.model,
                "year": motorcycle.year,
            },
            "parts": [
                {
                    "name": p.name,
                    "quantity": p.quantity,
                    "unit_price": round_money(p.unit_price),
                    "line_total": round_money(p.quantity * p.unit_price),
                }
                for p in job.parts
            ],
            "services": [
                {"description": s.description, "price": round_money(s.price)}
                for s in job.services
            ],
            "totals": {
                "parts_total": round_money(breakdown.parts_total),
                "services_total": round_money(breakdown.services_total),
                "labor": round_money(breakdown.labor),
                "subtotal": round_money(breakdown.subtotal),
                "vat_rate": breakdown.vat_rate,
                "include_vat": breakdown.include_vat,
                "vat": round_money(breakdown.vat),
                "display_total": round_money(breakdown.display_total),
            },
            "authoritative_total": round_money(job_total(job)),
        }

    def save_labor(self, job_id: int, labor_save: LaborSave) -> Dict:
        """Store the labour figure and the invoice total it produces, leaving payment alone.

        This is the step that issues the invoice, so the job gets its invoice
        number here and shows up in the invoice list as unpaid.
        """
        job = self.jobs.get_job_or_404(job_id)
        self._check_version(job, labor_save.expected_version)

        breakdown = self.price(job, labor_save.labor_cost, labor_save.include_vat)
        job.labor_cost = round_money(breakdown.labor)
        job.final_cost = round_money(breakdown.display_total)
        job.invoice_number = job.invoice_number or invoice_number_for(job)

        commit_or_fail(self.db, "save labour")
        self.db.refresh(job)

        logger.info(f"Saved labour {job.labor_cost} on job {job.job_number}, total {job.final_cost}")
        return self.build_invoice(job, labor_save.include_vat, job.labor_cost)

    def mark_paid(self, job_id: int, payment: MarkPaidRequest) -> Dict:
        """Record payment and snapshot the invoice total and labour.

        A single UPDATE guarded by the job version; if anyone else wrote the
        job in between, nothing is applied and 409 is raised. Re-marking a
        paid job re-stamps it.
        """
        job = self.jobs.get_job_or_404(job_id)
        self._check_version(job, payment.expected_version)

        labor = payment.labor_cost if payment.labor_cost is not None else self.opening_labor(job)
        breakdown = self.price(job, labor, payment.include_vat)
        paid_at = datetime.utcnow()
        loaded_version = job.version

        values = {
            RepairJob.payment_status: PaymentStatus.PAID,
            RepairJob.payment_date: paid_at,
            RepairJob.final_cost: round_money(breakdown.display_total),
            RepairJob.labor_cost: round_money(breakdown.labor),
            RepairJob.invoice_number: job.invoice_number or invoice_number_for(job),
            RepairJob.updated_at: paid_at,
            RepairJob.version: loaded_version + 1,
        }

        try:
            updated = self.db.query(RepairJob).filter(
                RepairJob.id == job.id,
                RepairJob.version == loaded_version
            ).update(values, synchronize_session=False)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Store write failed while marking job {job.job_number} paid")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Could not record payment, nothing was saved"
            )

        if updated == 0:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Job {job.job_number} was changed while recording payment, reload and try again"
            )

        commit_or_fail(self.db, "record payment")
        self.db.refresh(job)

        logger.info(
            f"Job {job.job_number} marked paid: {job.final_cost} "
            f"({'with' if payment.include_vat else 'without'} VAT), invoice {job.invoice_number}"
        )
        return self.build_invoice(job, payment.include_vat, job.labor_cost)

    def list_invoices(self, payment_filter: InvoiceFilter = InvoiceFilter.ALL, search: Optional[str] = None) -> Dict:
        """Jobs that have been invoiced or paid, with paid and outstanding totals"""
        query = self.db.query(RepairJob).join(Customer).join(
            Motorcycle, RepairJob.motorcycle_id == Motorcycle.id
        ).filter(
            or_(RepairJob.invoice_number.isnot(None), RepairJob.payment_status == PaymentStatus.PAID)
        )

        if search:
            query = query.filter(
                or_(
                    RepairJob.job_number.ilike(f"%{search}%"),
                    RepairJob.invoice_number.ilike(f"%{search}%"),
                    Customer.name.ilike(f"%{search}%"),
                    Motorcycle.registration.ilike(f"%{search}%"),
                    Motorcycle.make.ilike(f"%{search}%"),
                    Motorcycle.model.ilike(f"%{search}%")
                )
            )

        jobs = query.order_by(RepairJob.created_at.desc(), RepairJob.id.desc()).all()

        total_paid = 0.0
        total_unpaid = 0.0
        items: List[Dict] = []
        for job in jobs:
            total = job_total(job)
            is_paid = job.payment_status == PaymentStatus.PAID
            if is_paid:
                total_paid += total
            else:
                total_unpaid += total

            if payment_filter == InvoiceFilter.PAID and not is_paid:
                continue
            if payment_filter == InvoiceFilter.UNPAID and is_paid:
                continue

            items.append({
                "job_id": job.id,
                "job_number": job.job_number,
                "invoice_number": job.invoice_number,
                "customer_name": job.customer.name,
                "registration": job.motorcycle.registration,
                "vehicle": f"{job.motorcycle.make} {job.motorcycle.model}",
                "payment_status": job.payment_status.value,
                "payment_date": job.payment_date,
                "received_at": job.received_at,
                "total": round_money(total),
            })

        return {
            "items": items,
            "count": len(items),
            "total_paid": round_money(total_paid),
            "total_unpaid": round_money(total_unpaid),
        }

    def invoice_text(self, job_id: int, include_vat: bool = True, labor_cost: Optional[float] = None) -> Dict:
        """Plain-text invoice for WhatsApp or e-mail, with ready-made share links"""
        invoice = self.get_invoice(job_id, include_vat=include_vat, labor_cost=labor_cost)
        cur = invoice["currency"]
        totals = invoice["totals"]
        vehicle = invoice["vehicle"]

        lines = [
            f"*{invoice['workshop']['name']}*",
            f"Invoice: {invoice['invoice_number']}",
            f"Date: {datetime.utcnow().strftime('%d/%m/%Y')}",
            "",
            f"*Customer:* {invoice['customer']['name']}",
            f"*Vehicle:* {vehicle['make']} {vehicle['model']} ({vehicle['registration']})",
            "",
            f"*Description:* {invoice['description']}",
            "",
        ]
        lines += [f"{p['name']} x{p['quantity']} - {cur}{p['line_total']:.2f}" for p in invoice["parts"]]
        lines += [f"{s['description']} - {cur}{s['price']:.2f}" for s in invoice["services"]]
        lines.append("")
        lines.append(f"Parts: {cur}{totals['parts_total']:.2f}")
        lines.append(f"Services: {cur}{totals['services_total']:.2f}")
        lines.append(f"Labour: {cur}{totals['labor']:.2f}")
        if include_vat:
            lines.append(f"Subtotal: {cur}{totals['subtotal']:.2f}")
            lines.append(f"VAT ({totals['vat_rate']:g}%): {cur}{totals['vat']:.2f}")
        lines.append(f"*TOTAL: {cur}{totals['display_total']:.2f}*")
        text = "\n".join(lines)

        subject = f"Invoice {invoice['invoice_number']} - {invoice['workshop']['name']}"
        phone = format_phone_for_whatsapp(invoice["customer"]["phone"])
        email = invoice["customer"]["email"]

        return {
            "text": text,
            "subject": subject,
            "whatsapp_url": f"https://wa.me/{phone}?text={quote(text)}" if phone else None,
            "mailto_url": f"mailto:{email}?subject={quote(subject)}&body={quote(text)}" if email else None,
        }

# Dependency injection
def get_invoice_service(db: Session = Depends(get_db)) -> InvoiceService:
    return InvoiceService(db)
