from sqlalchemy.orm import Session
from sqlalchemy import or_, func
from typing import List, Optional, Tuple, Dict
from fastapi import HTTPException, status, Depends
from datetime import datetime
import secrets
import string
import logging

from apps.repairs.models import RepairJob, RepairPart, RepairService, JobStatus, PaymentStatus
from apps.repairs.schemas import (
    JobCreate, JobUpdate, JobStatusUpdate, JobCostUpdate,
    PartsAdd, PartUpdate, ServicesAdd, ServiceUpdate
)
from apps.customers.models import Customer, Motorcycle
from apps.stock.models import MovementType
from apps.stock.services import StockService
from apps.invoices.pricing import parts_total, services_total, job_total, round_money
from core.database import get_db, commit_or_fail

logger = logging.getLogger(__name__)


class JobService:
    def __init__(self, db: Session):
        self.db = db
        self.stock = StockService(db)

    def generate_job_number(self) -> str:
        """Generate unique job number"""
        prefix = "JOB"
        while True:
            random_suffix = ''.join(secrets.choice(string.digits) for _ in range(6))
            job_number = f"{prefix}-{random_suffix}"
            existing = self.db.query(RepairJob).filter(RepairJob.job_number == job_number).first()
            if not existing:
                return job_number

    def get_job(self, job_id: int) -> Optional[RepairJob]:
        """Get job by ID"""
        return self.db.query(RepairJob).filter(RepairJob.id == job_id).first()

    def get_job_or_404(self, job_id: int) -> RepairJob:
        db_job = self.get_job(job_id)
        if not db_job:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Job not found"
            )
        return db_job

    def get_job_by_number(self, job_number: str) -> Optional[RepairJob]:
        return self.db.query(RepairJob).filter(RepairJob.job_number == job_number).first()

    def get_jobs(
        self,
        skip: int = 0,
        limit: int = 100,
        status: Optional[JobStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
        search: Optional[str] = None,
        customer_id: Optional[int] = None
    ) -> Tuple[List[Dict], int]:
        """Get jobs with filtering, newest first"""
        query = self.db.query(RepairJob).join(Customer).join(Motorcycle, RepairJob.motorcycle_id == Motorcycle.id)

        if status:
            query = query.filter(RepairJob.status == JobStatus(status.value))

        if payment_status:
            query = query.filter(RepairJob.payment_status == PaymentStatus(payment_status.value))

        if customer_id:
            query = query.filter(RepairJob.customer_id == customer_id)

        if search:
            query = query.filter(
                or_(
                    RepairJob.job_number.ilike(f"%{search}%"),
                    RepairJob.description.ilike(f"%{search}%"),
                    Customer.name.ilike(f"%{search}%"),
                    Motorcycle.registration.ilike(f"%{search}%")
                )
            )

        query = query.order_by(RepairJob.received_at.desc(), RepairJob.id.desc())

        total = query.count()
        raw_jobs = query.offset(skip).limit(limit).all()
        jobs = [self.job_to_response(job) for job in raw_jobs]

        return jobs, total

    def create_job(self, job_data: JobCreate) -> RepairJob:
        """Book a motorcycle in"""
        customer = self.db.query(Customer).filter(Customer.id == job_data.customer_id).first()
        if not customer:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Customer not found"
            )
        motorcycle = self.db.query(Motorcycle).filter(Motorcycle.id == job_data.motorcycle_id).first()
        if not motorcycle or motorcycle.customer_id != customer.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Motorcycle not found for this customer"
            )

        service_names = [s.strip() for s in job_data.services if s.strip()]
        description = (job_data.description or "").strip() or ", ".join(service_names)

        db_job = RepairJob(
            job_number=self.generate_job_number(),
            customer_id=customer.id,
            motorcycle_id=motorcycle.id,
            description=description,
            estimated_cost=job_data.estimated_cost,
            notes=job_data.notes,
            status=JobStatus.RECEIVED,
            payment_status=PaymentStatus.UNPAID
        )

        # The estimate is the price of the main service; extra services start at 0
        estimated_price = job_data.estimated_cost or 0.0
        for index, name in enumerate(service_names):
            db_job.services.append(
                RepairService(description=name, price=estimated_price if index == 0 else 0.0)
            )

        self.db.add(db_job)
        commit_or_fail(self.db, "create repair job")
        self.db.refresh(db_job)

        logger.info(f"Created job: {db_job.job_number} for customer: {customer.name}")
        return db_job

    def update_job(self, job_id: int, job_update: JobUpdate) -> RepairJob:
        """Update job details"""
        db_job = self.get_job_or_404(job_id)
        update_data = job_update.model_dump(exclude_unset=True)

        if update_data.get('motorcycle_id') is not None:
            motorcycle = self.db.query(Motorcycle).filter(Motorcycle.id == update_data['motorcycle_id']).first()
            if not motorcycle or motorcycle.customer_id != db_job.customer_id:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Motorcycle not found for this customer"
                )

        for field, value in update_data.items():
            setattr(db_job, field, value)

        commit_or_fail(self.db, "update repair job")
        self.db.refresh(db_job)
        return db_job

    def update_job_status(self, job_id: int, status_update: JobStatusUpdate) -> RepairJob:
        """Move a job along. Any status may follow any other."""
        db_job = self.get_job_or_404(job_id)
        new_status = JobStatus(status_update.status.value)

        db_job.status = new_status
        if new_status == JobStatus.READY:
            db_job.completed_at = datetime.utcnow()
        elif new_status == JobStatus.DELIVERED:
            db_job.delivered_at = datetime.utcnow()

        commit_or_fail(self.db, "update job status")
        self.db.refresh(db_job)

        logger.info(f"Updated job {db_job.job_number} status to {new_status.value}")
        return db_job

    def update_job_costs(self, job_id: int, cost_update: JobCostUpdate) -> RepairJob:
        """Set estimate, labour or the manual final cost"""
        db_job = self.get_job_or_404(job_id)
        update_data = cost_update.model_dump(exclude_unset=True)

        for field, value in update_data.items():
            setattr(db_job, field, value)

        commit_or_fail(self.db, "update job costs")
        self.db.refresh(db_job)

        logger.info(f"Updated job {db_job.job_number} costs: {update_data}")
        return db_job

    def _touch(self, db_job: RepairJob) -> None:
        # Line changes alter the total, so they count as a write to the job
        db_job.updated_at = datetime.utcnow()

    def add_parts(self, job_id: int, parts_data: PartsAdd) -> RepairJob:
        """Add stock parts (taking them out of stock) or parts bought in for the job"""
        db_job = self.get_job_or_404(job_id)

        try:
            for part in parts_data.parts:
                if part.stock_item_id is not None:
                    item = self.stock.get_stock_item(part.stock_item_id)
                    if not item or not item.is_active:
                        raise HTTPException(
                            status_code=status.HTTP_400_BAD_REQUEST,
                            detail=f"Stock item {part.stock_item_id} not found"
                        )
                    unit_price = part.unit_price if part.unit_price is not None else item.sell_price
                    self.stock.record_movement(
                        item,
                        MovementType.OUT,
                        part.quantity,
                        reference=db_job.job_number,
                        notes="Used in repair"
                    )
                    db_job.parts.append(RepairPart(
                        stock_item_id=item.id,
                        quantity=part.quantity,
                        unit_price=unit_price
                    ))
                else:
                    db_job.parts.append(RepairPart(
                        description=part.description.strip(),
                        quantity=part.quantity,
                        unit_price=part.unit_price
                    ))
        except HTTPException:
            # Drop stock already taken for earlier lines of this request
            self.db.rollback()
            raise

        self._touch(db_job)
        commit_or_fail(self.db, "add parts")
        self.db.refresh(db_job)

        logger.info(f"Added {len(parts_data.parts)} part(s) to job {db_job.job_number}")
        return db_job

    def _get_part_or_404(self, job_id: int, part_id: int) -> RepairPart:
        part = self.db.query(RepairPart).filter(
            RepairPart.id == part_id,
            RepairPart.repair_job_id == job_id
        ).first()
        if not part:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Part not found on this job"
            )
        return part

    def update_part(self, job_id: int, part_id: int, part_update: PartUpdate) -> RepairJob:
        """Reprice a part already on the job"""
        db_job = self.get_job_or_404(job_id)
        part = self._get_part_or_404(job_id, part_id)

        if part_update.unit_price is not None:
            part.unit_price = part_update.unit_price

        self._touch(db_job)
        commit_or_fail(self.db, "update part")
        self.db.refresh(db_job)
        return db_job

    def remove_part(self, job_id: int, part_id: int) -> RepairJob:
        """Remove a part; stock parts go back on the shelf"""
        db_job = self.get_job_or_404(job_id)
        part = self._get_part_or_404(job_id, part_id)

        if part.stock_item is not None:
            self.stock.record_movement(
                part.stock_item,
                MovementType.IN,
                part.quantity,
                reference=db_job.job_number,
                notes="Returned from repair"
            )

        db_job.parts.remove(part)
        self._touch(db_job)
        commit_or_fail(self.db, "remove part")
        self.db.refresh(db_job)

        logger.info(f"Removed part {part_id} from job {db_job.job_number}")
        return db_job

    def add_services(self, job_id: int, services_data: ServicesAdd) -> RepairJob:
        db_job = self.get_job_or_404(job_id)

        for service in services_data.services:
            db_job.services.append(
                RepairService(description=service.description.strip(), price=service.price)
            )

        self._touch(db_job)
        commit_or_fail(self.db, "add services")
        self.db.refresh(db_job)

        logger.info(f"Added {len(services_data.services)} service(s) to job {db_job.job_number}")
        return db_job

    def _get_service_or_404(self, job_id: int, service_id: int) -> RepairService:
        service = self.db.query(RepairService).filter(
            RepairService.id == service_id,
            RepairService.repair_job_id == job_id
        ).first()
        if not service:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Service not found on this job"
            )
        return service

    def update_service(self, job_id: int, service_id: int, service_update: ServiceUpdate) -> RepairJob:
        db_job = self.get_job_or_404(job_id)
        service = self._get_service_or_404(job_id, service_id)

        for field, value in service_update.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(service, field, value)

        self._touch(db_job)
        commit_or_fail(self.db, "update service")
        self.db.refresh(db_job)
        return db_job

    def remove_service(self, job_id: int, service_id: int) -> RepairJob:
        db_job = self.get_job_or_404(job_id)
        service = self._get_service_or_404(job_id, service_id)

        db_job.services.remove(service)
        self._touch(db_job)
        commit_or_fail(self.db, "remove service")
        self.db.refresh(db_job)
        return db_job

    def delete_job(self, job_id: int) -> bool:
        """Delete a job with its lines. Stock used on it is not returned."""
        db_job = self.get_job_or_404(job_id)
        job_number = db_job.job_number

        self.db.delete(db_job)
        commit_or_fail(self.db, "delete repair job")

        logger.info(f"Deleted job {job_number}")
        return True

    def get_job_stats(self) -> Dict:
        """Count jobs per status, plus open unpaid jobs"""
        stats = self.db.query(RepairJob.status, func.count(RepairJob.id)).group_by(RepairJob.status).all()

        stats_dict = {s.value: 0 for s in JobStatus}
        for job_status, count in stats:
            stats_dict[job_status.value] = count
        stats_dict['total_jobs'] = sum(count for _, count in stats)
        stats_dict['unpaid'] = self.db.query(func.count(RepairJob.id)).filter(
            RepairJob.payment_status == PaymentStatus.UNPAID,
            RepairJob.status != JobStatus.CANCELLED
        ).scalar()

        return stats_dict

    def job_to_response(self, job: RepairJob) -> Dict:
        """Convert RepairJob model to response dictionary"""
        motorcycle = job.motorcycle
        return {
            "id": job.id,
            "job_number": job.job_number,
            "customer_id": job.customer_id,
            "customer_name": job.customer.name,
            "motorcycle_id": job.motorcycle_id,
            "registration": motorcycle.registration,
            "vehicle": f"{motorcycle.make} {motorcycle.model}",
            "description": job.description,
            "diagnosis": job.diagnosis,
            "notes": job.notes,
            "status": job.status,
            "estimated_cost": job.estimated_cost,
            "final_cost": job.final_cost,
            "labor_cost": job.labor_cost,
            "invoice_number": job.invoice_number,
            "payment_status": job.payment_status,
            "payment_date": job.payment_date,
            "received_at": job.received_at,
            "completed_at": job.completed_at,
            "delivered_at": job.delivered_at,
            "updated_at": job.updated_at,
            "version": job.version,
            "parts": [
                {
                    "id": p.id,
                    "stock_item_id": p.stock_item_id,
                    "name": p.name,
                    "quantity": p.quantity,
                    "unit_price": p.unit_price,
                    "line_total": round_money(p.quantity * p.unit_price),
                    "is_manual": p.is_manual,
                }
                for p in job.parts
            ],
            "services": [
                {"id": s.id, "description": s.description, "price": s.price}
                for s in job.services
            ],
            "parts_total": round_money(parts_total(job.parts)),
            "services_total": round_money(services_total(job.services)),
            "display_value": round_money(job_total(job)),
        }

# Dependency injection
def get_job_service(db: Session = Depends(get_db)) -> JobService:
    return JobService(db)
