from sqlalchemy.orm import Session
from sqlalchemy import or_
from typing import List, Optional, Tuple, Dict
from fastapi import HTTPException, status, Depends
import logging

from apps.customers.models import Customer, Motorcycle
from apps.customers.schemas import (
    CustomerCreate, CustomerUpdate, MotorcycleCreate, MotorcycleUpdate
)
from apps.invoices.pricing import job_total, round_money
from core.database import get_db, commit_or_fail

logger = logging.getLogger(__name__)


class CustomerService:
    def __init__(self, db: Session):
        self.db = db

    def get_customer(self, customer_id: int) -> Optional[Customer]:
        return self.db.query(Customer).filter(Customer.id == customer_id).first()

    def get_customer_or_404(self, customer_id: int) -> Customer:
        customer = self.get_customer(customer_id)
        if not customer:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Customer not found"
            )
        return customer

    def get_customers(
        self,
        skip: int = 0,
        limit: int = 100,
        search: Optional[str] = None
    ) -> Tuple[List[Customer], int]:
        """Get customers, optionally matching name, phone, email or a bike registration"""
        query = self.db.query(Customer)

        if search:
            query = query.filter(
                or_(
                    Customer.name.ilike(f"%{search}%"),
                    Customer.phone.ilike(f"%{search}%"),
                    Customer.email.ilike(f"%{search}%"),
                    Customer.motorcycles.any(Motorcycle.registration.ilike(f"%{search}%"))
                )
            )

        query = query.order_by(Customer.name)
        total = query.count()
        customers = query.offset(skip).limit(limit).all()
        return customers, total

    def create_customer(self, customer_data: CustomerCreate) -> Customer:
        db_customer = Customer(**customer_data.model_dump(exclude={'motorcycles'}))
        for moto in customer_data.motorcycles:
            db_customer.motorcycles.append(Motorcycle(**moto.model_dump()))

        self.db.add(db_customer)
        commit_or_fail(self.db, "create customer")
        self.db.refresh(db_customer)

        logger.info(f"Created customer: {db_customer.name} (ID: {db_customer.id})")
        return db_customer

    def update_customer(self, customer_id: int, customer_update: CustomerUpdate) -> Customer:
        db_customer = self.get_customer_or_404(customer_id)

        for field, value in customer_update.model_dump(exclude_unset=True).items():
            setattr(db_customer, field, value)

        commit_or_fail(self.db, "update customer")
        self.db.refresh(db_customer)
        return db_customer

    def delete_customer(self, customer_id: int) -> bool:
        """Delete a customer together with their motorcycles and repair jobs"""
        db_customer = self.get_customer_or_404(customer_id)
        job_count = len(db_customer.repair_jobs)

        self.db.delete(db_customer)
        commit_or_fail(self.db, "delete customer")

        logger.info(f"Deleted customer {customer_id} and {job_count} repair job(s)")
        return True

    def add_motorcycle(self, customer_id: int, moto_data: MotorcycleCreate) -> Motorcycle:
        db_customer = self.get_customer_or_404(customer_id)
        db_moto = Motorcycle(customer_id=db_customer.id, **moto_data.model_dump())

        self.db.add(db_moto)
        commit_or_fail(self.db, "add motorcycle")
        self.db.refresh(db_moto)

        logger.info(f"Added motorcycle {db_moto.registration} to customer {customer_id}")
        return db_moto

    def get_motorcycle_or_404(self, motorcycle_id: int) -> Motorcycle:
        db_moto = self.db.query(Motorcycle).filter(Motorcycle.id == motorcycle_id).first()
        if not db_moto:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Motorcycle not found"
            )
        return db_moto

    def update_motorcycle(self, motorcycle_id: int, moto_update: MotorcycleUpdate) -> Motorcycle:
        db_moto = self.get_motorcycle_or_404(motorcycle_id)

        for field, value in moto_update.model_dump(exclude_unset=True).items():
            setattr(db_moto, field, value)

        commit_or_fail(self.db, "update motorcycle")
        self.db.refresh(db_moto)
        return db_moto

    def delete_motorcycle(self, motorcycle_id: int) -> bool:
        db_moto = self.get_motorcycle_or_404(motorcycle_id)
        if db_moto.repair_jobs:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Motorcycle {db_moto.registration} has {len(db_moto.repair_jobs)} repair job(s)"
            )

        self.db.delete(db_moto)
        commit_or_fail(self.db, "delete motorcycle")
        return True

    def customer_detail(self, customer_id: int) -> Dict:
        """Customer with bikes, repair history and what they have paid so far"""
        customer = self.get_customer_or_404(customer_id)

        jobs = []
        total_spent = 0.0
        unpaid_balance = 0.0
        for job in sorted(customer.repair_jobs, key=lambda j: j.received_at, reverse=True):
            total = job_total(job)
            if job.payment_status.value == "paid":
                total_spent += total
            elif job.status.value != "cancelled":
                unpaid_balance += total
            jobs.append({
                "id": job.id,
                "job_number": job.job_number,
                "description": job.description,
                "status": job.status.value,
                "payment_status": job.payment_status.value,
                "total": round_money(total),
                "received_at": job.received_at,
            })

        return {
            "id": customer.id,
            "name": customer.name,
            "phone": customer.phone,
            "email": customer.email,
            "address": customer.address,
            "notes": customer.notes,
            "created_at": customer.created_at,
            "motorcycles": customer.motorcycles,
            "jobs": jobs,
            "total_spent": round_money(total_spent),
            "unpaid_balance": round_money(unpaid_balance),
        }

# Dependency injection
def get_customer_service(db: Session = Depends(get_db)) -> CustomerService:
    return CustomerService(db)
