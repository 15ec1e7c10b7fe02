from sqlalchemy.orm import Session
from typing import Dict, Optional
from fastapi import Depends
from datetime import date, datetime, time
from collections import defaultdict
import logging

from apps.repairs.models import RepairJob, JobStatus, PaymentStatus
from apps.sales.models import AccessorySale, MotorcycleSale
from apps.stock.models import StockItem
from apps.invoices.pricing import job_total, round_money
from core.database import get_db

logger = logging.getLogger(__name__)

OPEN_STATUSES = (
    JobStatus.RECEIVED, JobStatus.DIAGNOSING, JobStatus.WAITING_PARTS,
    JobStatus.IN_REPAIR, JobStatus.READY
)


def _in_range(query, column, start: Optional[date], end: Optional[date]):
    if start:
        query = query.filter(column >= datetime.combine(start, time.min))
    if end:
        query = query.filter(column <= datetime.combine(end, time.max))
    return query


def _month_bucket():
    return {"repairs": 0.0, "motos": 0.0, "accessories": 0.0, "jobs_paid": 0}


class ReportService:
    def __init__(self, db: Session):
        self.db = db

    def dashboard(self, now: Optional[datetime] = None) -> Dict:
        """Takings for today and this month across repairs, bike sales and accessories, and what is still owed"""
        now = now or datetime.utcnow()
        today_start = datetime.combine(now.date(), time.min)
        month_start = today_start.replace(day=1)

        paid_this_month = self.db.query(RepairJob).filter(
            RepairJob.payment_status == PaymentStatus.PAID,
            RepairJob.payment_date >= month_start
        ).all()
        moto_sales = self.db.query(MotorcycleSale).filter(MotorcycleSale.sale_date >= month_start).all()
        accessory_sales = self.db.query(AccessorySale).filter(AccessorySale.created_at >= month_start).all()

        month_repairs = sum(job_total(j) for j in paid_this_month)
        month_motos = sum(s.sale_price for s in moto_sales)
        month_accessories = sum(s.total for s in accessory_sales)

        today_revenue = (
            sum(job_total(j) for j in paid_this_month if j.payment_date >= today_start)
            + sum(s.sale_price for s in moto_sales if s.sale_date >= today_start)
            + sum(s.total for s in accessory_sales if s.created_at >= today_start)
        )

        unpaid_jobs = self.db.query(RepairJob).filter(
            RepairJob.payment_status != PaymentStatus.PAID,
            RepairJob.status != JobStatus.CANCELLED
        ).all()

        open_jobs = self.db.query(RepairJob).filter(RepairJob.status.in_(OPEN_STATUSES)).count()
        low_stock = self.db.query(StockItem).filter(
            StockItem.is_active.is_(True),
            StockItem.quantity <= StockItem.min_quantity
        ).count()

        return {
            "today_revenue": round_money(today_revenue),
            "month_revenue": round_money(month_repairs + month_motos + month_accessories),
            "month_repair_revenue": round_money(month_repairs),
            "month_motorcycle_revenue": round_money(month_motos),
            "month_motorcycle_profit": round_money(sum(s.profit for s in moto_sales)),
            "month_accessory_revenue": round_money(month_accessories),
            "unpaid_total": round_money(sum(job_total(j) for j in unpaid_jobs)),
            "open_jobs": open_jobs,
            "low_stock_items": low_stock,
        }

    def summary(self, start: Optional[date] = None, end: Optional[date] = None, top: int = 10) -> Dict:
        """Figures for jobs received, bikes sold and accessory sales made between start and end (inclusive)"""
        jobs = _in_range(self.db.query(RepairJob), RepairJob.received_at, start, end).all()
        moto_sales = _in_range(self.db.query(MotorcycleSale), MotorcycleSale.sale_date, start, end).all()
        accessory_sales = _in_range(self.db.query(AccessorySale), AccessorySale.created_at, start, end).all()

        paid = [j for j in jobs if j.payment_status == PaymentStatus.PAID]
        unpaid = [j for j in jobs if j.payment_status != PaymentStatus.PAID and j.status != JobStatus.CANCELLED]
        repair_revenue = sum(job_total(j) for j in paid)
        moto_revenue = sum(s.sale_price for s in moto_sales)
        accessory_revenue = sum(s.total for s in accessory_sales)

        monthly = defaultdict(_month_bucket)
        for job in paid:
            paid_on = job.payment_date or job.completed_at or job.received_at
            bucket = monthly[paid_on.strftime("%Y-%m")]
            bucket["repairs"] += job_total(job)
            bucket["jobs_paid"] += 1
        for sale in moto_sales:
            monthly[sale.sale_date.strftime("%Y-%m")]["motos"] += sale.sale_price
        for sale in accessory_sales:
            monthly[sale.created_at.strftime("%Y-%m")]["accessories"] += sale.total

        part_counts = {}
        for job in jobs:
            for part in job.parts:
                key = ("stock", part.stock_item_id) if part.stock_item_id else ("manual", part.name.lower())
                entry = part_counts.setdefault(key, {"name": part.name, "quantity": 0, "revenue": 0.0})
                entry["quantity"] += part.quantity
                entry["revenue"] += part.quantity * part.unit_price

        top_parts = sorted(part_counts.values(), key=lambda p: (-p["quantity"], p["name"]))[:top]

        return {
            "total_jobs": len(jobs),
            "paid_jobs": len(paid),
            "unpaid_jobs": len(unpaid),
            "repair_revenue": round_money(repair_revenue),
            "motorcycle_revenue": round_money(moto_revenue),
            "motorcycle_profit": round_money(sum(s.profit for s in moto_sales)),
            "motorcycles_sold": len(moto_sales),
            "accessory_revenue": round_money(accessory_revenue),
            "accessory_sales": len(accessory_sales),
            "total_revenue": round_money(repair_revenue + moto_revenue + accessory_revenue),
            "unpaid_total": round_money(sum(job_total(j) for j in unpaid)),
            "average_job_value": round_money(repair_revenue / len(paid)) if paid else 0.0,
            "monthly_revenue": [
                {
                    "month": month,
                    "repairs": round_money(v["repairs"]),
                    "motos": round_money(v["motos"]),
                    "accessories": round_money(v["accessories"]),
                    "total": round_money(v["repairs"] + v["motos"] + v["accessories"]),
                    "jobs_paid": v["jobs_paid"],
                }
                for month, v in sorted(monthly.items())
            ],
            "top_parts": [
                {"name": p["name"], "quantity": p["quantity"], "revenue": round_money(p["revenue"])}
                for p in top_parts
            ],
        }

# Dependency injection
def get_report_service(db: Session = Depends(get_db)) -> ReportService:
    return ReportService(db)
