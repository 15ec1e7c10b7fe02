from pydantic import BaseModel
from typing import List


class DashboardFinancials(BaseModel):
    today_revenue: float
    month_revenue: float
    month_repair_revenue: float
    month_motorcycle_revenue: float
    month_motorcycle_profit: float
    month_accessory_revenue: float
    unpaid_total: float
    open_jobs: int
    low_stock_items: int

class MonthlyRevenue(BaseModel):
    month: str
    repairs: float
    motos: float
    accessories: float
    total: float
    jobs_paid: int

class TopPart(BaseModel):
    name: str
    quantity: int
    revenue: float

class ReportSummary(BaseModel):
    total_jobs: int
    paid_jobs: int
    unpaid_jobs: int
    repair_revenue: float
    motorcycle_revenue: float
    motorcycle_profit: float
    motorcycles_sold: int
    accessory_revenue: float
    accessory_sales: int
    total_revenue: float
    unpaid_total: float
    average_job_value: float
    monthly_revenue: List[MonthlyRevenue]
    top_parts: List[TopPart]
