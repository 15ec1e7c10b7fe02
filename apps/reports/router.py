from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import Optional
from datetime import date

from apps.reports.schemas import DashboardFinancials, ReportSummary
from apps.reports.services import ReportService, get_report_service
from apps.auth.services import get_current_owner
from apps.auth.models import StaffUser

router = APIRouter()


@router.get(
    "/dashboard",
    response_model=DashboardFinancials,
    summary="Dashboard financials",
    description="Today's and this month's takings from repairs, bike sales and accessories, and the unpaid total (Owner only)"
)
def get_dashboard(
    service: ReportService = Depends(get_report_service),
    owner: StaffUser = Depends(get_current_owner)
):
    return service.dashboard()

@router.get(
    "/summary",
    response_model=ReportSummary,
    summary="Business report",
    description="Repair, bike and accessory revenue, monthly breakdown and most used parts in a date range (Owner only)"
)
def get_summary(
    start: Optional[date] = Query(None, description="First day, inclusive"),
    end: Optional[date] = Query(None, description="Last day, inclusive"),
    top: int = Query(10, ge=1, le=100, description="How many parts to rank"),
    service: ReportService = Depends(get_report_service),
    owner: StaffUser = Depends(get_current_owner)
):
    if start and end and start > end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start must be on or before end"
        )
    return service.summary(start=start, end=end, top=top)
