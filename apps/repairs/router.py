from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import Optional
import math

from apps.repairs.schemas import (
    JobCreate, JobUpdate, JobResponse, JobStatusUpdate, JobCostUpdate,
    JobListResponse, JobStatsResponse, PartsAdd, PartUpdate, ServicesAdd, ServiceUpdate,
    JobStatus, PaymentStatus
)
from apps.repairs.services import JobService, get_job_service
from apps.auth.services import get_current_user, get_current_owner
from apps.auth.models import StaffUser

router = APIRouter()

# ============ STATIC ROUTES FIRST (before /{job_id}) ============

@router.get(
    "/stats/summary",
    response_model=JobStatsResponse,
    summary="Get job statistics",
    description="Number of jobs in each status"
)
def get_job_stats(
    service: JobService = Depends(get_job_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return JobStatsResponse(**service.get_job_stats())

@router.get(
    "/number/{job_number}",
    response_model=JobResponse,
    summary="Get job by job number"
)
def get_job_by_number(
    job_number: str,
    service: JobService = Depends(get_job_service),
    current_user: StaffUser = Depends(get_current_user)
):
    job = service.get_job_by_number(job_number)
    if not job:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Job not found"
        )
    return service.job_to_response(job)

# ============ CRUD ROUTES ============

@router.post(
    "/",
    response_model=JobResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new repair job",
    description="Book a customer's motorcycle in for work"
)
def create_job(
    job: JobCreate,
    service: JobService = Depends(get_job_service),
    current_user: StaffUser = Depends(get_current_user)
):
    db_job = service.create_job(job)
    return service.job_to_response(db_job)

@router.get(
    "/",
    response_model=JobListResponse,
    summary="Get all repair jobs",
    description="Retrieve jobs with filtering and pagination"
)
def get_jobs(
    skip: int = Query(0, ge=0, description="Number of items to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Number of items to return"),
    status_filter: Optional[JobStatus] = Query(None, alias="status", description="Filter by status"),
    payment_status: Optional[PaymentStatus] = Query(None, description="Filter by payment status"),
    search: Optional[str] = Query(None, description="Search in job number, description, customer, registration"),
    customer_id: Optional[int] = Query(None, description="Only this customer's jobs"),
    service: JobService = Depends(get_job_service),
    current_user: StaffUser = Depends(get_current_user)
):
    jobs, total = service.get_jobs(
        skip=skip,
        limit=limit,
        status=status_filter,
        payment_status=payment_status,
        search=search,
        customer_id=customer_id
    )

    total_pages = math.ceil(total / limit) if limit > 0 else 1
    current_page = (skip // limit) + 1 if limit > 0 else 1

    return JobListResponse(
        items=jobs,
        total=total,
        page=current_page,
        size=limit,
        total_pages=total_pages
    )

# ============ DYNAMIC ROUTES (must come after static routes) ============

@router.get("/{job_id}", response_model=JobResponse, summary="Get job by ID")
def get_job(
    job_id: int,
    service: JobService = Depends(get_job_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.job_to_response(service.get_job_or_404(job_id))

@router.put("/{job_id}", response_model=JobResponse, summary="Update job details")
def update_job(
    job_id: int,
    job_update: JobUpdate,
    service: JobService = Depends(get_job_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.job_to_response(service.update_job(job_id, job_update))

@router.delete("/{job_id}", summary="Delete a repair job (Owner only)")
def delete_job(
    job_id: int,
    service: JobService = Depends(get_job_service),
    owner: StaffUser = Depends(get_current_owner)
):
    service.delete_job(job_id)
    return {"message": "Job deleted successfully"}

@router.patch(
    "/{job_id}/status",
    response_model=JobResponse,
    summary="Update job status",
    description="Ready stamps the completion time, delivered stamps the delivery time"
)
def update_job_status(
    job_id: int,
    status_update: JobStatusUpdate,
    service: JobService = Depends(get_job_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.job_to_response(service.update_job_status(job_id, status_update))

@router.patch(
    "/{job_id}/costs",
    response_model=JobResponse,
    summary="Update job costs",
    description="Set the estimate, labour or a manual final cost"
)
def update_job_costs(
    job_id: int,
    cost_update: JobCostUpdate,
    service: JobService = Depends(get_job_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.job_to_response(service.update_job_costs(job_id, cost_update))

@router.post(
    "/{job_id}/parts",
    response_model=JobResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add parts to a job"
)
def add_parts(
    job_id: int,
    parts: PartsAdd,
    service: JobService = Depends(get_job_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.job_to_response(service.add_parts(job_id, parts))

@router.patch("/{job_id}/parts/{part_id}", response_model=JobResponse, summary="Reprice a part")
def update_part(
    job_id: int,
    part_id: int,
    part_update: PartUpdate,
    service: JobService = Depends(get_job_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.job_to_response(service.update_part(job_id, part_id, part_update))

@router.delete("/{job_id}/parts/{part_id}", response_model=JobResponse, summary="Remove a part")
def remove_part(
    job_id: int,
    part_id: int,
    service: JobService = Depends(get_job_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.job_to_response(service.remove_part(job_id, part_id))

@router.post(
    "/{job_id}/services",
    response_model=JobResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add services to a job"
)
def add_services(
    job_id: int,
    services: ServicesAdd,
    service: JobService = Depends(get_job_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.job_to_response(service.add_services(job_id, services))

@router.patch("/{job_id}/services/{service_id}", response_model=JobResponse, summary="Update a service")
def update_service(
    job_id: int,
    service_id: int,
    service_update: ServiceUpdate,
    service: JobService = Depends(get_job_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.job_to_response(service.update_service(job_id, service_id, service_update))

@router.delete("/{job_id}/services/{service_id}", response_model=JobResponse, summary="Remove a service")
def remove_service(
    job_id: int,
    service_id: int,
    service: JobService = Depends(get_job_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.job_to_response(service.remove_service(job_id, service_id))
