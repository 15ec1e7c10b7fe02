from fastapi import APIRouter, Depends, status, Query
from typing import Optional
import math

from apps.customers.schemas import (
    CustomerCreate, CustomerUpdate, CustomerResponse, CustomerDetailResponse,
    CustomerListResponse, MotorcycleCreate, MotorcycleUpdate, MotorcycleResponse
)
from apps.customers.services import CustomerService, get_customer_service
from apps.auth.services import get_current_user
from apps.auth.models import StaffUser

router = APIRouter()


@router.post(
    "/",
    response_model=CustomerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a customer",
    description="Create a customer, optionally with their motorcycles"
)
def create_customer(
    customer: CustomerCreate,
    service: CustomerService = Depends(get_customer_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.create_customer(customer)

@router.get(
    "/",
    response_model=CustomerListResponse,
    summary="Get all customers",
    description="Search by name, phone, e-mail or motorcycle registration"
)
def get_customers(
    skip: int = Query(0, ge=0, description="Number of items to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Number of items to return"),
    search: Optional[str] = Query(None, description="Search in name, phone, e-mail, registration"),
    service: CustomerService = Depends(get_customer_service),
    current_user: StaffUser = Depends(get_current_user)
):
    customers, total = service.get_customers(skip=skip, limit=limit, search=search)

    total_pages = math.ceil(total / limit) if limit > 0 else 1
    current_page = (skip // limit) + 1 if limit > 0 else 1

    return CustomerListResponse(
        items=customers,
        total=total,
        page=current_page,
        size=limit,
        total_pages=total_pages
    )

@router.get(
    "/{customer_id}",
    response_model=CustomerDetailResponse,
    summary="Get customer detail",
    description="Customer with motorcycles, repair history and totals"
)
def get_customer(
    customer_id: int,
    service: CustomerService = Depends(get_customer_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.customer_detail(customer_id)

@router.put("/{customer_id}", response_model=CustomerResponse, summary="Update customer")
def update_customer(
    customer_id: int,
    customer_update: CustomerUpdate,
    service: CustomerService = Depends(get_customer_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.update_customer(customer_id, customer_update)

@router.delete(
    "/{customer_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete customer",
    description="Delete a customer and, with them, their motorcycles and repair jobs"
)
def delete_customer(
    customer_id: int,
    service: CustomerService = Depends(get_customer_service),
    current_user: StaffUser = Depends(get_current_user)
):
    service.delete_customer(customer_id)
    return {"message": "Customer deleted successfully"}

@router.post(
    "/{customer_id}/motorcycles",
    response_model=MotorcycleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a motorcycle to a customer"
)
def add_motorcycle(
    customer_id: int,
    motorcycle: MotorcycleCreate,
    service: CustomerService = Depends(get_customer_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.add_motorcycle(customer_id, motorcycle)

@router.put("/motorcycles/{motorcycle_id}", response_model=MotorcycleResponse, summary="Update motorcycle")
def update_motorcycle(
    motorcycle_id: int,
    motorcycle_update: MotorcycleUpdate,
    service: CustomerService = Depends(get_customer_service),
    current_user: StaffUser = Depends(get_current_user)
):
    return service.update_motorcycle(motorcycle_id, motorcycle_update)

@router.delete("/motorcycles/{motorcycle_id}", summary="Delete motorcycle")
def delete_motorcycle(
    motorcycle_id: int,
    service: CustomerService = Depends(get_customer_service),
    current_user: StaffUser = Depends(get_current_user)
):
    service.delete_motorcycle(motorcycle_id)
    return {"message": "Motorcycle deleted successfully"}
