from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from typing import List

from apps.auth.schemas import Token, UserCreate, UserUpdate, UserResponse
from apps.auth.models import StaffUser
from apps.auth.services import (
    get_db, create_user, update_user, get_users, authenticate_user,
    create_access_token, get_current_user, get_current_owner
)

router = APIRouter()


@router.post("/token", response_model=Token)
def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    user = authenticate_user(db, email=form_data.username, password=form_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(data={"sub": user.email, "role": user.role.value})
    return {"access_token": access_token, "token_type": "bearer", "role": user.role.value}


@router.get("/me", response_model=UserResponse)
def read_users_me(current_user: StaffUser = Depends(get_current_user)):
    """Return the signed-in staff member, including the role the UI gates on."""
    return current_user


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a staff account (owner only)"
)
def create_new_user(user: UserCreate, db: Session = Depends(get_db), owner: StaffUser = Depends(get_current_owner)):
    return create_user(db, user)


@router.get("/users", response_model=List[UserResponse], summary="List staff accounts (owner only)")
def list_users(skip: int = 0, limit: int = 100, db: Session = Depends(get_db), owner: StaffUser = Depends(get_current_owner)):
    return get_users(db, skip=skip, limit=limit)


@router.patch("/users/{user_id}", response_model=UserResponse, summary="Update a staff account (owner only)")
def update_existing_user(
    user_id: int,
    user_update: UserUpdate,
    db: Session = Depends(get_db),
    owner: StaffUser = Depends(get_current_owner)
):
    return update_user(db, user_id, user_update)
