from sqlalchemy.orm import Session
from apps.auth.models import StaffUser, StaffRole
from apps.auth.schemas import UserCreate, UserUpdate
from core.database import get_db, settings, commit_or_fail
from fastapi import Depends, HTTPException, status
from passlib.context import CryptContext
from jose import JWTError, jwt
from fastapi.security import OAuth2PasswordBearer
from datetime import datetime, timedelta
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
ALGORITHM = "HS256"
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")


def get_password_hash(password):
    return pwd_context.hash(password)

def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)

def get_user_by_email(db: Session, email: str) -> Optional[StaffUser]:
    return db.query(StaffUser).filter(StaffUser.email == email).first()

def get_users(db: Session, skip: int = 0, limit: int = 100) -> List[StaffUser]:
    return db.query(StaffUser).order_by(StaffUser.name).offset(skip).limit(limit).all()

def create_user(db: Session, user: UserCreate) -> StaffUser:
    if get_user_by_email(db, user.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"User '{user.email}' already exists"
        )
    db_user = StaffUser(
        name=user.name,
        email=user.email,
        hashed_password=get_password_hash(user.password),
        role=StaffRole(user.role.value)
    )
    db.add(db_user)
    commit_or_fail(db, "create user")
    db.refresh(db_user)
    logger.info(f"Created {db_user.role.value} account {db_user.email}")
    return db_user

def update_user(db: Session, user_id: int, user_update: UserUpdate) -> StaffUser:
    db_user = db.query(StaffUser).filter(StaffUser.id == user_id).first()
    if not db_user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    update_data = user_update.model_dump(exclude_unset=True)
    if "password" in update_data:
        db_user.hashed_password = get_password_hash(update_data.pop("password"))
    if update_data.get("role") is not None:
        update_data["role"] = StaffRole(update_data["role"].value)

    for field, value in update_data.items():
        setattr(db_user, field, value)

    commit_or_fail(db, "update user")
    db.refresh(db_user)
    return db_user

def authenticate_user(db: Session, email: str, password: str):
    user = get_user_by_email(db, email)
    if user and user.is_active and verify_password(password, user.hashed_password):
        return user
    return None

def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt

def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> StaffUser:
    """Resolve the bearer token into the staff member making this request."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Your session expired, log in again",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
        email: str = payload.get("sub")
        if email is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception
    user = get_user_by_email(db, email)
    if user is None or not user.is_active:
        raise credentials_exception
    return user


def get_current_owner(current_user: StaffUser = Depends(get_current_user)) -> StaffUser:
    if current_user.role != StaffRole.OWNER:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Owner privileges required")
    return current_user
