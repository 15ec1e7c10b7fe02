"""Shared fixtures: an in-memory database per test and authenticated API clients."""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.database import Base, get_db
from main import app
from apps.auth.models import StaffUser, StaffRole
from apps.auth.services import get_password_hash, create_access_token
from apps.customers.models import Customer, Motorcycle
from apps.stock.models import StockItem
from apps.repairs.models import RepairJob, RepairPart, RepairService, JobStatus, PaymentStatus

TEST_PASSWORD = "workshop-secret"
_HASHED_PASSWORD = get_password_hash(TEST_PASSWORD)


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def staff_password():
    return TEST_PASSWORD


def _make_user(db, name, email, role):
    user = StaffUser(name=name, email=email, hashed_password=_HASHED_PASSWORD, role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def owner(db_session):
    return _make_user(db_session, "Owner", "owner@twowheels.co.uk", StaffRole.OWNER)


@pytest.fixture
def staff(db_session):
    return _make_user(db_session, "Mechanic", "mechanic@twowheels.co.uk", StaffRole.STAFF)


def _headers(user):
    token = create_access_token({"sub": user.email, "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def owner_headers(owner):
    return _headers(owner)


@pytest.fixture
def staff_headers(staff):
    return _headers(staff)


@pytest.fixture
def customer(db_session):
    customer = Customer(name="Jane Rider", phone="07700 900123", email="jane@example.com", address="1 High St")
    customer.motorcycles.append(Motorcycle(registration="AB12CDE", make="Honda", model="CB500F", year=2019))
    db_session.add(customer)
    db_session.commit()
    db_session.refresh(customer)
    return customer


@pytest.fixture
def motorcycle(customer):
    return customer.motorcycles[0]


@pytest.fixture
def stock_item(db_session):
    item = StockItem(name="Brake Pads", sku="BP-01", category="Brakes",
                     cost_price=4.0, sell_price=10.0, quantity=5, min_quantity=1)
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item


@pytest.fixture
def make_job(db_session, customer, motorcycle):
    """Build a job straight in the store, bypassing the API."""
    counter = {"n": 0}

    def _make(parts=(), services=(), labor_cost=None, final_cost=None, estimated_cost=None,
              status=JobStatus.RECEIVED, payment_status=PaymentStatus.UNPAID, **extra):
        counter["n"] += 1
        job = RepairJob(
            job_number=f"JOB-{100000 + counter['n']}",
            customer_id=customer.id,
            motorcycle_id=motorcycle.id,
            description="Full service",
            labor_cost=labor_cost,
            final_cost=final_cost,
            estimated_cost=estimated_cost,
            status=status,
            payment_status=payment_status,
            **extra
        )
        for quantity, unit_price, name in parts:
            job.parts.append(RepairPart(description=name, quantity=quantity, unit_price=unit_price))
        for description, price in services:
            job.services.append(RepairService(description=description, price=price))
        db_session.add(job)
        db_session.commit()
        db_session.refresh(job)
        return job

    return _make
