from core.database import Base
from sqlalchemy import Column, Integer, String, Date, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), index=True, nullable=False)
    phone = Column(String(30), index=True, nullable=True)
    email = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Deleting a customer removes their bikes and repair history
    motorcycles = relationship("Motorcycle", back_populates="customer", cascade="all, delete-orphan")
    repair_jobs = relationship("RepairJob", back_populates="customer", cascade="all, delete-orphan")


class Motorcycle(Base):
    __tablename__ = "motorcycles"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)
    registration = Column(String(20), index=True, nullable=False)
    make = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    year = Column(Integer, nullable=True)
    mot_expiry_date = Column(Date, nullable=True)
    last_service_date = Column(Date, nullable=True)
    last_service_type = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    customer = relationship("Customer", back_populates="motorcycles")
    repair_jobs = relationship("RepairJob", back_populates="motorcycle")
