from core.database import Base
from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey, CheckConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum


class JobStatus(str, enum.Enum):
    RECEIVED = "received"
    DIAGNOSING = "diagnosing"
    WAITING_PARTS = "waiting_parts"
    IN_REPAIR = "in_repair"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    UNPAID = "unpaid"
    PAID = "paid"


class RepairJob(Base):
    __tablename__ = "repair_jobs"

    id = Column(Integer, primary_key=True, index=True)
    job_number = Column(String(50), unique=True, index=True, nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)
    motorcycle_id = Column(Integer, ForeignKey("motorcycles.id"), nullable=False)

    # Job details
    description = Column(Text, nullable=False)
    diagnosis = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(SQLEnum(JobStatus), default=JobStatus.RECEIVED, nullable=False)

    # Financial information
    estimated_cost = Column(Float, nullable=True)
    final_cost = Column(Float, nullable=True)  # Manual override, and the snapshot taken when paid
    labor_cost = Column(Float, nullable=True)
    invoice_number = Column(String(50), unique=True, nullable=True)
    payment_status = Column(SQLEnum(PaymentStatus), default=PaymentStatus.UNPAID, nullable=False)
    payment_date = Column(DateTime, nullable=True)

    # Timestamps
    received_at = Column(DateTime, default=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)
    delivered_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Bumped on every write, compared when marking paid
    version = Column(Integer, nullable=False, default=1)

    # Relationships
    customer = relationship("Customer", back_populates="repair_jobs")
    motorcycle = relationship("Motorcycle", back_populates="repair_jobs")
    parts = relationship("RepairPart", back_populates="repair_job", cascade="all, delete-orphan",
                         order_by="RepairPart.id")
    services = relationship("RepairService", back_populates="repair_job", cascade="all, delete-orphan",
                            order_by="RepairService.id")

    __mapper_args__ = {"version_id_col": version}


class RepairPart(Base):
    """A part used on a job. stock_item_id is empty for parts bought in for this job only."""
    __tablename__ = "repair_parts"

    id = Column(Integer, primary_key=True, index=True)
    repair_job_id = Column(Integer, ForeignKey("repair_jobs.id", ondelete="CASCADE"), nullable=False)
    stock_item_id = Column(Integer, ForeignKey("stock_items.id"), nullable=True)
    description = Column(String(255), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, default=datetime.utcnow)

    repair_job = relationship("RepairJob", back_populates="parts")
    stock_item = relationship("StockItem")

    __table_args__ = (CheckConstraint("quantity >= 1", name="ck_repair_parts_quantity_positive"),)

    @property
    def name(self) -> str:
        if self.stock_item is not None:
            return self.stock_item.name
        return self.description or "Unknown"

    @property
    def is_manual(self) -> bool:
        return self.stock_item_id is None


class RepairService(Base):
    __tablename__ = "repair_services"

    id = Column(Integer, primary_key=True, index=True)
    repair_job_id = Column(Integer, ForeignKey("repair_jobs.id", ondelete="CASCADE"), nullable=False)
    description = Column(String(255), nullable=False)
    price = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, default=datetime.utcnow)

    repair_job = relationship("RepairJob", back_populates="services")
