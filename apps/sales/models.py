from core.database import Base
from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey, CheckConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum


class InventoryStatus(str, enum.Enum):
    AVAILABLE = "available"
    RESERVED = "reserved"
    SOLD = "sold"


class BikeCondition(str, enum.Enum):
    NEW = "new"
    USED = "used"
    REFURBISHED = "refurbished"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    TRANSFER = "transfer"
    FINANCE = "finance"
    CARD = "card"


class AccessorySale(Base):
    """Over the counter sale of accessories from stock"""
    __tablename__ = "accessory_sales"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    total = Column(Float, nullable=False, default=0.0)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    customer = relationship("Customer")
    items = relationship("AccessorySaleItem", back_populates="sale", cascade="all, delete-orphan")


class AccessorySaleItem(Base):
    __tablename__ = "accessory_sale_items"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_accessory_sale_items_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("accessory_sales.id", ondelete="CASCADE"), nullable=False)
    stock_item_id = Column(Integer, ForeignKey("stock_items.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Float, nullable=False, default=0.0)  # Price at time of sale
    created_at = Column(DateTime, default=datetime.utcnow)

    sale = relationship("AccessorySale", back_populates="items")
    stock_item = relationship("StockItem")

    @property
    def name(self) -> str:
        return self.stock_item.name if self.stock_item else "Unknown"

    @property
    def line_total(self) -> float:
        return self.quantity * self.unit_price


class MotorcycleInventory(Base):
    """Bikes the workshop has for sale"""
    __tablename__ = "motorcycle_inventory"

    id = Column(Integer, primary_key=True, index=True)
    make = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    year = Column(Integer, nullable=True)
    color = Column(String(50), nullable=True)
    registration = Column(String(20), index=True, nullable=True)
    vin = Column(String(50), nullable=True)
    mileage = Column(Integer, default=0)
    condition = Column(SQLEnum(BikeCondition), nullable=False, default=BikeCondition.USED)
    cost_price = Column(Float, nullable=False, default=0.0)
    sell_price = Column(Float, nullable=False, default=0.0)
    status = Column(SQLEnum(InventoryStatus), nullable=False, default=InventoryStatus.AVAILABLE, index=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    sales = relationship("MotorcycleSale", back_populates="inventory_item")


class MotorcycleSale(Base):
    __tablename__ = "motorcycle_sales"

    id = Column(Integer, primary_key=True, index=True)
    inventory_id = Column(Integer, ForeignKey("motorcycle_inventory.id", ondelete="SET NULL"), nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    sale_price = Column(Float, nullable=False, default=0.0)
    cost_price = Column(Float, nullable=False, default=0.0)  # Copied from inventory when sold
    sale_date = Column(DateTime, default=datetime.utcnow, index=True)
    payment_method = Column(SQLEnum(PaymentMethod), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    inventory_item = relationship("MotorcycleInventory", back_populates="sales")
    customer = relationship("Customer")

    @property
    def profit(self) -> float:
        return (self.sale_price or 0.0) - (self.cost_price or 0.0)
