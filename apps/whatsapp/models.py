from core.database import Base
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum


class MessageStatus(str, enum.Enum):
    PENDING = "pending"
    QUEUED = "queued"
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    FAILED = "failed"


class WhatsAppTemplate(Base):
    __tablename__ = "whatsapp_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    category = Column(String(50), index=True, nullable=False)  # mot_reminder_30, oil_change, promotion_oil ...
    message_body = Column(Text, nullable=False)  # {{FirstName}}, {{VehicleModel}} ... are filled in per customer
    active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class WhatsAppMessage(Base):
    """Every message the workshop sent or tried to send"""
    __tablename__ = "whatsapp_messages"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    template_id = Column(Integer, ForeignKey("whatsapp_templates.id", ondelete="SET NULL"), nullable=True)
    template_category = Column(String(50), nullable=True)
    trigger_type = Column(String(50), nullable=False, default="manual")
    phone_number = Column(String(30), nullable=False)
    message_body = Column(Text, nullable=False)
    status = Column(SQLEnum(MessageStatus), nullable=False, default=MessageStatus.PENDING)
    provider_message_id = Column(String(255), nullable=True, index=True)
    error_message = Column(Text, nullable=True)
    sent_at = Column(DateTime, nullable=True)
    delivered_at = Column(DateTime, nullable=True)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    customer = relationship("Customer")
    template = relationship("WhatsAppTemplate")
