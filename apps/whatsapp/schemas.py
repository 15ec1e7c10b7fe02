from pydantic import BaseModel, Field, validator
from typing import Optional, List, Dict
from datetime import datetime
from enum import Enum

from apps.whatsapp.automation import TRIGGER_CATEGORIES, PROMOTION_CATEGORIES


class MessageStatus(str, Enum):
    PENDING = "pending"
    QUEUED = "queued"
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    FAILED = "failed"

class ProviderStatus(str, Enum):
    """Statuses a provider webhook may report"""
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    FAILED = "failed"

# ============ TEMPLATES ============

class TemplateBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., description="Which reminder or promotion this template is for")
    message_body: str = Field(..., min_length=1, description="Text with {{FirstName}}, {{FullName}}, {{VehicleModel}}, {{LicensePlate}}")
    active: bool = True

    @validator('category')
    def known_category(cls, v):
        if v not in TRIGGER_CATEGORIES + PROMOTION_CATEGORIES:
            raise ValueError(f"Unknown template category {v!r}")
        return v

class TemplateCreate(TemplateBase):
    pass

class TemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    message_body: Optional[str] = Field(None, min_length=1)
    active: Optional[bool] = None

class TemplateResponse(TemplateBase):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

# ============ MESSAGES ============

class MessageResponse(BaseModel):
    id: int
    customer_id: int
    template_id: Optional[int]
    template_category: Optional[str]
    trigger_type: str
    phone_number: str
    message_body: str
    status: MessageStatus
    error_message: Optional[str]
    sent_at: Optional[datetime]
    delivered_at: Optional[datetime]
    read_at: Optional[datetime]
    created_at: datetime
    whatsapp_url: str

class MessageStatusUpdate(BaseModel):
    status: ProviderStatus
    error_message: Optional[str] = None

class TriggerRunResponse(BaseModel):
    results: Dict[str, int]
    skipped_by_caps: int
    messages: List[MessageResponse]

class PromotionRunResponse(BaseModel):
    sent: int
    skipped_by_caps: int
    template_used: Optional[str]

class MessageStats(BaseModel):
    total_sent: int
    queued: int
    delivered: int
    read: int
    failed: int
    max_promo_per_week: int
    max_messages_per_month: int
