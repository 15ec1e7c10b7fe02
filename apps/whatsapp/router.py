from fastapi import APIRouter, Depends, status, Query
from typing import List, Optional
from datetime import datetime

from apps.whatsapp.schemas import (
    TemplateCreate, TemplateUpdate, TemplateResponse,
    MessageResponse, MessageStatus, MessageStatusUpdate,
    TriggerRunResponse, PromotionRunResponse, MessageStats
)
from apps.whatsapp.services import WhatsAppService, get_whatsapp_service
from apps.auth.services import get_current_owner
from apps.auth.models import StaffUser

router = APIRouter()

# ============ AUTOMATION ============

@router.post(
    "/run-triggers",
    response_model=TriggerRunResponse,
    summary="Send due reminders",
    description="MOT, oil change and inactive customer reminders, within each customer's frequency caps (Owner only)"
)
def run_triggers(
    now: Optional[datetime] = Query(None, description="Evaluate as of this time instead of now"),
    service: WhatsAppService = Depends(get_whatsapp_service),
    owner: StaffUser = Depends(get_current_owner)
):
    return service.run_triggers(now=now)

@router.post(
    "/run-promotion",
    response_model=PromotionRunResponse,
    summary="Send a promotion",
    description="Pick a promotion not used in the last 30 days and send it to every customer under their caps (Owner only)"
)
def run_promotion(
    service: WhatsAppService = Depends(get_whatsapp_service),
    owner: StaffUser = Depends(get_current_owner)
):
    return service.run_promotion()

@router.get(
    "/stats",
    response_model=MessageStats,
    summary="Message counts for the last 30 days"
)
def get_stats(
    service: WhatsAppService = Depends(get_whatsapp_service),
    owner: StaffUser = Depends(get_current_owner)
):
    return service.stats()

# ============ MESSAGE LOG ============

@router.get(
    "/messages",
    response_model=List[MessageResponse],
    summary="Message log"
)
def list_messages(
    customer_id: Optional[int] = Query(None),
    status_filter: Optional[MessageStatus] = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=1000),
    service: WhatsAppService = Depends(get_whatsapp_service),
    owner: StaffUser = Depends(get_current_owner)
):
    return service.get_messages(customer_id=customer_id, status_filter=status_filter, limit=limit)

@router.patch(
    "/messages/{message_id}/status",
    response_model=MessageResponse,
    summary="Record delivery status",
    description="Sent, delivered, read or failed as reported by the messaging provider"
)
def update_message_status(
    message_id: int,
    update: MessageStatusUpdate,
    service: WhatsAppService = Depends(get_whatsapp_service),
    owner: StaffUser = Depends(get_current_owner)
):
    return service.update_message_status(message_id, update)

# ============ TEMPLATES ============

@router.get(
    "/templates",
    response_model=List[TemplateResponse],
    summary="Message templates"
)
def list_templates(
    service: WhatsAppService = Depends(get_whatsapp_service),
    owner: StaffUser = Depends(get_current_owner)
):
    return service.get_templates()

@router.post(
    "/templates",
    response_model=TemplateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a message template"
)
def create_template(
    template: TemplateCreate,
    service: WhatsAppService = Depends(get_whatsapp_service),
    owner: StaffUser = Depends(get_current_owner)
):
    return service.create_template(template)

@router.patch(
    "/templates/{template_id}",
    response_model=TemplateResponse,
    summary="Edit or switch off a message template"
)
def update_template(
    template_id: int,
    template_update: TemplateUpdate,
    service: WhatsAppService = Depends(get_whatsapp_service),
    owner: StaffUser = Depends(get_current_owner)
):
    return service.update_template(template_id, template_update)
