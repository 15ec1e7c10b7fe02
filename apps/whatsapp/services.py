from sqlalchemy.orm import Session
from fastapi import HTTPException, status, Depends
from typing import Dict, List, Optional
from datetime import datetime
from urllib.parse import quote
import random
import logging

from apps.whatsapp.models import WhatsAppMessage, WhatsAppTemplate, MessageStatus
from apps.whatsapp.schemas import TemplateCreate, TemplateUpdate, MessageStatusUpdate
from apps.whatsapp.automation import (
    BikeFacts, CustomerFacts, FrequencyCaps, LoggedMessage, MONTH,
    PROMOTION_CATEGORIES, TRIGGER_CATEGORIES,
    can_send_to, due_messages, pick_promotion_template, recently_sent,
    render_template, template_variables
)
from apps.whatsapp.transport import MessageTransport, TransportError, get_transport
from apps.customers.models import Customer
from apps.invoices.services import format_phone_for_whatsapp
from apps.settings.services import WorkshopSettingsService
from core.database import get_db, commit_or_fail

logger = logging.getLogger(__name__)

CAP_SETTINGS = {
    "max_promo_per_week": ("whatsapp_max_promo_per_week", 1),
    "max_messages_per_month": ("whatsapp_max_messages_per_month", 2),
}


def parse_cap(raw, default: int) -> int:
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        logger.warning(f"Ignoring unparsable WhatsApp cap {raw!r}, using {default}")
        return default
    return value if value >= 0 else default


class WhatsAppService:
    def __init__(self, db: Session, transport: MessageTransport):
        self.db = db
        self.transport = transport
        self.settings = WorkshopSettingsService(db)

    def caps(self) -> FrequencyCaps:
        values = self.settings.get_map()
        return FrequencyCaps(**{
            name: parse_cap(values.get(key), default) for name, (key, default) in CAP_SETTINGS.items()
        })

    # ============ TEMPLATES ============

    def get_templates(self) -> List[WhatsAppTemplate]:
        return self.db.query(WhatsAppTemplate).order_by(WhatsAppTemplate.category, WhatsAppTemplate.id).all()

    def get_template_or_404(self, template_id: int) -> WhatsAppTemplate:
        template = self.db.query(WhatsAppTemplate).filter(WhatsAppTemplate.id == template_id).first()
        if not template:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Template not found"
            )
        return template

    def create_template(self, template_data: TemplateCreate) -> WhatsAppTemplate:
        template = WhatsAppTemplate(**template_data.model_dump())
        self.db.add(template)
        commit_or_fail(self.db, "save template")
        self.db.refresh(template)
        return template

    def update_template(self, template_id: int, template_update: TemplateUpdate) -> WhatsAppTemplate:
        template = self.get_template_or_404(template_id)
        for field, value in template_update.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(template, field, value)
        commit_or_fail(self.db, "save template")
        self.db.refresh(template)
        return template

    def _active_templates(self, categories) -> Dict[str, WhatsAppTemplate]:
        """First active template per category"""
        by_category = {}
        rows = self.db.query(WhatsAppTemplate).filter(
            WhatsAppTemplate.active.is_(True),
            WhatsAppTemplate.category.in_(categories)
        ).order_by(WhatsAppTemplate.id).all()
        for template in rows:
            by_category.setdefault(template.category, template)
        return by_category

    # ============ MESSAGE LOG ============

    def _history(self, customer_id: int, now: datetime) -> List[LoggedMessage]:
        """Messages that count towards a customer's caps. Failed sends never reached them."""
        rows = self.db.query(WhatsAppMessage).filter(
            WhatsAppMessage.customer_id == customer_id,
            WhatsAppMessage.created_at >= now - MONTH,
            WhatsAppMessage.status != MessageStatus.FAILED
        ).all()
        return [LoggedMessage(m.trigger_type, m.created_at, m.template_category) for m in rows]

    def _dispatch(
        self,
        customer: Customer,
        body: str,
        trigger_type: str,
        template: Optional[WhatsAppTemplate],
        now: datetime
    ) -> WhatsAppMessage:
        """Log the message, then hand it to the transport and record the outcome"""
        message = WhatsAppMessage(
            customer_id=customer.id,
            template_id=template.id if template else None,
            template_category=template.category if template else None,
            trigger_type=trigger_type,
            phone_number=format_phone_for_whatsapp(customer.phone),
            message_body=body,
            status=MessageStatus.PENDING,
            created_at=now
        )
        self.db.add(message)
        commit_or_fail(self.db, "log WhatsApp message")

        try:
            result = self.transport.send(message.phone_number, body)
        except TransportError as exc:
            message.status = MessageStatus.FAILED
            message.error_message = str(exc)
            logger.warning(f"WhatsApp {trigger_type} to customer {customer.id} failed: {exc}")
        else:
            message.status = MessageStatus(result.status)
            message.provider_message_id = result.provider_message_id
            if message.status == MessageStatus.SENT:
                message.sent_at = now

        commit_or_fail(self.db, "update WhatsApp message")
        self.db.refresh(message)
        return message

    def message_to_response(self, message: WhatsAppMessage) -> Dict:
        return {
            "id": message.id,
            "customer_id": message.customer_id,
            "template_id": message.template_id,
            "template_category": message.template_category,
            "trigger_type": message.trigger_type,
            "phone_number": message.phone_number,
            "message_body": message.message_body,
            "status": message.status.value,
            "error_message": message.error_message,
            "sent_at": message.sent_at,
            "delivered_at": message.delivered_at,
            "read_at": message.read_at,
            "created_at": message.created_at,
            "whatsapp_url": f"https://wa.me/{message.phone_number}?text={quote(message.message_body)}",
        }

    def get_messages(
        self,
        customer_id: Optional[int] = None,
        status_filter: Optional[MessageStatus] = None,
        limit: int = 100
    ) -> List[Dict]:
        query = self.db.query(WhatsAppMessage)
        if customer_id is not None:
            query = query.filter(WhatsAppMessage.customer_id == customer_id)
        if status_filter:
            query = query.filter(WhatsAppMessage.status == MessageStatus(status_filter.value))
        rows = query.order_by(WhatsAppMessage.created_at.desc(), WhatsAppMessage.id.desc()).limit(limit).all()
        return [self.message_to_response(m) for m in rows]

    def update_message_status(self, message_id: int, update: MessageStatusUpdate, now: Optional[datetime] = None) -> Dict:
        """Record what the provider reported for a message"""
        now = now or datetime.utcnow()
        message = self.db.query(WhatsAppMessage).filter(WhatsAppMessage.id == message_id).first()
        if not message:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Message not found"
            )

        message.status = MessageStatus(update.status.value)
        if message.status == MessageStatus.SENT:
            message.sent_at = message.sent_at or now
        elif message.status == MessageStatus.DELIVERED:
            message.delivered_at = now
        elif message.status == MessageStatus.READ:
            message.read_at = now
        elif message.status == MessageStatus.FAILED:
            message.error_message = update.error_message

        commit_or_fail(self.db, "update WhatsApp message")
        self.db.refresh(message)
        return self.message_to_response(message)

    # ============ AUTOMATION ============

    def _customers_with_phone(self) -> List[Customer]:
        return self.db.query(Customer).filter(
            Customer.phone.isnot(None),
            Customer.phone != ""
        ).order_by(Customer.id).all()

    def _customer_facts(self, customer: Customer) -> CustomerFacts:
        bikes = tuple(
            BikeFacts(
                id=bike.id,
                make=bike.make,
                model=bike.model,
                registration=bike.registration,
                mot_expiry_date=bike.mot_expiry_date,
                last_service_date=bike.last_service_date,
            )
            for bike in sorted(customer.motorcycles, key=lambda b: b.id)
        )
        visits = [job.created_at for job in customer.repair_jobs if job.created_at]
        return CustomerFacts(
            id=customer.id,
            name=customer.name,
            phone=customer.phone,
            bikes=bikes,
            last_visit=max(visits) if visits else None,
        )

    def run_triggers(self, now: Optional[datetime] = None) -> Dict:
        """Send every MOT, oil change and inactivity reminder that is due and allowed"""
        now = now or datetime.utcnow()
        caps = self.caps()
        templates = self._active_templates(TRIGGER_CATEGORIES)
        results = {category: 0 for category in TRIGGER_CATEGORIES}
        skipped = 0
        sent = []

        for customer in self._customers_with_phone():
            history = self._history(customer.id, now)
            for due in due_messages(self._customer_facts(customer), now):
                template = templates.get(due.category)
                if template is None or recently_sent(history, due.category, now):
                    continue
                if not can_send_to(history, now, is_urgent=due.is_urgent, caps=caps):
                    skipped += 1
                    continue

                body = render_template(template.message_body, due.variables)
                sent.append(self._dispatch(customer, body, due.trigger_type, template, now))
                history.append(LoggedMessage(due.trigger_type, now, due.category))
                results[due.category] += 1

        logger.info(f"WhatsApp triggers: {results}, {skipped} held back by frequency caps")
        return {
            "results": results,
            "skipped_by_caps": skipped,
            "messages": [self.message_to_response(m) for m in sent],
        }

    def run_promotion(self, now: Optional[datetime] = None, rng: Optional[random.Random] = None) -> Dict:
        """Send one promotion to every customer whose caps allow it"""
        now = now or datetime.utcnow()
        promotions = list(self._active_templates(PROMOTION_CATEGORIES).values())
        if not promotions:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No promotion templates found"
            )

        recent = self.db.query(WhatsAppMessage.template_id).filter(
            WhatsAppMessage.trigger_type.in_(("promotion", "campaign")),
            WhatsAppMessage.created_at >= now - MONTH
        ).all()
        template = pick_promotion_template(promotions, [row.template_id for row in recent], rng)

        caps = self.caps()
        sent = 0
        skipped = 0
        for customer in self._customers_with_phone():
            if not can_send_to(self._history(customer.id, now), now, caps=caps):
                skipped += 1
                continue
            first_bike = min(customer.motorcycles, key=lambda b: b.id) if customer.motorcycles else None
            variables = template_variables(customer.name, first_bike, with_plate=False)
            self._dispatch(customer, render_template(template.message_body, variables), "promotion", template, now)
            sent += 1

        logger.info(f"WhatsApp promotion '{template.name}' sent to {sent} customer(s), {skipped} held back")
        return {"sent": sent, "skipped_by_caps": skipped, "template_used": template.name}

    def stats(self, now: Optional[datetime] = None) -> Dict:
        """Message counts for the last 30 days"""
        now = now or datetime.utcnow()
        rows = self.db.query(WhatsAppMessage.status).filter(WhatsAppMessage.created_at >= now - MONTH).all()
        counts = {s: 0 for s in MessageStatus}
        for row in rows:
            counts[row.status] += 1

        caps = self.caps()
        return {
            "total_sent": len(rows),
            "queued": counts[MessageStatus.QUEUED],
            "delivered": counts[MessageStatus.DELIVERED],
            "read": counts[MessageStatus.READ],
            "failed": counts[MessageStatus.FAILED],
            "max_promo_per_week": caps.max_promo_per_week,
            "max_messages_per_month": caps.max_messages_per_month,
        }

# Dependency injection
def get_whatsapp_service(
    db: Session = Depends(get_db),
    transport: MessageTransport = Depends(get_transport)
) -> WhatsAppService:
    return WhatsAppService(db, transport)
