"""WhatsApp reminder and promotion rules.

Nothing in here touches the database or the network. The service layer
loads customers, bikes and the message log into the plain records below and
gets back the list of messages that should go out.

Triggers, per bike:
- MOT expiring within 30 days (but more than 7 days away)
- MOT expiring within 7 days
- Last service 6 months ago or more (oil change)

Triggers, per customer (from their most recent repair job):
- No visit for 12 months
- No visit for 6 months

Frequency caps, checked against the customer's message log:
- at most max_promo_per_week promotional messages in the last 7 days
- at most max_messages_per_month messages of any kind in the last 30 days
MOT reminders are urgent and skip both caps.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Optional, Sequence
import random
import re

MOT_30 = "mot_reminder_30"
MOT_7 = "mot_reminder_7"
OIL_CHANGE = "oil_change"
INACTIVE_6M = "inactive_6m"
INACTIVE_12M = "inactive_12m"

TRIGGER_CATEGORIES = (MOT_30, MOT_7, OIL_CHANGE, INACTIVE_6M, INACTIVE_12M)
PROMOTION_CATEGORIES = ("promotion_free_check", "promotion_oil", "promotion_brake", "pass_by", "seasonal")

# Trigger types written to the message log
TRIGGER_TYPES = {
    MOT_30: "mot_reminder",
    MOT_7: "mot_reminder_urgent",
    OIL_CHANGE: "oil_change",
    INACTIVE_6M: "inactive_reactivation",
    INACTIVE_12M: "inactive_reactivation",
}
PROMO_TRIGGER_TYPES = ("promotion", "campaign", "high_value", "pass_by")
URGENT_CATEGORIES = (MOT_30, MOT_7)

WEEK = timedelta(days=7)
MONTH = timedelta(days=30)
SIX_MONTHS = timedelta(days=180)
TWELVE_MONTHS = timedelta(days=365)

_VARIABLE = re.compile(r"\{\{(\w+)\}\}")


@dataclass(frozen=True)
class FrequencyCaps:
    max_promo_per_week: int = 1
    max_messages_per_month: int = 2


@dataclass(frozen=True)
class LoggedMessage:
    """One row of a customer's message history"""
    trigger_type: str
    created_at: datetime
    template_category: Optional[str] = None


@dataclass(frozen=True)
class BikeFacts:
    id: int
    make: str
    model: str
    registration: str
    mot_expiry_date: Optional[date] = None
    last_service_date: Optional[date] = None


@dataclass(frozen=True)
class CustomerFacts:
    id: int
    name: str
    phone: Optional[str]
    bikes: Sequence[BikeFacts] = ()
    last_visit: Optional[datetime] = None


@dataclass(frozen=True)
class DueMessage:
    """A reminder that a customer qualifies for, before caps and templates are applied"""
    customer_id: int
    category: str
    variables: Dict[str, str] = field(default_factory=dict)
    motorcycle_id: Optional[int] = None

    @property
    def trigger_type(self) -> str:
        return TRIGGER_TYPES[self.category]

    @property
    def is_urgent(self) -> bool:
        return self.category in URGENT_CATEGORIES


def render_template(body: str, variables: Dict[str, str]) -> str:
    """Replace {{Name}} placeholders. Known names with no value become empty; unknown ones are left as typed."""
    def _swap(match):
        name = match.group(1)
        if name not in variables:
            return match.group(0)
        return variables[name] or ""
    return _VARIABLE.sub(_swap, body)


def template_variables(customer_name: str, bike: Optional[BikeFacts] = None, with_plate: bool = True) -> Dict[str, str]:
    full_name = (customer_name or "").strip()
    return {
        "FirstName": full_name.split(" ")[0] if full_name else "",
        "FullName": full_name,
        "VehicleModel": f"{bike.make} {bike.model}" if bike else "vehicle",
        "LicensePlate": bike.registration if bike and with_plate else "",
    }


def can_send_to(
    history: Iterable[LoggedMessage],
    now: datetime,
    is_urgent: bool = False,
    caps: FrequencyCaps = FrequencyCaps()
) -> bool:
    """Whether one more message may go to a customer with this history"""
    if is_urgent:
        return True

    week_start = now - WEEK
    month_start = now - MONTH
    promos_this_week = 0
    messages_this_month = 0
    for message in history:
        if message.created_at >= month_start:
            messages_this_month += 1
        if message.created_at >= week_start and message.trigger_type in PROMO_TRIGGER_TYPES:
            promos_this_week += 1

    if promos_this_week >= caps.max_promo_per_week:
        return False
    return messages_this_month < caps.max_messages_per_month


def recently_sent(history: Iterable[LoggedMessage], category: str, now: datetime, window: timedelta = MONTH) -> bool:
    """A reminder of this kind already went to the customer inside the window"""
    since = now - window
    return any(m.template_category == category and m.created_at >= since for m in history)


def _as_datetime(day: date) -> datetime:
    return datetime.combine(day, time.min)


def bike_triggers(customer: CustomerFacts, bike: BikeFacts, now: datetime) -> List[DueMessage]:
    due = []
    variables = template_variables(customer.name, bike)

    if bike.mot_expiry_date:
        expires = _as_datetime(bike.mot_expiry_date)
        if now + WEEK < expires <= now + MONTH:
            due.append(DueMessage(customer.id, MOT_30, variables, bike.id))
        elif now < expires <= now + WEEK:
            due.append(DueMessage(customer.id, MOT_7, variables, bike.id))

    if bike.last_service_date and _as_datetime(bike.last_service_date) <= now - SIX_MONTHS:
        due.append(DueMessage(customer.id, OIL_CHANGE, variables, bike.id))

    return due


def inactivity_trigger(customer: CustomerFacts, now: datetime) -> Optional[DueMessage]:
    """Customers who have been in before but not for six or twelve months. Never-seen customers are left alone."""
    if customer.last_visit is None:
        return None

    first_bike = customer.bikes[0] if customer.bikes else None
    variables = template_variables(customer.name, first_bike)

    if customer.last_visit <= now - TWELVE_MONTHS:
        return DueMessage(customer.id, INACTIVE_12M, variables, first_bike.id if first_bike else None)
    if customer.last_visit <= now - SIX_MONTHS:
        return DueMessage(customer.id, INACTIVE_6M, variables, first_bike.id if first_bike else None)
    return None


def due_messages(customer: CustomerFacts, now: datetime) -> List[DueMessage]:
    """Every reminder a customer qualifies for today, bike by bike then inactivity"""
    if not (customer.phone or "").strip():
        return []

    due = []
    for bike in customer.bikes:
        due.extend(bike_triggers(customer, bike, now))

    inactive = inactivity_trigger(customer, now)
    if inactive:
        due.append(inactive)
    return due


def pick_promotion_template(templates: Sequence, recently_used_ids: Iterable[int], rng: Optional[random.Random] = None):
    """Random promotion, preferring one that has not gone out in the last 30 days"""
    if not templates:
        return None
    rng = rng or random.Random()
    used = set(recently_used_ids)
    fresh = [t for t in templates if t.id not in used]
    return rng.choice(fresh or list(templates))
