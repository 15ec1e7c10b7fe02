from sqlalchemy.orm import Session
from fastapi import Depends
from typing import Dict
import logging
import math

from apps.settings.models import WorkshopSetting
from apps.invoices.pricing import DEFAULT_VAT_RATE
from core.database import get_db, commit_or_fail

logger = logging.getLogger(__name__)

DEFAULTS = {
    "workshop_name": "Two Wheels Motorcycles",
    "workshop_phone": "",
    "workshop_email": "",
    "workshop_address": "",
    "currency": "£",
    "vat_rate": f"{DEFAULT_VAT_RATE:g}",
    "whatsapp_max_promo_per_week": "1",
    "whatsapp_max_messages_per_month": "2",
}


def parse_vat_rate(raw) -> float:
    """Read a stored VAT percentage, falling back to the default when it is unusable."""
    if raw is None or str(raw).strip() == "":
        return DEFAULT_VAT_RATE
    try:
        rate = float(raw)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring unparsable vat_rate setting {raw!r}, using {DEFAULT_VAT_RATE}")
        return DEFAULT_VAT_RATE
    if math.isnan(rate) or not 0 <= rate <= 100:
        logger.warning(f"Ignoring out of range vat_rate setting {raw!r}, using {DEFAULT_VAT_RATE}")
        return DEFAULT_VAT_RATE
    return rate


class WorkshopSettingsService:
    def __init__(self, db: Session):
        self.db = db

    def get_map(self) -> Dict[str, str]:
        """All settings, stored values layered over the defaults"""
        values = dict(DEFAULTS)
        for row in self.db.query(WorkshopSetting).all():
            values[row.key] = row.value
        return values

    def get_vat_rate(self) -> float:
        row = self.db.query(WorkshopSetting).filter(WorkshopSetting.key == "vat_rate").first()
        return parse_vat_rate(row.value if row else None)

    def get_currency(self) -> str:
        row = self.db.query(WorkshopSetting).filter(WorkshopSetting.key == "currency").first()
        return row.value if row and row.value else DEFAULTS["currency"]

    def as_response(self) -> Dict:
        values = self.get_map()
        return {
            "workshop_name": values["workshop_name"],
            "workshop_phone": values["workshop_phone"],
            "workshop_email": values["workshop_email"],
            "workshop_address": values["workshop_address"],
            "currency": values["currency"] or DEFAULTS["currency"],
            "vat_rate": parse_vat_rate(values["vat_rate"]),
        }

    def update(self, values: Dict[str, str]) -> Dict:
        """Upsert each key"""
        for key, value in values.items():
            row = self.db.query(WorkshopSetting).filter(WorkshopSetting.key == key).first()
            if row:
                row.value = value
            else:
                self.db.add(WorkshopSetting(key=key, value=value))

        commit_or_fail(self.db, "save workshop settings")
        logger.info(f"Updated workshop settings: {', '.join(sorted(values))}")
        return self.as_response()

# Dependency injection
def get_settings_service(db: Session = Depends(get_db)) -> WorkshopSettingsService:
    return WorkshopSettingsService(db)
