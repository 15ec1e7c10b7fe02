from pydantic import BaseModel, Field, validator
from typing import Dict


class SettingsResponse(BaseModel):
    workshop_name: str
    workshop_phone: str
    workshop_email: str
    workshop_address: str
    currency: str
    vat_rate: float


class SettingsUpdate(BaseModel):
    values: Dict[str, str] = Field(..., description="Setting key to new value")

    @validator('values')
    def vat_rate_in_range(cls, v):
        if 'vat_rate' in v:
            try:
                rate = float(v['vat_rate'])
            except ValueError:
                raise ValueError("vat_rate must be a number")
            if not 0 <= rate <= 100:
                raise ValueError("vat_rate must be between 0 and 100")
        return v
