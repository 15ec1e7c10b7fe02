from core.database import Base
from sqlalchemy import Column, String, Text, DateTime
from datetime import datetime


class WorkshopSetting(Base):
    __tablename__ = "workshop_settings"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False, default="")
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
