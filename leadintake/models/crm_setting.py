from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from leadintake.models.base import Base


class CrmSetting(Base):
    """Versioned JSON rule document keyed by name.

    The engine reads four keys: ``lead_scoring_config``,
    ``lead_assignment_rules``, ``lead_priority_config`` and
    ``score_decay``.
    """

    __tablename__ = "crm_settings"
    setting_key = Column(String(100), primary_key=True)
    setting_value = Column(JSONB, nullable=False)
    version = Column(Integer, nullable=False, server_default="1")
    is_active = Column(Boolean, nullable=False, server_default="true")
    description = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
