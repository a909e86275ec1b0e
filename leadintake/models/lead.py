from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from leadintake.models.base import Base


class Lead(Base):
    """Inbound prospect captured from the demo-request funnel.

    Holds the contact details submitted by the prospect, the scores computed
    at intake (``fit_score`` 0-60, ``engagement_score`` 0-100 and the
    weighted ``qualification_score``), the resulting stage and priority,
    and the sales rep picked by the assignment rule chain.

    The ``metadata`` column is mapped to ``lead_metadata`` because
    ``metadata`` is reserved on declarative classes.
    """

    __tablename__ = "crm_leads"
    id = Column(
        UUID(as_uuid=True), primary_key=True, server_default=func.gen_random_uuid()
    )
    lead_code = Column(String(50), unique=True, nullable=False)
    tenant_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    first_name = Column(String(100))
    last_name = Column(String(100))
    email = Column(String(255), nullable=False)
    phone = Column(String(50))
    company_name = Column(String(255))
    fleet_size = Column(String(20))
    country_code = Column(String(2))
    city = Column(String(100))
    website_url = Column(String(255))
    current_software = Column(String(100))
    message = Column(Text)
    source = Column(String(50))
    utm_source = Column(String(100))
    utm_medium = Column(String(100))
    utm_campaign = Column(String(100))
    lead_metadata = Column(
        "metadata", JSONB, nullable=False, server_default=text("'{}'::jsonb")
    )
    status = Column(String(30), nullable=False, server_default="new")
    lead_stage = Column(String(30), nullable=False, server_default="top_of_funnel")
    priority = Column(String(20), nullable=False, server_default="medium")
    fit_score = Column(Integer, nullable=False, server_default=text("0"))
    engagement_score = Column(Numeric(5, 2), nullable=False, server_default=text("0"))
    qualification_score = Column(Integer, nullable=False, server_default=text("0"))
    scoring = Column(JSONB)
    assigned_to = Column(UUID(as_uuid=True), ForeignKey("crm_agents.id"))
    gdpr_consent = Column(Boolean)
    consent_ip = Column(String(45))
    consent_at = Column(DateTime(timezone=True))
    last_activity_at = Column(DateTime(timezone=True))
    last_decayed_at = Column(DateTime(timezone=True))
    created_by = Column(UUID(as_uuid=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    deleted_at = Column(DateTime(timezone=True))

    assigned_agent = relationship("Agent", back_populates="leads")

    __table_args__ = (
        Index("idx_crm_leads_last_activity", "last_activity_at"),
        Index("idx_crm_leads_stage", "lead_stage"),
        CheckConstraint("fit_score >= 0", name="ck_crm_leads_fit_nonneg"),
        CheckConstraint(
            "engagement_score >= 0", name="ck_crm_leads_engagement_nonneg"
        ),
        CheckConstraint(
            "lead_stage IN ('top_of_funnel', 'marketing_qualified', "
            "'sales_qualified', 'opportunity')",
            name="ck_crm_leads_stage",
        ),
        CheckConstraint(
            "priority IN ('low', 'medium', 'high', 'urgent')",
            name="ck_crm_leads_priority",
        ),
    )
