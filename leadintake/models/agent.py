from sqlalchemy import CheckConstraint, Column, DateTime, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from leadintake.models.base import Base


class Agent(Base):
    """Sales employee who can receive inbound leads.

    ``title`` is free text; the assignment rules match it against SQL
    ``LIKE`` patterns such as ``%Senior%Account%Manager%``.  Only rows
    with ``status = 'active'`` and no ``deleted_at`` are eligible.
    """

    __tablename__ = "crm_agents"
    id = Column(
        UUID(as_uuid=True), primary_key=True, server_default=func.gen_random_uuid()
    )
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    title = Column(String(150))
    status = Column(String(20), nullable=False, server_default="active")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    deleted_at = Column(DateTime(timezone=True))

    leads = relationship("Lead", back_populates="assigned_agent")

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'inactive')", name="ck_crm_agents_status"
        ),
    )
