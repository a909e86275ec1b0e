"""Lead-specific Pydantic schemas (intake request and responses)."""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from leadintake.schemas.assignment import AgentId
from leadintake.schemas.common import Priority
from leadintake.schemas.scoring import LeadScoringInput


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class LeadCreate(BaseModel):
    """Inbound lead as submitted by the demo-request form or an integration.

    ``priority`` and ``assigned_to_id`` are optional manual overrides; when
    present they replace the computed values.
    """

    email: EmailStr
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    company_name: Optional[str] = Field(None, max_length=255)
    fleet_size: Optional[str] = Field(None, max_length=20)
    country_code: Optional[str] = Field(None, min_length=2, max_length=2)
    city: Optional[str] = Field(None, max_length=100)
    website_url: Optional[str] = Field(None, max_length=255)
    current_software: Optional[str] = Field(None, max_length=100)
    message: Optional[str] = None
    source: Optional[str] = Field(None, max_length=50)
    utm_source: Optional[str] = Field(None, max_length=100)
    utm_medium: Optional[str] = Field(None, max_length=100)
    utm_campaign: Optional[str] = Field(None, max_length=100)
    metadata: Optional[Dict[str, Any]] = Field(default_factory=dict)

    gdpr_consent: Optional[bool] = None
    consent_ip: Optional[str] = Field(None, max_length=45)

    priority: Optional[Priority] = None
    assigned_to_id: Optional[UUID] = None

    @field_validator("country_code", mode="before")
    @classmethod
    def upper_country(cls, value: Any) -> Any:
        # Blank means no country; length is checked on the stripped code
        if isinstance(value, str):
            return value.strip().upper() or None
        return value

    @field_validator("metadata", mode="before")
    @classmethod
    def metadata_or_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    def scoring_input(self) -> LeadScoringInput:
        return LeadScoringInput(
            fleet_size=self.fleet_size,
            country_code=self.country_code,
            message=self.message,
            phone=self.phone,
            metadata=self.metadata,
        )

    @property
    def display_name(self) -> str:
        name = " ".join(p for p in (self.first_name, self.last_name) if p)
        return name or self.email.split("@")[0]


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeadOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    lead_code: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    fleet_size: Optional[str] = None
    country_code: Optional[str] = None
    status: str
    lead_stage: str
    priority: str
    fit_score: int
    engagement_score: float
    qualification_score: int
    assigned_to: Optional[UUID] = None
    metadata: Dict[str, Any] = Field(
        default_factory=dict, validation_alias="lead_metadata"
    )
    created_at: Optional[datetime] = None


class LeadScoringSummary(BaseModel):
    fit_score: int
    engagement_score: float
    qualification_score: int
    lead_stage: str


class LeadAssignmentSummary(BaseModel):
    assigned_to: Optional[AgentId] = None
    assignment_reason: str


class LeadCreationResult(BaseModel):
    """Return value of lead creation; also the POST /leads response body."""

    lead: Any
    scoring: LeadScoringSummary
    assignment: LeadAssignmentSummary


class LeadCreateResponse(BaseModel):
    success: bool = True
    lead: LeadOut
    scoring: LeadScoringSummary
    assignment: LeadAssignmentSummary
