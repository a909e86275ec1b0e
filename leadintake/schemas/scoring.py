"""Scoring inputs, results and the audit breakdown stored on each lead."""

from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from leadintake.schemas.common import LeadStage


class LeadScoringInput(BaseModel):
    """Lead attributes the scoring engine reads."""

    fleet_size: Optional[str] = None
    country_code: Optional[str] = None
    message: Optional[str] = None
    phone: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("country_code")
    @classmethod
    def upper_country(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().upper() if value else None


class FitBreakdown(BaseModel):
    fleet_points: int = 0
    country_points: int = 0
    total: int


class EngagementBreakdown(BaseModel):
    message_points: int = 0
    phone_points: int = 0
    page_views_points: int = 0
    time_on_site_points: int = 0
    total: float


class QualificationBreakdown(BaseModel):
    formula: str
    fit_weight: float
    engagement_weight: float
    total: int
    stage: LeadStage


class ScoringBreakdown(BaseModel):
    fit: FitBreakdown
    engagement: EngagementBreakdown
    qualification: QualificationBreakdown


class QualificationResult(BaseModel):
    fit_score: int = Field(..., ge=0)
    engagement_score: float = Field(..., ge=0)
    qualification_score: int = Field(..., ge=0)
    lead_stage: LeadStage
    breakdown: ScoringBreakdown


class RecalculationResult(BaseModel):
    """Outcome of rescoring a stored lead."""

    lead_id: UUID
    previous_qualification_score: int
    new_qualification_score: int
    previous_stage: Optional[str] = None
    new_stage: LeadStage
    stage_changed: bool
    scoring: QualificationResult


class ScoringPreviewResponse(BaseModel):
    """Scores and priority a lead would get, without persisting anything."""

    scoring: QualificationResult
    priority: str
