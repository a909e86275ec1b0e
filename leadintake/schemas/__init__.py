"""Pydantic schemas package: re-exports for convenience."""

# Common enums
from leadintake.schemas.common import (
    AgentStatus as AgentStatus,
    DecayType as DecayType,
    LeadStage as LeadStage,
    LeadStatus as LeadStatus,
    Priority as Priority,
)

# Rule documents
from leadintake.schemas.crm_settings import (
    AssignmentRulesConfig as AssignmentRulesConfig,
    DecayConfig as DecayConfig,
    PriorityConfig as PriorityConfig,
    ScoringConfig as ScoringConfig,
)

# Scoring
from leadintake.schemas.scoring import (
    LeadScoringInput as LeadScoringInput,
    QualificationResult as QualificationResult,
    RecalculationResult as RecalculationResult,
    ScoringBreakdown as ScoringBreakdown,
)

# Assignment
from leadintake.schemas.assignment import (
    AssignmentResult as AssignmentResult,
    EligibleAgent as EligibleAgent,
    LeadAssignmentInput as LeadAssignmentInput,
)

# Decay
from leadintake.schemas.decay import (
    DecayDetail as DecayDetail,
    DecaySweepResult as DecaySweepResult,
)

# Lead intake
from leadintake.schemas.lead import (
    LeadCreate as LeadCreate,
    LeadCreateResponse as LeadCreateResponse,
    LeadCreationResult as LeadCreationResult,
    LeadOut as LeadOut,
)

from leadintake.schemas.notification import NotificationResult as NotificationResult
