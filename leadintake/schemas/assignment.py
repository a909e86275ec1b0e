from typing import Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

AgentId = Union[UUID, int, str]


class LeadAssignmentInput(BaseModel):
    """The two lead attributes the assignment rule chain looks at."""

    fleet_size: Optional[str] = None
    country_code: Optional[str] = None

    @field_validator("country_code")
    @classmethod
    def upper_country(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().upper() if value else None


class EligibleAgent(BaseModel):
    """Minimal view of an agent used by the assignment engine."""

    model_config = ConfigDict(from_attributes=True)

    id: AgentId
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    title: Optional[str] = None
    status: Optional[str] = None


class AssignmentResult(BaseModel):
    """Which agent got the lead and why.

    ``matched_rule`` and ``eligible_employees_count`` are ``None`` only when
    nobody could be assigned.
    """

    assigned_to: Optional[AgentId] = None
    assignment_reason: str
    matched_rule: Optional[str] = None
    eligible_employees_count: Optional[int] = None
