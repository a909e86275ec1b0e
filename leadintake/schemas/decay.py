from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

DecayStatus = Literal["degraded", "unchanged", "skipped", "error"]


class DecayDetail(BaseModel):
    """What the sweep did to one lead."""

    lead_id: UUID
    status: DecayStatus
    previous_engagement: Optional[float] = None
    new_engagement: Optional[float] = None
    previous_stage: Optional[str] = None
    new_stage: Optional[str] = None
    stage_changed: bool = False
    days_inactive: Optional[int] = None
    error: Optional[str] = None


class DecaySweepResult(BaseModel):
    processed: int = 0
    degraded: int = 0
    stage_changes: int = 0
    errors: int = 0
    dry_run: bool = False
    details: List[DecayDetail] = Field(default_factory=list)
