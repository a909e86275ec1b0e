from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Request

from leadintake.api.deps import (
    get_agent_repo,
    get_lead_creation_service,
    get_lead_repo,
    get_scoring_engine,
)
from leadintake.core.rate_limit import limiter
from leadintake.repositories.agent_repository import AgentRepository
from leadintake.repositories.lead_repository import LeadRepository
from leadintake.schemas.lead import LeadCreate, LeadCreateResponse, LeadOut
from leadintake.schemas.scoring import RecalculationResult
from leadintake.services.lead_creation_service import LeadCreationService
from leadintake.services.lead_scoring import LeadScoringEngine

router = APIRouter(prefix="/leads", tags=["Leads"])


@router.post("", response_model=LeadCreateResponse, status_code=201)
@limiter.limit("10/minute")
async def create_lead(
    request: Request,
    lead_in: LeadCreate,
    x_tenant_id: UUID = Header(...),
    x_user_id: Optional[UUID] = Header(None),
    service: LeadCreationService = Depends(get_lead_creation_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
    agent_repo: AgentRepository = Depends(get_agent_repo),
) -> LeadCreateResponse:
    """Create, score and assign an inbound lead.

    Rate-limited to 10 requests/minute per IP.  Business logic is
    delegated to :class:`LeadCreationService`.
    """
    result = await service.create_lead(
        lead_in,
        tenant_id=x_tenant_id,
        lead_repo=lead_repo,
        agent_repo=agent_repo,
        created_by=x_user_id,
    )
    return LeadCreateResponse(
        lead=LeadOut.model_validate(result.lead),
        scoring=result.scoring,
        assignment=result.assignment,
    )


@router.post("/{lead_id}/recalculate", response_model=RecalculationResult)
async def recalculate_lead_scores(
    lead_id: UUID,
    engine: LeadScoringEngine = Depends(get_scoring_engine),
    lead_repo: LeadRepository = Depends(get_lead_repo),
) -> RecalculationResult:
    """Rescore a stored lead with the current scoring config."""
    return await engine.recalculate_scores(lead_id, lead_repo)
