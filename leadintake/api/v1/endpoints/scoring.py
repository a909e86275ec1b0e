from fastapi import APIRouter, Depends, Query

from leadintake.api.deps import (
    get_cache_service,
    get_scoring_engine,
    get_session_factory,
    get_settings_service,
)
from leadintake.core.cache import CacheService
from leadintake.core.exceptions import DecaySweepInProgressError
from leadintake.schemas.decay import DecaySweepResult
from leadintake.schemas.scoring import LeadScoringInput, ScoringPreviewResponse
from leadintake.services.crm_settings import CrmSettingsService
from leadintake.services.lead_priority import resolve_priority
from leadintake.services.lead_scoring import LeadScoringEngine
from leadintake.services.score_decay import run_score_decay_sweep

router = APIRouter(prefix="/scoring", tags=["Scoring"])


@router.post("/preview", response_model=ScoringPreviewResponse)
async def preview_scores(
    lead_attrs: LeadScoringInput,
    engine: LeadScoringEngine = Depends(get_scoring_engine),
    settings_service: CrmSettingsService = Depends(get_settings_service),
) -> ScoringPreviewResponse:
    """Score lead attributes without creating a lead."""
    scoring = await engine.calculate_lead_scores(lead_attrs)
    priority = await resolve_priority(scoring.qualification_score, settings_service)
    return ScoringPreviewResponse(scoring=scoring, priority=priority)


@router.post("/decay", response_model=DecaySweepResult)
async def run_decay_sweep(
    dry_run: bool = Query(False),
    cache: CacheService = Depends(get_cache_service),
    session_factory=Depends(get_session_factory),
) -> DecaySweepResult:
    """Run one score decay sweep now (``dry_run`` reports without writing)."""
    result = await run_score_decay_sweep(session_factory, cache, dry_run=dry_run)
    if result is None:
        raise DecaySweepInProgressError()
    return result
