import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from leadintake.core.cache import CacheService
from leadintake.core.config import settings
from leadintake.repositories.crm_settings_repository import CrmSettingsRepository
from leadintake.repositories.lead_repository import LeadRepository
from leadintake.schemas.common import DecayType, LeadStage
from leadintake.schemas.crm_settings import DecayConfig, ScoringConfig
from leadintake.schemas.decay import DecayDetail, DecaySweepResult
from leadintake.services.crm_settings import CrmSettingsService
from leadintake.services.lead_scoring import calculate_qualification_score

logger = logging.getLogger(__name__)

# Redis key held for the duration of a sweep
_LEASE_KEY = "score_decay:lease"


def apply_decay(engagement: float, config: DecayConfig) -> float:
    """Return the decayed engagement score, never below ``minimum_score``.

    A score already at or under the floor is returned unchanged.
    """
    if engagement <= config.minimum_score:
        return engagement
    if config.decay_type == DecayType.percentage:
        decayed = engagement * (1 - config.decay_value / 100)
    else:
        decayed = engagement - config.decay_value
    return round(max(decayed, config.minimum_score), 2)


def last_seen(lead: Any) -> Optional[datetime]:
    return lead.last_activity_at or lead.created_at


def is_inactive(lead: Any, threshold: datetime) -> bool:
    """True when the lead has had no activity since *threshold*.

    Leads without ``last_activity_at`` are judged on ``created_at``; a lead
    with neither timestamp is inactive.
    """
    seen = last_seen(lead)
    return seen is None or seen < threshold


class ScoreDecayJob:
    """Degrade engagement scores of leads that have gone quiet.

    Each pass loads the decay and scoring documents once and uses them for
    every lead in the pass.  Leads are processed one at a time and a
    failure on one lead is recorded in the result rather than aborting the
    sweep.
    """

    def __init__(self, settings_service: CrmSettingsService) -> None:
        self._settings = settings_service

    async def degrade_inactive_scores(
        self,
        lead_repo: LeadRepository,
        now: Optional[datetime] = None,
        dry_run: bool = False,
    ) -> DecaySweepResult:
        decay_config = await self._settings.load_decay_config()
        if not decay_config.enabled:
            logger.info("Score decay is disabled; nothing to do")
            return DecaySweepResult(dry_run=dry_run)

        scoring_config = await self._settings.load_scoring_config()
        now = now or datetime.now(timezone.utc)
        threshold = now - timedelta(days=decay_config.inactivity_threshold_days)

        leads = await lead_repo.find_inactive_since(threshold)
        result = DecaySweepResult(dry_run=dry_run)

        for lead in leads:
            if lead.lead_stage == LeadStage.opportunity.value:
                continue
            if not is_inactive(lead, threshold):
                continue
            result.processed += 1

            try:
                detail = await self._decay_lead(
                    lead, lead_repo, decay_config, scoring_config, now, dry_run
                )
            except Exception as exc:
                logger.warning("Score decay failed for lead %s", lead.id, exc_info=True)
                result.errors += 1
                result.details.append(
                    DecayDetail(lead_id=lead.id, status="error", error=str(exc))
                )
                continue

            result.details.append(detail)
            if detail.status == "degraded":
                result.degraded += 1
                if detail.stage_changed:
                    result.stage_changes += 1

        if not dry_run and result.degraded:
            await lead_repo.commit()

        logger.info(
            "Score decay sweep%s: processed=%d degraded=%d stage_changes=%d errors=%d",
            " (dry run)" if dry_run else "",
            result.processed,
            result.degraded,
            result.stage_changes,
            result.errors,
        )
        return result

    async def _decay_lead(
        self,
        lead: Any,
        lead_repo: LeadRepository,
        decay_config: DecayConfig,
        scoring_config: ScoringConfig,
        now: datetime,
        dry_run: bool,
    ) -> DecayDetail:
        stored_engagement = lead.engagement_score or 0
        previous = float(stored_engagement)
        new = apply_decay(previous, decay_config)

        seen = last_seen(lead)
        days_inactive = (now - seen).days if seen else None

        if new == previous:
            return DecayDetail(
                lead_id=lead.id,
                status="unchanged",
                previous_engagement=previous,
                new_engagement=new,
                previous_stage=lead.lead_stage,
                new_stage=lead.lead_stage,
                days_inactive=days_inactive,
            )

        qualification = calculate_qualification_score(
            int(lead.fit_score or 0), new, scoring_config
        )
        new_stage = qualification.lead_stage.value
        detail = DecayDetail(
            lead_id=lead.id,
            status="degraded",
            previous_engagement=previous,
            new_engagement=new,
            previous_stage=lead.lead_stage,
            new_stage=new_stage,
            stage_changed=lead.lead_stage != new_stage,
            days_inactive=days_inactive,
        )
        if dry_run:
            return detail

        written = await lead_repo.update_if_engagement_unchanged(
            lead.id,
            stored_engagement,
            {
                "engagement_score": new,
                "qualification_score": qualification.qualification_score,
                "lead_stage": new_stage,
                "scoring": _merge_breakdown(lead.scoring, qualification),
                "last_decayed_at": now,
            },
        )
        if not written:
            # Another sweep got there first
            logger.info("Lead %s changed during the sweep; skipped", lead.id)
            return detail.model_copy(update={"status": "skipped", "stage_changed": False})
        return detail


def _merge_breakdown(stored: Optional[Dict[str, Any]], qualification) -> Dict[str, Any]:
    breakdown = dict(stored or {})
    engagement = dict(breakdown.get("engagement") or {})
    engagement["total"] = qualification.engagement_score
    breakdown["engagement"] = engagement
    breakdown["qualification"] = qualification.breakdown.qualification.model_dump(
        mode="json"
    )
    return breakdown


async def run_score_decay_sweep(
    session_factory: Callable[..., AsyncSession],
    cache: Optional[CacheService] = None,
    dry_run: bool = False,
) -> Optional[DecaySweepResult]:
    """One-shot: run a decay sweep under a Redis lease.

    Parameters:
        session_factory: An async context-manager callable that yields
            an ``AsyncSession`` (e.g. ``AsyncSessionLocal``).
        cache: Shared cache; also holds the lease.  Without Redis the
            lease is always granted.
        dry_run: Compute the result without writing.  Dry runs do not
            take the lease.

    Returns ``None`` when another sweep holds the lease.
    """
    cache = cache or CacheService()
    owner = uuid4().hex

    if not dry_run and not await cache.acquire_lease(
        _LEASE_KEY, owner, settings.SCORE_DECAY_LEASE_SECONDS
    ):
        logger.info("Another score decay sweep holds the lease; skipping this run")
        return None

    try:
        async with session_factory() as session:
            settings_service = CrmSettingsService(CrmSettingsRepository(session), cache)
            job = ScoreDecayJob(settings_service)
            return await job.degrade_inactive_scores(
                LeadRepository(session), dry_run=dry_run
            )
    finally:
        if not dry_run:
            await cache.release_lease(_LEASE_KEY, owner)


async def start_score_decay_loop(
    session_factory: Callable[..., AsyncSession],
    cache: Optional[CacheService] = None,
) -> None:
    """Infinite loop that runs the decay sweep on a fixed interval."""
    logger.info(
        "Score decay background task started (interval=%ds)",
        settings.SCORE_DECAY_INTERVAL_SECONDS,
    )
    while True:
        try:
            await run_score_decay_sweep(session_factory, cache)
        except Exception:
            logger.error("Score decay sweep failed", exc_info=True)
        await asyncio.sleep(settings.SCORE_DECAY_INTERVAL_SECONDS)
