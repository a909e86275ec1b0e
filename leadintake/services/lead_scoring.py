import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Mapping, Optional, Tuple, Union
from uuid import UUID

from leadintake.core.constants import UNKNOWN_FLEET_SIZE
from leadintake.core.exceptions import LeadNotFoundError
from leadintake.repositories.lead_repository import LeadRepository
from leadintake.schemas.common import LeadStage
from leadintake.schemas.crm_settings import ScoreBand, ScoringConfig
from leadintake.schemas.scoring import (
    EngagementBreakdown,
    FitBreakdown,
    LeadScoringInput,
    QualificationBreakdown,
    QualificationResult,
    RecalculationResult,
    ScoringBreakdown,
)
from leadintake.services.crm_settings import CrmSettingsService

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Band and rounding helpers
# ---------------------------------------------------------------------------


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero (69.5 -> 70)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def match_band(value: float, bands: Mapping[str, ScoreBand]) -> int:
    """Points of the most demanding band whose ``min`` *value* exceeds.

    Bands are scanned from the highest ``min`` down and a band matches
    only when ``value > min``.  When none matches, the default band (the
    one without ``min``) applies, or 0 if there is none.
    """
    default_points = 0
    thresholded = []
    for band in bands.values():
        if band.min is None:
            default_points = band.points
        else:
            thresholded.append(band)

    for band in sorted(thresholded, key=lambda b: b.min, reverse=True):
        if value > band.min:
            return band.points
    return default_points


def _metric(metadata: Optional[Mapping[str, Any]], key: str) -> float:
    value = (metadata or {}).get(key)
    if value is None or isinstance(value, bool):
        return 0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0


# ---------------------------------------------------------------------------
# Fit score
# ---------------------------------------------------------------------------


def _fit_components(
    fleet_size: Optional[str], country_code: Optional[str], config: ScoringConfig
) -> Tuple[int, int]:
    tiers = config.fleet_size_points
    fleet_tier = tiers.get(fleet_size or UNKNOWN_FLEET_SIZE) or tiers[UNKNOWN_FLEET_SIZE]

    code = (country_code or "").strip().upper()
    country_points = config.default_country_tier[1].points
    if code:
        for tier in config.country_tier_points.values():
            if code in tier.countries:
                country_points = tier.points
                break

    return fleet_tier.points, country_points


def calculate_fit_score(
    fleet_size: Optional[str], country_code: Optional[str], config: ScoringConfig
) -> int:
    """Fleet tier points plus the points of the first country tier listing the code.

    An unrecognised or missing fleet size scores as the ``unknown`` tier; an
    unlisted or missing country scores as the default tier.  The range is
    whatever the config allows; nothing is clamped here.
    """
    fleet_points, country_points = _fit_components(fleet_size, country_code, config)
    return fleet_points + country_points


# ---------------------------------------------------------------------------
# Engagement score
# ---------------------------------------------------------------------------


def _engagement_components(
    message: Optional[str],
    phone: Optional[str],
    metadata: Optional[Mapping[str, Any]],
    config: ScoringConfig,
) -> Tuple[int, int, int, int]:
    message_points = match_band(
        len((message or "").strip()), config.message_length_thresholds
    )

    if phone and phone.strip():
        phone_points = config.phone_points.provided
    else:
        phone_points = config.phone_points.missing

    page_views_points = match_band(
        _metric(metadata, "page_views"), config.page_views_thresholds
    )
    time_on_site_points = match_band(
        _metric(metadata, "time_on_site"), config.time_on_site_thresholds
    )
    return message_points, phone_points, page_views_points, time_on_site_points


def calculate_engagement_score(
    message: Optional[str],
    phone: Optional[str],
    metadata: Optional[Mapping[str, Any]],
    config: ScoringConfig,
) -> int:
    """Sum of message length, phone, page view and time-on-site band points."""
    return sum(_engagement_components(message, phone, metadata, config))


# ---------------------------------------------------------------------------
# Qualification score and stage
# ---------------------------------------------------------------------------


def _stage_for(score: int, config: ScoringConfig) -> LeadStage:
    for stage, minimum in config.qualification_stage_thresholds.ordered():
        if score >= minimum:
            return stage
    return LeadStage.top_of_funnel


def _qualification(
    fit_score: int, engagement_score: float, config: ScoringConfig
) -> QualificationBreakdown:
    weights = config.qualification_weights
    score = round_half_up(fit_score * weights.fit + engagement_score * weights.engagement)
    return QualificationBreakdown(
        formula=f"(fit × {weights.fit}) + (engagement × {weights.engagement})",
        fit_weight=weights.fit,
        engagement_weight=weights.engagement,
        total=score,
        stage=_stage_for(score, config),
    )


def calculate_qualification_score(
    fit_score: int, engagement_score: float, config: ScoringConfig
) -> QualificationResult:
    """Weighted, rounded qualification score and the stage it lands in.

    Only the totals are known here, so the per-dimension points in the
    breakdown are left at zero.  Use :func:`calculate_lead_scores` for a
    fully populated breakdown.
    """
    qualification = _qualification(fit_score, engagement_score, config)
    return QualificationResult(
        fit_score=fit_score,
        engagement_score=engagement_score,
        qualification_score=qualification.total,
        lead_stage=qualification.stage,
        breakdown=ScoringBreakdown(
            fit=FitBreakdown(total=fit_score),
            engagement=EngagementBreakdown(total=engagement_score),
            qualification=qualification,
        ),
    )


def calculate_lead_scores(
    lead_attrs: Union[LeadScoringInput, Dict[str, Any]], config: ScoringConfig
) -> QualificationResult:
    """Score a lead end to end with a full per-dimension breakdown."""
    if not isinstance(lead_attrs, LeadScoringInput):
        lead_attrs = LeadScoringInput.model_validate(lead_attrs)

    fleet_points, country_points = _fit_components(
        lead_attrs.fleet_size, lead_attrs.country_code, config
    )
    message_points, phone_points, page_views_points, time_points = (
        _engagement_components(
            lead_attrs.message, lead_attrs.phone, lead_attrs.metadata, config
        )
    )
    fit_score = fleet_points + country_points
    engagement_score = message_points + phone_points + page_views_points + time_points
    qualification = _qualification(fit_score, engagement_score, config)

    return QualificationResult(
        fit_score=fit_score,
        engagement_score=engagement_score,
        qualification_score=qualification.total,
        lead_stage=qualification.stage,
        breakdown=ScoringBreakdown(
            fit=FitBreakdown(
                fleet_points=fleet_points,
                country_points=country_points,
                total=fit_score,
            ),
            engagement=EngagementBreakdown(
                message_points=message_points,
                phone_points=phone_points,
                page_views_points=page_views_points,
                time_on_site_points=time_points,
                total=engagement_score,
            ),
            qualification=qualification,
        ),
    )


class LeadScoringEngine:
    """Score leads against the ``lead_scoring_config`` document.

    The pure functions in this module do the math; this class only loads
    the config.  A missing or malformed document raises
    ``ConfigurationError``: there is no fallback set of weights.
    """

    def __init__(self, settings_service: CrmSettingsService) -> None:
        self._settings = settings_service

    async def load_config(self) -> ScoringConfig:
        return await self._settings.load_scoring_config()

    async def calculate_lead_scores(
        self, lead_attrs: Union[LeadScoringInput, Dict[str, Any]]
    ) -> QualificationResult:
        config = await self.load_config()
        return calculate_lead_scores(lead_attrs, config)

    async def recalculate_scores(
        self, lead_id: UUID, lead_repo: LeadRepository
    ) -> RecalculationResult:
        """Rescore a stored lead with the current config and persist the result.

        Raises:
            LeadNotFoundError: *lead_id* does not exist or was deleted.
            ConfigurationError: the scoring document is missing or malformed.
        """
        lead = await lead_repo.get_by_id(lead_id)
        if lead is None:
            raise LeadNotFoundError(f"Lead not found: {lead_id}")

        config = await self.load_config()
        scoring = calculate_lead_scores(
            LeadScoringInput(
                fleet_size=lead.fleet_size,
                country_code=lead.country_code,
                message=lead.message,
                phone=lead.phone,
                metadata=lead.lead_metadata,
            ),
            config,
        )

        previous_score = lead.qualification_score or 0
        previous_stage = lead.lead_stage

        await lead_repo.update(
            lead.id,
            {
                "fit_score": scoring.fit_score,
                "engagement_score": scoring.engagement_score,
                "qualification_score": scoring.qualification_score,
                "lead_stage": scoring.lead_stage.value,
                "scoring": scoring.breakdown.model_dump(mode="json"),
            },
        )
        await lead_repo.commit()

        stage_changed = previous_stage != scoring.lead_stage.value
        logger.info(
            "Rescored lead %s: %s -> %s (%s -> %s)",
            lead.id,
            previous_score,
            scoring.qualification_score,
            previous_stage,
            scoring.lead_stage.value,
        )
        return RecalculationResult(
            lead_id=lead.id,
            previous_qualification_score=previous_score,
            new_qualification_score=scoring.qualification_score,
            previous_stage=previous_stage,
            new_stage=scoring.lead_stage,
            stage_changed=stage_changed,
            scoring=scoring,
        )
