"""Typed rule documents parsed from ``crm_settings`` JSON values.

The engine never reads the raw JSON blobs directly.  Each document is
validated into one of the models below when it is loaded, so a missing
key or a negative point value is rejected once, at the boundary, instead
of surfacing later as a ``KeyError`` in the middle of the scoring math.

Title patterns in assignment rules use SQL ``LIKE`` syntax and are
compiled to regular expressions when the document is parsed.
"""

import re
from typing import Any, Dict, List, Optional, Pattern, Tuple

from pydantic import BaseModel, Field, PrivateAttr, field_validator, model_validator
from typing_extensions import Self

from leadintake.core.constants import UNKNOWN_FLEET_SIZE
from leadintake.schemas.common import DecayType, LeadStage


def like_to_regex(pattern: str) -> Pattern[str]:
    """Compile a SQL ``LIKE`` pattern into a case-insensitive regex.

    ``%`` matches any run of characters and ``_`` exactly one; every
    other character is literal.  Use with ``fullmatch``.
    """
    parts: List[str] = []
    for char in pattern:
        if char == "%":
            parts.append(".*")
        elif char == "_":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


def _normalise_countries(countries: List[str]) -> List[str]:
    return [c.strip().upper() for c in countries if c and c.strip()]


# ---------------------------------------------------------------------------
# lead_scoring_config
# ---------------------------------------------------------------------------


class FleetSizeTier(BaseModel):
    vehicles: Optional[int] = None
    points: int = Field(..., ge=0)


class CountryTier(BaseModel):
    countries: List[str] = Field(default_factory=list)
    points: int = Field(..., ge=0)

    @field_validator("countries")
    @classmethod
    def normalise(cls, value: List[str]) -> List[str]:
        return _normalise_countries(value)


class ScoreBand(BaseModel):
    """One band of a threshold table; a band without ``min`` is the default."""

    min: Optional[float] = None
    points: int = Field(..., ge=0)


class PhonePoints(BaseModel):
    provided: int = Field(..., ge=0)
    missing: int = Field(0, ge=0)


class QualificationWeights(BaseModel):
    fit: float = Field(..., ge=0)
    engagement: float = Field(..., ge=0)


class StageThresholds(BaseModel):
    sales_qualified: float
    marketing_qualified: float
    top_of_funnel: float = 0

    def ordered(self) -> List[Tuple[LeadStage, float]]:
        """Return ``(stage, min)`` pairs, highest minimum first."""
        pairs = [
            (LeadStage.sales_qualified, self.sales_qualified),
            (LeadStage.marketing_qualified, self.marketing_qualified),
            (LeadStage.top_of_funnel, self.top_of_funnel),
        ]
        return sorted(pairs, key=lambda pair: pair[1], reverse=True)


def _check_band_table(name: str, bands: Dict[str, ScoreBand]) -> Dict[str, ScoreBand]:
    if not bands:
        raise ValueError(f"{name} must define at least one band")
    defaults = [key for key, band in bands.items() if band.min is None]
    if len(defaults) > 1:
        raise ValueError(
            f"{name} may define only one default band (found {', '.join(defaults)})"
        )
    return bands


class ScoringConfig(BaseModel):
    """Weights and thresholds for fit, engagement and qualification scoring."""

    version: int = 1
    fleet_size_points: Dict[str, FleetSizeTier]
    country_tier_points: Dict[str, CountryTier]
    message_length_thresholds: Dict[str, ScoreBand]
    phone_points: PhonePoints
    page_views_thresholds: Dict[str, ScoreBand]
    time_on_site_thresholds: Dict[str, ScoreBand]
    qualification_weights: QualificationWeights
    qualification_stage_thresholds: StageThresholds

    @field_validator("fleet_size_points")
    @classmethod
    def require_unknown_tier(
        cls, value: Dict[str, FleetSizeTier]
    ) -> Dict[str, FleetSizeTier]:
        if UNKNOWN_FLEET_SIZE not in value:
            raise ValueError(
                f"fleet_size_points must define an '{UNKNOWN_FLEET_SIZE}' tier"
            )
        return value

    @field_validator("country_tier_points")
    @classmethod
    def require_default_country_tier(
        cls, value: Dict[str, CountryTier]
    ) -> Dict[str, CountryTier]:
        if not any(not tier.countries for tier in value.values()):
            raise ValueError(
                "country_tier_points must define a default tier with no countries"
            )
        return value

    @field_validator(
        "message_length_thresholds", "page_views_thresholds", "time_on_site_thresholds"
    )
    @classmethod
    def check_bands(cls, value: Dict[str, ScoreBand], info) -> Dict[str, ScoreBand]:
        return _check_band_table(info.field_name, value)

    @property
    def default_country_tier(self) -> Tuple[str, CountryTier]:
        """The last tier without countries (the lowest-priority catch-all)."""
        defaults = [
            (name, tier)
            for name, tier in self.country_tier_points.items()
            if not tier.countries
        ]
        return defaults[-1]

    @property
    def max_fit_score(self) -> int:
        return max(t.points for t in self.fleet_size_points.values()) + max(
            t.points for t in self.country_tier_points.values()
        )

    @property
    def max_engagement_score(self) -> int:
        band_tables = (
            self.message_length_thresholds,
            self.page_views_thresholds,
            self.time_on_site_thresholds,
        )
        return sum(max(b.points for b in table.values()) for table in band_tables) + max(
            self.phone_points.provided, self.phone_points.missing
        )


# ---------------------------------------------------------------------------
# lead_priority_config
# ---------------------------------------------------------------------------


class PriorityThreshold(BaseModel):
    min: float
    color: Optional[str] = None
    label: Optional[str] = None
    order: Optional[int] = None


class PriorityConfig(BaseModel):
    priority_levels: List[str] = Field(default_factory=list)
    thresholds: Dict[str, PriorityThreshold] = Field(default_factory=dict)
    default: str = "medium"


# ---------------------------------------------------------------------------
# lead_assignment_rules
# ---------------------------------------------------------------------------


class TitlePatternRule(BaseModel):
    """Base for rules that select employees by job title."""

    title_patterns: List[str] = Field(..., min_length=1)

    _include: List[Pattern[str]] = PrivateAttr(default_factory=list)

    def model_post_init(self, __context: Any) -> None:
        self._include = [like_to_regex(p) for p in self.title_patterns]

    def matches(self, title: Optional[str]) -> bool:
        title = title or ""
        return any(regex.fullmatch(title) for regex in self._include)


class FleetSizeRule(TitlePatternRule):
    exclude_patterns: List[str] = Field(default_factory=list)
    priority: int = 0

    _exclude: List[Pattern[str]] = PrivateAttr(default_factory=list)

    def model_post_init(self, __context: Any) -> None:
        super().model_post_init(__context)
        self._exclude = [like_to_regex(p) for p in self.exclude_patterns]

    def matches(self, title: Optional[str]) -> bool:
        if not super().matches(title):
            return False
        return not any(regex.fullmatch(title or "") for regex in self._exclude)


class GeographicZoneRule(TitlePatternRule):
    countries: List[str] = Field(default_factory=list)
    priority: int = 0

    @field_validator("countries")
    @classmethod
    def normalise(cls, value: List[str]) -> List[str]:
        return _normalise_countries(value)


class FallbackRule(BaseModel):
    employee_id: Optional[str] = None
    title_pattern: Optional[str] = None

    _regex: Optional[Pattern[str]] = PrivateAttr(default=None)

    @field_validator("employee_id", mode="before")
    @classmethod
    def stringify_id(cls, value: Any) -> Optional[str]:
        return None if value in (None, "") else str(value)

    def model_post_init(self, __context: Any) -> None:
        if self.title_pattern:
            self._regex = like_to_regex(self.title_pattern)

    def matches(self, title: Optional[str]) -> bool:
        if self._regex is None:
            return False
        return self._regex.fullmatch(title or "") is not None


class AssignmentRulesConfig(BaseModel):
    """Ordered rule chain used to route a lead to a sales rep."""

    version: int = 1
    fleet_size_priority: Dict[str, FleetSizeRule] = Field(default_factory=dict)
    geographic_zones: Dict[str, GeographicZoneRule] = Field(default_factory=dict)
    fallback: FallbackRule = Field(default_factory=FallbackRule)

    _zones_by_priority: List[Tuple[str, GeographicZoneRule]] = PrivateAttr(
        default_factory=list
    )

    def model_post_init(self, __context: Any) -> None:
        # sorted() is stable, so equal priorities keep document order
        self._zones_by_priority = sorted(
            self.geographic_zones.items(), key=lambda item: item[1].priority
        )

    def zones_for_country(self, country_code: str) -> List[Tuple[str, GeographicZoneRule]]:
        code = country_code.strip().upper()
        return [(name, zone) for name, zone in self._zones_by_priority if code in zone.countries]


# ---------------------------------------------------------------------------
# score_decay
# ---------------------------------------------------------------------------


class DecayConfig(BaseModel):
    enabled: bool = False
    inactivity_threshold_days: int = Field(..., ge=0)
    decay_type: DecayType = DecayType.percentage
    decay_value: float = Field(..., ge=0)
    minimum_score: float = Field(0, ge=0)

    @model_validator(mode="after")
    def check_percentage(self) -> Self:
        if self.decay_type == DecayType.percentage and self.decay_value > 100:
            raise ValueError("percentage decay_value cannot exceed 100")
        return self
