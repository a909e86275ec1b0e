import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import uuid4

from leadintake.core.exceptions import ConfigurationError, LeadNotFoundError
from leadintake.schemas.common import LeadStage
from leadintake.schemas.scoring import LeadScoringInput
from leadintake.services.lead_scoring import (
    LeadScoringEngine,
    calculate_engagement_score,
    calculate_fit_score,
    calculate_lead_scores,
    calculate_qualification_score,
    match_band,
    round_half_up,
)


def _hot_lead(**overrides):
    attrs = {
        "fleet_size": "500+",
        "country_code": "AE",
        "message": "x" * 225,
        "phone": "+971501234567",
        "metadata": {"page_views": 20, "time_on_site": 900},
    }
    attrs.update(overrides)
    return attrs


class TestFitScore:
    """Verify fleet size and country tier points."""

    def test_large_fleet_in_tier1_country(self, scoring_config):
        assert calculate_fit_score("500+", "AE", scoring_config) == 60

    def test_country_code_is_case_insensitive(self, scoring_config):
        assert calculate_fit_score("500+", "ae", scoring_config) == 60

    def test_unlisted_country_uses_default_tier(self, scoring_config):
        # 1-10 (5) + tier5 (5)
        assert calculate_fit_score("1-10", "US", scoring_config) == 10

    def test_eu_country_scores_tier4(self, scoring_config):
        # 11-50 (20) + tier4 (12)
        assert calculate_fit_score("11-50", "DE", scoring_config) == 32

    @pytest.mark.parametrize("fleet_size", [None, "", "9999", "huge"])
    def test_unknown_fleet_size_scores_as_unknown_tier(self, scoring_config, fleet_size):
        # unknown (10) + tier5 (5)
        assert calculate_fit_score(fleet_size, None, scoring_config) == 15


class TestEngagementScore:
    """Verify message, phone, page view and time-on-site bands."""

    def test_fully_engaged_lead(self, scoring_config):
        score = calculate_engagement_score(
            "x" * 225, "+971", {"page_views": 20, "time_on_site": 900}, scoring_config
        )
        assert score == 100

    def test_nothing_provided_still_gets_default_bands(self, scoring_config):
        # page_views normal (5) + time_on_site quick (5)
        assert calculate_engagement_score(None, None, None, scoring_config) == 10

    def test_band_minimum_is_exclusive(self, scoring_config):
        # exactly 200 characters is not "detailed" (> 200), so substantial (20)
        assert calculate_engagement_score("y" * 200, None, {}, scoring_config) == 30

    def test_message_length_ignores_surrounding_whitespace(self, scoring_config):
        padded = "   " + "z" * 15 + "   "
        # 15 chars -> none (0)
        assert calculate_engagement_score(padded, None, {}, scoring_config) == 10

    def test_blank_phone_counts_as_missing(self, scoring_config):
        assert calculate_engagement_score(None, "   ", {}, scoring_config) == 10

    @pytest.mark.parametrize("value", [None, "abc", True, [], {}])
    def test_non_numeric_metrics_count_as_zero(self, scoring_config, value):
        metadata = {"page_views": value, "time_on_site": value}
        assert calculate_engagement_score(None, None, metadata, scoring_config) == 10

    def test_numeric_strings_are_accepted(self, scoring_config):
        metadata = {"page_views": "11", "time_on_site": "601"}
        assert calculate_engagement_score(None, None, metadata, scoring_config) == 50

    def test_more_page_views_never_scores_less(self, scoring_config):
        scores = [
            calculate_engagement_score(None, None, {"page_views": pv}, scoring_config)
            for pv in range(0, 30)
        ]
        assert scores == sorted(scores)


class TestMatchBand:
    def test_no_default_band_returns_zero(self, scoring_config):
        bands = {
            k: v
            for k, v in scoring_config.page_views_thresholds.items()
            if v.min is not None
        }
        assert match_band(0, bands) == 0

    def test_highest_matching_band_wins(self, scoring_config):
        assert match_band(6, scoring_config.page_views_thresholds) == 20


class TestQualificationScore:
    """Verify the weighted qualification score and stage thresholds."""

    def test_rounds_half_up(self):
        assert round_half_up(69.5) == 70
        assert round_half_up(2.5) == 3
        assert round_half_up(69.4) == 69

    def test_rounding_can_cross_stage_threshold(self, scoring_config):
        # 50 * 0.6 + 99 * 0.4 = 69.6 -> 70
        result = calculate_qualification_score(50, 99, scoring_config)
        assert result.qualification_score == 70
        assert result.lead_stage == LeadStage.sales_qualified

    @pytest.mark.parametrize(
        "fit,engagement,stage",
        [
            (0, 0, LeadStage.top_of_funnel),
            (40, 40, LeadStage.marketing_qualified),
            (60, 100, LeadStage.sales_qualified),
        ],
    )
    def test_stage_thresholds(self, scoring_config, fit, engagement, stage):
        result = calculate_qualification_score(fit, engagement, scoring_config)
        assert result.lead_stage == stage

    def test_never_assigns_opportunity(self, scoring_config):
        result = calculate_qualification_score(60, 100, scoring_config)
        assert result.lead_stage != LeadStage.opportunity

    def test_breakdown_records_formula(self, scoring_config):
        result = calculate_qualification_score(50, 64, scoring_config)
        qualification = result.breakdown.qualification
        assert qualification.fit_weight == 0.6
        assert qualification.engagement_weight == 0.4
        assert "fit" in qualification.formula and "engagement" in qualification.formula
        assert qualification.total == 56


class TestCalculateLeadScores:
    """End-to-end scoring of representative leads."""

    def test_hot_enterprise_lead(self, scoring_config):
        result = calculate_lead_scores(_hot_lead(), scoring_config)

        assert result.fit_score == 60
        assert result.engagement_score == 100
        # 60 * 0.6 + 100 * 0.4 = 76
        assert result.qualification_score == 76
        assert result.lead_stage == LeadStage.sales_qualified

        fit = result.breakdown.fit
        assert (fit.fleet_points, fit.country_points) == (40, 20)
        engagement = result.breakdown.engagement
        assert engagement.message_points == 30
        assert engagement.phone_points == 20
        assert engagement.page_views_points == 30
        assert engagement.time_on_site_points == 20

    def test_cold_small_lead(self, scoring_config):
        result = calculate_lead_scores(
            {
                "fleet_size": "1-10",
                "country_code": "US",
                "message": "Hello",
                "phone": None,
                "metadata": {"page_views": 1, "time_on_site": 30},
            },
            scoring_config,
        )
        assert result.fit_score == 10
        assert result.engagement_score == 10
        assert result.qualification_score == 10
        assert result.lead_stage == LeadStage.top_of_funnel

    def test_accepts_scoring_input_model(self, scoring_config):
        result = calculate_lead_scores(
            LeadScoringInput(**_hot_lead(country_code="ae")), scoring_config
        )
        assert result.fit_score == 60

    def test_breakdown_totals_match_scores(self, scoring_config):
        result = calculate_lead_scores(_hot_lead(phone=None), scoring_config)
        assert result.breakdown.fit.total == result.fit_score
        assert result.breakdown.engagement.total == result.engagement_score
        assert result.breakdown.qualification.total == result.qualification_score


class TestLeadScoringEngine:
    """Config loading and rescoring of stored leads."""

    @pytest.mark.asyncio
    async def test_calculate_uses_loaded_config(self, settings_service):
        engine = LeadScoringEngine(settings_service)
        result = await engine.calculate_lead_scores(_hot_lead())
        assert result.qualification_score == 76
        settings_service.load_scoring_config.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_config_propagates(self, settings_service):
        settings_service.load_scoring_config.side_effect = ConfigurationError("missing")
        engine = LeadScoringEngine(settings_service)
        with pytest.raises(ConfigurationError):
            await engine.calculate_lead_scores(_hot_lead())

    @pytest.mark.asyncio
    async def test_recalculate_unknown_lead_raises(self, settings_service):
        lead_repo = AsyncMock()
        lead_repo.get_by_id = AsyncMock(return_value=None)
        engine = LeadScoringEngine(settings_service)

        with pytest.raises(LeadNotFoundError):
            await engine.recalculate_scores(uuid4(), lead_repo)
        lead_repo.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_recalculate_persists_new_scores(self, settings_service):
        attrs = _hot_lead()
        lead = SimpleNamespace(
            id=uuid4(),
            fleet_size=attrs["fleet_size"],
            country_code=attrs["country_code"],
            message=attrs["message"],
            phone=attrs["phone"],
            lead_metadata=attrs["metadata"],
            qualification_score=40,
            lead_stage="marketing_qualified",
        )
        lead_repo = AsyncMock()
        lead_repo.get_by_id = AsyncMock(return_value=lead)

        engine = LeadScoringEngine(settings_service)
        result = await engine.recalculate_scores(lead.id, lead_repo)

        assert result.previous_qualification_score == 40
        assert result.new_qualification_score == 76
        assert result.stage_changed is True
        assert result.new_stage == LeadStage.sales_qualified

        lead_repo.update.assert_awaited_once()
        patch = lead_repo.update.await_args.args[1]
        assert patch["lead_stage"] == "sales_qualified"
        assert patch["scoring"]["fit"]["total"] == 60
        lead_repo.commit.assert_awaited_once()
