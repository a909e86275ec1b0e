"""Tests for engagement decay of inactive leads."""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

from leadintake.core.cache import CacheService
from leadintake.schemas.crm_settings import DecayConfig
from leadintake.schemas.decay import DecaySweepResult
from leadintake.services.score_decay import (
    ScoreDecayJob,
    apply_decay,
    is_inactive,
    run_score_decay_sweep,
)

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def _make_lead(
    engagement="80.00",
    fit_score=50,
    lead_stage="sales_qualified",
    last_activity_days=40,
    created_days=100,
):
    return SimpleNamespace(
        id=uuid4(),
        engagement_score=Decimal(engagement),
        fit_score=fit_score,
        lead_stage=lead_stage,
        last_activity_at=(
            NOW - timedelta(days=last_activity_days)
            if last_activity_days is not None
            else None
        ),
        created_at=NOW - timedelta(days=created_days) if created_days is not None else None,
        scoring={"engagement": {"message_points": 30, "total": 80}},
    )


def _lead_repo(leads, written=True):
    repo = AsyncMock()
    repo.find_inactive_since = AsyncMock(return_value=leads)
    repo.update_if_engagement_unchanged = AsyncMock(return_value=written)
    return repo


class TestApplyDecay:
    def test_percentage(self, decay_config):
        assert apply_decay(80, decay_config) == 64

    def test_clamped_to_minimum(self, decay_config):
        # 6 * 0.8 = 4.8, floor is 5
        assert apply_decay(6, decay_config) == 5

    @pytest.mark.parametrize("score", [5, 3, 0])
    def test_at_or_below_minimum_is_unchanged(self, decay_config, score):
        assert apply_decay(score, decay_config) == score

    def test_flat(self):
        config = DecayConfig(
            enabled=True,
            inactivity_threshold_days=30,
            decay_type="flat",
            decay_value=10,
            minimum_score=5,
        )
        assert apply_decay(30, config) == 20
        assert apply_decay(12, config) == 5

    def test_rounded_to_two_places(self, decay_config):
        assert apply_decay(33.33, decay_config) == 26.66


class TestIsInactive:
    def test_falls_back_to_created_at(self):
        threshold = NOW - timedelta(days=30)
        lead = _make_lead(last_activity_days=None, created_days=45)
        assert is_inactive(lead, threshold) is True

    def test_recent_activity_is_active(self):
        threshold = NOW - timedelta(days=30)
        lead = _make_lead(last_activity_days=2, created_days=400)
        assert is_inactive(lead, threshold) is False

    def test_no_timestamps_is_inactive(self):
        lead = _make_lead(last_activity_days=None, created_days=None)
        assert is_inactive(lead, NOW) is True


class TestDegradeInactiveScores:
    """One sweep over the inactive leads."""

    @pytest.mark.asyncio
    async def test_degrades_and_recomputes_stage(self, settings_service):
        lead = _make_lead()
        repo = _lead_repo([lead])

        result = await ScoreDecayJob(settings_service).degrade_inactive_scores(
            repo, now=NOW
        )

        assert (result.processed, result.degraded, result.stage_changes) == (1, 1, 1)
        detail = result.details[0]
        assert detail.status == "degraded"
        assert detail.previous_engagement == 80
        assert detail.new_engagement == 64
        assert detail.new_stage == "marketing_qualified"
        assert detail.days_inactive == 40

        repo.find_inactive_since.assert_awaited_once_with(NOW - timedelta(days=30))
        lead_id, expected, patch = repo.update_if_engagement_unchanged.await_args.args
        assert lead_id == lead.id
        assert expected == Decimal("80.00")
        # 50 * 0.6 + 64 * 0.4 = 55.6 -> 56
        assert patch["qualification_score"] == 56
        assert patch["lead_stage"] == "marketing_qualified"
        assert patch["last_decayed_at"] == NOW
        assert patch["scoring"]["engagement"] == {"message_points": 30, "total": 64}
        repo.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_disabled_does_nothing(self, settings_service, decay_config):
        settings_service.load_decay_config.return_value = decay_config.model_copy(
            update={"enabled": False}
        )
        repo = _lead_repo([_make_lead()])

        result = await ScoreDecayJob(settings_service).degrade_inactive_scores(
            repo, now=NOW
        )

        assert result.processed == 0
        repo.find_inactive_since.assert_not_awaited()
        settings_service.load_scoring_config.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_opportunities_and_active_leads_are_skipped(self, settings_service):
        leads = [
            _make_lead(lead_stage="opportunity"),
            _make_lead(last_activity_days=3),
        ]
        repo = _lead_repo(leads)

        result = await ScoreDecayJob(settings_service).degrade_inactive_scores(
            repo, now=NOW
        )

        assert result.processed == 0
        repo.update_if_engagement_unchanged.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_floor_score_is_left_alone(self, settings_service):
        repo = _lead_repo([_make_lead(engagement="5.00")])

        result = await ScoreDecayJob(settings_service).degrade_inactive_scores(
            repo, now=NOW
        )

        assert result.processed == 1
        assert result.degraded == 0
        assert result.details[0].status == "unchanged"
        repo.update_if_engagement_unchanged.assert_not_awaited()
        repo.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_the_sweep(self, settings_service):
        leads = [_make_lead(), _make_lead()]
        repo = _lead_repo(leads)
        repo.update_if_engagement_unchanged.side_effect = [RuntimeError("db down"), True]

        result = await ScoreDecayJob(settings_service).degrade_inactive_scores(
            repo, now=NOW
        )

        assert result.processed == 2
        assert result.errors == 1
        assert result.degraded == 1
        assert [d.status for d in result.details] == ["error", "degraded"]
        assert result.details[0].error == "db down"

    @pytest.mark.asyncio
    async def test_concurrent_change_is_skipped(self, settings_service):
        repo = _lead_repo([_make_lead()], written=False)

        result = await ScoreDecayJob(settings_service).degrade_inactive_scores(
            repo, now=NOW
        )

        assert result.degraded == 0
        assert result.stage_changes == 0
        assert result.details[0].status == "skipped"
        repo.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_dry_run_writes_nothing(self, settings_service):
        repo = _lead_repo([_make_lead()])

        result = await ScoreDecayJob(settings_service).degrade_inactive_scores(
            repo, now=NOW, dry_run=True
        )

        assert result.dry_run is True
        assert result.degraded == 1
        repo.update_if_engagement_unchanged.assert_not_awaited()
        repo.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_lead_without_timestamps(self, settings_service):
        repo = _lead_repo([_make_lead(last_activity_days=None, created_days=None)])

        result = await ScoreDecayJob(settings_service).degrade_inactive_scores(
            repo, now=NOW
        )

        assert result.processed == 1
        assert result.details[0].days_inactive is None


class TestRunScoreDecaySweep:
    """The one-shot runner holds a Redis lease for the sweep."""

    @pytest.mark.asyncio
    async def test_returns_none_when_lease_is_held(self):
        cache = AsyncMock()
        cache.acquire_lease = AsyncMock(return_value=False)
        session_factory = MagicMock()

        assert await run_score_decay_sweep(session_factory, cache) is None
        session_factory.assert_not_called()
        cache.release_lease.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_releases_lease_after_sweep(self, monkeypatch):
        cache = AsyncMock()
        cache.acquire_lease = AsyncMock(return_value=True)
        sweep = AsyncMock(return_value=DecaySweepResult(processed=3))
        monkeypatch.setattr(ScoreDecayJob, "degrade_inactive_scores", sweep)

        result = await run_score_decay_sweep(MagicMock(), cache)

        assert result.processed == 3
        key, owner, _ = cache.acquire_lease.await_args.args
        cache.release_lease.assert_awaited_once_with(key, owner)

    @pytest.mark.asyncio
    async def test_releases_lease_when_sweep_fails(self, monkeypatch):
        cache = AsyncMock()
        cache.acquire_lease = AsyncMock(return_value=True)
        monkeypatch.setattr(
            ScoreDecayJob,
            "degrade_inactive_scores",
            AsyncMock(side_effect=RuntimeError("boom")),
        )

        with pytest.raises(RuntimeError):
            await run_score_decay_sweep(MagicMock(), cache)
        cache.release_lease.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_dry_run_takes_no_lease(self, monkeypatch):
        cache = AsyncMock()
        monkeypatch.setattr(
            ScoreDecayJob,
            "degrade_inactive_scores",
            AsyncMock(return_value=DecaySweepResult(dry_run=True)),
        )

        result = await run_score_decay_sweep(MagicMock(), cache, dry_run=True)

        assert result.dry_run is True
        cache.acquire_lease.assert_not_awaited()


class TestCacheLease:
    @pytest.mark.asyncio
    async def test_acquire_uses_set_nx(self, mock_cache, mock_redis):
        assert await mock_cache.acquire_lease("k", "me", 60) is True
        mock_redis.set.assert_awaited_once_with("leadintake:k", "me", nx=True, ex=60)

    @pytest.mark.asyncio
    async def test_acquire_fails_when_held(self, mock_cache, mock_redis):
        mock_redis.set = AsyncMock(return_value=None)
        assert await mock_cache.acquire_lease("k", "me", 60) is False

    @pytest.mark.asyncio
    async def test_redis_error_means_not_acquired(self, mock_cache, mock_redis):
        mock_redis.set = AsyncMock(side_effect=ConnectionError("down"))
        assert await mock_cache.acquire_lease("k", "me", 60) is False

    @pytest.mark.asyncio
    async def test_without_redis_lease_is_granted(self):
        assert await CacheService().acquire_lease("k", "me", 60) is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("holder", ["me", b"me"])
    async def test_release_by_owner(self, mock_cache, mock_redis, holder):
        mock_redis.get = AsyncMock(return_value=holder)
        await mock_cache.release_lease("k", "me")
        mock_redis.delete.assert_awaited_once_with("leadintake:k")

    @pytest.mark.asyncio
    async def test_release_by_other_owner_is_ignored(self, mock_cache, mock_redis):
        mock_redis.get = AsyncMock(return_value="someone-else")
        await mock_cache.release_lease("k", "me")
        mock_redis.delete.assert_not_awaited()
