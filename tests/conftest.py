from typing import TYPE_CHECKING, AsyncGenerator
from unittest.mock import AsyncMock

if TYPE_CHECKING:
    from leadintake.core.cache import CacheService

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from leadintake.core.default_settings import (
    DEFAULT_LEAD_ASSIGNMENT_RULES,
    DEFAULT_LEAD_PRIORITY_CONFIG,
    DEFAULT_LEAD_SCORING_CONFIG,
    DEFAULT_SCORE_DECAY_CONFIG,
)
from leadintake.main import app
from leadintake.schemas.crm_settings import (
    AssignmentRulesConfig,
    DecayConfig,
    PriorityConfig,
    ScoringConfig,
)


@pytest_asyncio.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Yield an ``httpx.AsyncClient`` wired to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Return an ``AsyncMock`` that behaves like ``redis.asyncio.Redis``."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock(return_value=True)
    redis.setex = AsyncMock()
    redis.delete = AsyncMock()
    redis.ping = AsyncMock()
    return redis


@pytest.fixture
def mock_cache(mock_redis) -> "CacheService":
    """Return a ``CacheService`` backed by the mock Redis client."""
    from leadintake.core.cache import CacheService

    return CacheService(redis_client=mock_redis)


# ---------------------------------------------------------------------------
# Rule documents parsed from the shipped defaults
# ---------------------------------------------------------------------------


@pytest.fixture
def scoring_config() -> ScoringConfig:
    return ScoringConfig.model_validate(DEFAULT_LEAD_SCORING_CONFIG)


@pytest.fixture
def assignment_rules() -> AssignmentRulesConfig:
    return AssignmentRulesConfig.model_validate(DEFAULT_LEAD_ASSIGNMENT_RULES)


@pytest.fixture
def priority_config() -> PriorityConfig:
    return PriorityConfig.model_validate(DEFAULT_LEAD_PRIORITY_CONFIG)


@pytest.fixture
def decay_config() -> DecayConfig:
    return DecayConfig.model_validate(DEFAULT_SCORE_DECAY_CONFIG)


@pytest.fixture
def settings_service(
    scoring_config, assignment_rules, priority_config, decay_config
) -> AsyncMock:
    """A mocked ``CrmSettingsService`` serving the default documents."""
    service = AsyncMock()
    service.load_scoring_config = AsyncMock(return_value=scoring_config)
    service.load_assignment_rules = AsyncMock(return_value=assignment_rules)
    service.load_priority_config = AsyncMock(return_value=priority_config)
    service.load_decay_config = AsyncMock(return_value=decay_config)
    return service
