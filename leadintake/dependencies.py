import logging
from typing import AsyncGenerator, Optional

from fastapi import Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from leadintake.core.cache import CacheService
from leadintake.core.config import settings
from leadintake.core.database import AsyncSessionLocal, get_db
from leadintake.repositories.agent_repository import AgentRepository
from leadintake.repositories.country_repository import CountryRepository
from leadintake.repositories.crm_settings_repository import CrmSettingsRepository
from leadintake.repositories.lead_repository import LeadRepository
from leadintake.services.country_service import CountryService
from leadintake.services.crm_settings import CrmSettingsService
from leadintake.services.lead_assignment import LeadAssignmentService
from leadintake.services.lead_creation_service import LeadCreationService
from leadintake.services.lead_scoring import LeadScoringEngine
from leadintake.services.notification_service import NotificationSender

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Redis client factory
# ---------------------------------------------------------------------------


async def get_redis_client() -> AsyncGenerator[Optional[Redis], None]:
    """Yield an async Redis client, or ``None`` when Redis is unreachable.

    The client is closed once the request is done.
    """
    client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        await client.ping()
    except Exception:
        logger.warning("Redis unavailable; caching disabled for this request")
        await client.aclose()
        yield None
        return
    try:
        yield client
    finally:
        await client.aclose()


async def get_cache_service(
    redis_client: Optional[Redis] = Depends(get_redis_client),
) -> CacheService:
    """Build a :class:`CacheService` backed by the shared Redis client."""
    return CacheService(redis_client=redis_client)


def get_session_factory():
    """Session factory for work that manages its own sessions (decay sweep)."""
    return AsyncSessionLocal


# ---------------------------------------------------------------------------
# Repository factory functions (one per repository, each gets the shared db)
# ---------------------------------------------------------------------------


async def get_lead_repo(db: AsyncSession = Depends(get_db)) -> LeadRepository:
    return LeadRepository(db)


async def get_agent_repo(db: AsyncSession = Depends(get_db)) -> AgentRepository:
    return AgentRepository(db)


async def get_settings_repo(
    db: AsyncSession = Depends(get_db),
) -> CrmSettingsRepository:
    return CrmSettingsRepository(db)


async def get_country_repo(db: AsyncSession = Depends(get_db)) -> CountryRepository:
    return CountryRepository(db)


# ---------------------------------------------------------------------------
# Service factory functions
# ---------------------------------------------------------------------------


async def get_settings_service(
    settings_repo: CrmSettingsRepository = Depends(get_settings_repo),
    cache: CacheService = Depends(get_cache_service),
) -> CrmSettingsService:
    return CrmSettingsService(settings_repo, cache=cache)


async def get_country_service(
    country_repo: CountryRepository = Depends(get_country_repo),
    cache: CacheService = Depends(get_cache_service),
) -> CountryService:
    return CountryService(country_repo, cache=cache)


async def get_scoring_engine(
    settings_service: CrmSettingsService = Depends(get_settings_service),
) -> LeadScoringEngine:
    return LeadScoringEngine(settings_service)


async def get_assignment_service(
    settings_service: CrmSettingsService = Depends(get_settings_service),
) -> LeadAssignmentService:
    return LeadAssignmentService(settings_service)


async def get_notification_sender() -> NotificationSender:
    return NotificationSender()


async def get_lead_creation_service(
    scoring_engine: LeadScoringEngine = Depends(get_scoring_engine),
    assignment_service: LeadAssignmentService = Depends(get_assignment_service),
    settings_service: CrmSettingsService = Depends(get_settings_service),
    country_service: CountryService = Depends(get_country_service),
    notifier: NotificationSender = Depends(get_notification_sender),
) -> LeadCreationService:
    """Build a :class:`LeadCreationService` with injected dependencies."""
    return LeadCreationService(
        scoring_engine=scoring_engine,
        assignment_service=assignment_service,
        settings_service=settings_service,
        country_service=country_service,
        notifier=notifier,
    )
