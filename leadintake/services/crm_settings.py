"""Access to the JSON rule documents stored in ``crm_settings``.

Raw documents are cached in Redis for ``REDIS_SETTINGS_CACHE_TTL``
seconds.  A caller that loads a document once and reuses it for a whole
pass (a lead creation, a decay sweep) therefore never sees a mid-pass
change; the worst case is a pass that runs on a document up to one TTL
old.
"""

import logging
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from leadintake.core.cache import CacheService
from leadintake.core.config import settings
from leadintake.core.constants import (
    LEAD_ASSIGNMENT_RULES_KEY,
    LEAD_PRIORITY_CONFIG_KEY,
    LEAD_SCORING_CONFIG_KEY,
    SCORE_DECAY_KEY,
    SETTING_KEYS,
)
from leadintake.core.exceptions import ConfigurationError
from leadintake.repositories.crm_settings_repository import CrmSettingsRepository
from leadintake.schemas.crm_settings import (
    AssignmentRulesConfig,
    DecayConfig,
    PriorityConfig,
    ScoringConfig,
)

logger = logging.getLogger(__name__)

ConfigT = TypeVar("ConfigT", bound=BaseModel)

_CACHE_KEY_PREFIX = "crm_settings:"


class CrmSettingsService:
    """Read and parse rule documents, with a Redis read-through cache."""

    def __init__(
        self,
        settings_repo: CrmSettingsRepository,
        cache: Optional[CacheService] = None,
    ) -> None:
        self._repo = settings_repo
        self._cache = cache or CacheService()

    async def get_setting_value(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the raw document for *key*, or ``None`` if it is absent."""
        cache_key = f"{_CACHE_KEY_PREFIX}{key}"
        cached = await self._cache.get_json(cache_key)
        if cached is not None:
            return cached

        value = await self._repo.get_setting_value(key)
        if value is not None:
            await self._cache.set_json(
                cache_key, value, ttl=settings.REDIS_SETTINGS_CACHE_TTL
            )
        return value

    async def invalidate(self, *keys: str) -> None:
        """Drop cached copies so the next read goes to the database."""
        await self._cache.delete(*(f"{_CACHE_KEY_PREFIX}{key}" for key in keys))

    async def _load(self, key: str, model: Type[ConfigT]) -> ConfigT:
        raw = await self.get_setting_value(key)
        if raw is None:
            raise ConfigurationError(
                f"Setting '{key}' not found in crm_settings. "
                "Seed the defaults with seed_defaults_if_missing()."
            )
        try:
            return model.model_validate(raw)
        except PydanticValidationError as exc:
            raise ConfigurationError(f"Setting '{key}' is malformed: {exc}") from exc

    async def load_scoring_config(self) -> ScoringConfig:
        return await self._load(LEAD_SCORING_CONFIG_KEY, ScoringConfig)

    async def load_assignment_rules(self) -> AssignmentRulesConfig:
        return await self._load(LEAD_ASSIGNMENT_RULES_KEY, AssignmentRulesConfig)

    async def load_priority_config(self) -> PriorityConfig:
        return await self._load(LEAD_PRIORITY_CONFIG_KEY, PriorityConfig)

    async def load_decay_config(self) -> DecayConfig:
        return await self._load(SCORE_DECAY_KEY, DecayConfig)

    async def seed_defaults_if_missing(self) -> int:
        """Insert default documents for absent keys and drop their cache entries."""
        inserted = await self._repo.seed_if_missing()
        if inserted:
            await self._repo.commit()
            await self.invalidate(*SETTING_KEYS)
            logger.info("Seeded %d default crm_settings documents", inserted)
        return inserted
