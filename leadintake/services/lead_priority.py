import logging
from typing import Optional

from leadintake.core.config import settings
from leadintake.schemas.crm_settings import PriorityConfig
from leadintake.services.crm_settings import CrmSettingsService

logger = logging.getLogger(__name__)


def determine_priority(score: float, config: Optional[PriorityConfig]) -> str:
    """Map a qualification score to a priority level.

    Thresholds are checked from the highest ``min`` down and the first one
    the score reaches wins.  Falls back to ``config.default`` when nothing
    matches, and to ``DEFAULT_LEAD_PRIORITY`` when there is no config.
    """
    if config is None:
        return settings.DEFAULT_LEAD_PRIORITY

    ordered = sorted(
        config.thresholds.items(), key=lambda item: item[1].min, reverse=True
    )
    for level, threshold in ordered:
        if score >= threshold.min:
            return level
    return config.default


async def resolve_priority(score: float, settings_service: CrmSettingsService) -> str:
    """Load ``lead_priority_config`` and classify *score*.

    Priority is advisory, so any failure to read or parse the document is
    logged and yields ``DEFAULT_LEAD_PRIORITY`` instead of failing lead
    creation.
    """
    try:
        config = await settings_service.load_priority_config()
    except Exception:
        logger.warning(
            "Priority config unavailable, using default priority %r",
            settings.DEFAULT_LEAD_PRIORITY,
            exc_info=True,
        )
        return settings.DEFAULT_LEAD_PRIORITY
    return determine_priority(score, config)
