import logging
from typing import Any, Dict, Optional

from sqlalchemy import select

from leadintake.models.crm_setting import CrmSetting
from leadintake.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class CrmSettingsRepository(BaseRepository):
    """Encapsulates queries against the ``crm_settings`` table."""

    async def get_setting_value(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the JSON document for an active *key*, or ``None``."""
        result = await self._db.execute(
            select(CrmSetting.setting_value).where(
                CrmSetting.setting_key == key,
                CrmSetting.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def seed_if_missing(self) -> int:
        """Insert the default document for every key that has no row.

        Idempotent: existing rows, active or not, are never touched.
        Returns the number of documents inserted.

        The canonical documents live in
        ``leadintake.core.default_settings.DEFAULT_CRM_SETTINGS``.
        """
        from leadintake.core.default_settings import DEFAULT_CRM_SETTINGS

        result = await self._db.execute(select(CrmSetting.setting_key))
        existing = set(result.scalars().all())

        inserted = 0
        for key, value in DEFAULT_CRM_SETTINGS.items():
            if key in existing:
                continue
            logger.info("crm_settings has no %s document; seeding default", key)
            self._db.add(CrmSetting(setting_key=key, setting_value=value))
            inserted += 1
        if inserted:
            await self._db.flush()
        return inserted
