import logging
from typing import Dict, Optional

from leadintake.core.cache import CacheService
from leadintake.core.config import settings
from leadintake.core.exceptions import CountryNotFoundError
from leadintake.models.country import Country
from leadintake.repositories.country_repository import CountryRepository

logger = logging.getLogger(__name__)

_CACHE_KEY_PREFIX = "crm_country:"


class CountryService:
    """GDPR and operational flags per country, cached in Redis.

    A country missing from ``crm_countries`` is neither GDPR-flagged nor
    operational.  That result is cached too, so unknown codes do not hit
    the database on every lead.
    """

    def __init__(
        self,
        country_repo: CountryRepository,
        cache: Optional[CacheService] = None,
    ) -> None:
        self._repo = country_repo
        self._cache = cache or CacheService()

    async def _flags(self, country_code: str) -> Dict[str, bool]:
        code = country_code.strip().upper()
        cache_key = f"{_CACHE_KEY_PREFIX}{code}"

        cached = await self._cache.get_json(cache_key)
        if cached is not None:
            return cached

        country = await self._repo.find_by_code(code)
        if country is None:
            logger.info("Country %s is not in crm_countries", code)
        flags = {
            "known": country is not None,
            "is_operational": bool(country and country.is_operational),
            "country_gdpr": bool(country and country.country_gdpr),
        }
        await self._cache.set_json(
            cache_key, flags, ttl=settings.REDIS_COUNTRY_CACHE_TTL
        )
        return flags

    async def is_gdpr_country(self, country_code: str) -> bool:
        return (await self._flags(country_code))["country_gdpr"]

    async def is_operational(self, country_code: str) -> bool:
        return (await self._flags(country_code))["is_operational"]

    async def get_country_details(self, country_code: str) -> Country:
        """Return the ``crm_countries`` row for *country_code*.

        Raises:
            CountryNotFoundError: the code is not in the table.
        """
        code = country_code.strip().upper()
        # A cached miss answers without a query
        country = None
        if (await self._flags(code)).get("known", True):
            country = await self._repo.find_by_code(code)
        if country is None:
            raise CountryNotFoundError(
                f"Country with code '{country_code}' not found"
            )
        return country
