from typing import Optional

from sqlalchemy import select

from leadintake.models.country import Country
from leadintake.repositories.base import BaseRepository


class CountryRepository(BaseRepository):
    """Encapsulates queries against the ``crm_countries`` table."""

    async def find_by_code(self, country_code: str) -> Optional[Country]:
        result = await self._db.execute(
            select(Country).where(Country.country_code == country_code.upper())
        )
        return result.scalar_one_or_none()
