import pytest
from unittest.mock import AsyncMock, MagicMock

from leadintake.repositories.lead_repository import LeadRepository


def _db_returning(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    db = AsyncMock()
    db.execute = AsyncMock(return_value=result)
    return db


class TestGenerateLeadCode:
    @pytest.mark.asyncio
    async def test_first_code_of_the_year(self):
        repo = LeadRepository(_db_returning(None))
        assert await repo.generate_lead_code(2026) == "LEAD-2026-00001"

    @pytest.mark.asyncio
    async def test_increments_last_code(self):
        repo = LeadRepository(_db_returning("LEAD-2026-00041"))
        assert await repo.generate_lead_code(2026) == "LEAD-2026-00042"

    @pytest.mark.asyncio
    async def test_malformed_last_code_restarts_sequence(self):
        repo = LeadRepository(_db_returning("LEAD-2026-abc"))
        assert await repo.generate_lead_code(2026) == "LEAD-2026-00001"


class TestCompareAndSet:
    @pytest.mark.asyncio
    async def test_reports_whether_a_row_was_written(self):
        result = MagicMock()
        result.rowcount = 0
        db = AsyncMock()
        db.begin_nested = MagicMock()
        db.execute = AsyncMock(return_value=result)

        written = await LeadRepository(db).update_if_engagement_unchanged(
            "lead-id", 80, {"engagement_score": 64}
        )

        assert written is False
        db.execute.assert_awaited_once()
