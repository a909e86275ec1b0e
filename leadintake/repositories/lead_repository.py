from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from sqlalchemy import and_, or_, select, update

from leadintake.core.constants import LEAD_CODE_PREFIX
from leadintake.models.lead import Lead
from leadintake.repositories.base import BaseRepository
from leadintake.schemas.common import LeadStage


class LeadRepository(BaseRepository):
    """Encapsulates every SQL query that touches the ``crm_leads`` table."""

    async def get_by_id(self, lead_id: UUID) -> Optional[Lead]:
        """Return a single non-deleted lead by primary key, or ``None``."""
        result = await self._db.execute(
            select(Lead).where(Lead.id == lead_id, Lead.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        data: Dict[str, Any],
        created_by: Optional[UUID],
        tenant_id: UUID,
    ) -> Lead:
        """Insert a new lead and flush so server defaults (id) are populated."""
        lead = Lead(**data, created_by=created_by, tenant_id=tenant_id)
        self._db.add(lead)
        await self._db.flush()
        await self._db.refresh(lead)
        return lead

    async def update(self, lead_id: UUID, patch: Dict[str, Any]) -> Optional[Lead]:
        """Apply *patch* to a lead and return the refreshed row."""
        lead = await self.get_by_id(lead_id)
        if lead is None:
            return None
        for field, value in patch.items():
            setattr(lead, field, value)
        await self._db.flush()
        return lead

    async def update_if_engagement_unchanged(
        self,
        lead_id: UUID,
        expected_engagement: Union[Decimal, float],
        patch: Dict[str, Any],
    ) -> bool:
        """Compare-and-set on ``engagement_score``.

        The UPDATE only matches while the stored engagement still equals
        *expected_engagement*, so a lead already decayed by an overlapping
        sweep is left alone.  Returns ``True`` when a row was written.
        The statement runs in a savepoint so a failure here only rolls
        back this lead.
        """
        async with self.savepoint():
            result = await self._db.execute(
                update(Lead)
                .where(
                    Lead.id == lead_id,
                    Lead.engagement_score == expected_engagement,
                )
                .values(**patch)
                .execution_options(synchronize_session=False)
            )
        return result.rowcount == 1

    async def find_inactive_since(self, threshold: datetime) -> List[Lead]:
        """Leads with no activity since *threshold*.

        A null ``last_activity_at`` falls back to ``created_at``; a lead
        with neither is treated as inactive.  Opportunities and deleted
        leads are never returned.
        """
        result = await self._db.execute(
            select(Lead)
            .where(
                Lead.deleted_at.is_(None),
                Lead.lead_stage != LeadStage.opportunity.value,
                or_(
                    Lead.last_activity_at < threshold,
                    and_(
                        Lead.last_activity_at.is_(None),
                        or_(Lead.created_at.is_(None), Lead.created_at < threshold),
                    ),
                ),
            )
            .order_by(Lead.id)
        )
        return list(result.scalars().all())

    async def generate_lead_code(self, year: int) -> str:
        """Return the next ``LEAD-<year>-<NNNNN>`` code for *year*.

        Sequence numbers restart every year; a malformed last code
        restarts the sequence at 1.
        """
        prefix = f"{LEAD_CODE_PREFIX}-{year}-"
        result = await self._db.execute(
            select(Lead.lead_code)
            .where(Lead.lead_code.startswith(prefix), Lead.deleted_at.is_(None))
            .order_by(Lead.lead_code.desc())
            .limit(1)
        )
        last_code = result.scalar_one_or_none()

        next_sequence = 1
        if last_code:
            parts = last_code.split("-")
            if len(parts) == 3 and parts[2].isdigit():
                next_sequence = int(parts[2]) + 1
        return f"{prefix}{next_sequence:05d}"
