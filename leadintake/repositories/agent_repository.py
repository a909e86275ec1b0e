from typing import List

from sqlalchemy import select

from leadintake.models.agent import Agent
from leadintake.repositories.base import BaseRepository
from leadintake.schemas.common import AgentStatus


class AgentRepository(BaseRepository):
    """Encapsulates every SQL query that touches the ``crm_agents`` table."""

    async def list_active(self) -> List[Agent]:
        """Return active, non-deleted agents ordered by id."""
        result = await self._db.execute(
            select(Agent)
            .where(
                Agent.status == AgentStatus.active.value,
                Agent.deleted_at.is_(None),
            )
            .order_by(Agent.id)
        )
        return list(result.scalars().all())
