"""Team repository – team-lead rosters."""

from typing import FrozenSet
from uuid import UUID

from sqlalchemy import select

from leadpool.models.team import Team, TeamMember
from leadpool.repositories.base import BaseRepository


class TeamRepository(BaseRepository):
    """Encapsulates queries against ``teams`` and ``team_members``."""

    async def get_team_member_ids(self, team_lead_id: str) -> FrozenSet[str]:
        """Return the employee ids of every team led by *team_lead_id*."""
        result = await self._db.execute(
            select(TeamMember.employee_id)
            .join(Team, Team.id == TeamMember.team_id)
            .where(Team.team_lead_id == UUID(str(team_lead_id)))
        )
        return frozenset(str(employee_id) for employee_id in result.scalars().all())
