"""Share repository – employee grants on Facebook-sourced leads."""

from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select

from leadpool.models.facebook_lead import FacebookLeadShare
from leadpool.repositories.base import BaseRepository
from leadpool.schemas.record import ShareGrant


class ShareRepository(BaseRepository):
    """Encapsulates queries against the ``facebook_data_shares`` table."""

    async def list_grants(
        self, employee_ids: Optional[Iterable[str]] = None
    ) -> List[ShareGrant]:
        """Return share grants, optionally limited to some employees."""
        query = select(FacebookLeadShare)
        if employee_ids is not None:
            query = query.where(
                FacebookLeadShare.employee_id.in_([UUID(str(e)) for e in employee_ids])
            )
        result = await self._db.execute(query)
        return [
            ShareGrant(
                lead_id=share.facebook_data_id,
                employee_id=share.employee_id,
                shared_at=share.created_at,
            )
            for share in result.scalars().all()
        ]
