"""Record repository – loads companies and shared leads as engine records.

This is the store boundary: rows are normalized into
:class:`~leadpool.schemas.record.Record` here and rows that violate the
record invariants are reported, not coerced.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
from uuid import UUID

from sqlalchemy import exists, or_, select
from sqlalchemy.orm import selectinload

from leadpool.core.exceptions import DataIntegrityError, RecordNotFoundError
from leadpool.models.comment import CompanyComment, FacebookLeadComment
from leadpool.models.company import Company
from leadpool.models.facebook_lead import FacebookLead, FacebookLeadShare
from leadpool.repositories.base import BaseRepository
from leadpool.schemas.common import DeletionState, Origin
from leadpool.schemas.engine import RecordFailure, TransitionPlan
from leadpool.schemas.record import Record, normalize_record

logger = logging.getLogger(__name__)

Row = Union[Company, FacebookLead]


def _uuid(value: Any) -> Optional[UUID]:
    if value is None or isinstance(value, UUID):
        return value
    return UUID(str(value))


def _row_to_raw(row: Row, origin: Origin) -> Dict[str, Any]:
    return {
        "id": row.id,
        "origin": origin,
        "assigned_to": getattr(row, "assigned_to_id", None),
        "assigned_at": getattr(row, "assigned_at", None),
        "created_at": row.created_at,
        "deletion_state": row.deletion_state,
        "deleted_at": row.deleted_at,
        "deleted_by": row.deleted_by_id,
        "comments": [
            {
                "id": c.id,
                "author_id": c.user_id,
                "text": c.comment_text,
                "category": c.category,
                "created_at": c.created_at,
            }
            for c in row.comments
        ],
    }


class RecordRepository(BaseRepository):
    """Encapsulates queries against ``companies`` and ``facebook_data``."""

    async def list_records(
        self,
        origin: Optional[Origin] = None,
        user_ids: Optional[Iterable[str]] = None,
    ) -> Tuple[List[Record], List[RecordFailure]]:
        """Load a snapshot of records with their comments.

        When *user_ids* is given, only records assigned to, shared with or
        deleted by one of those users are loaded.
        """
        uuids = [_uuid(u) for u in user_ids] if user_ids is not None else None
        rows: List[Tuple[Row, Origin]] = []

        if origin in (None, Origin.COMPANY):
            query = select(Company).options(selectinload(Company.comments))
            if uuids is not None:
                query = query.where(
                    or_(
                        Company.assigned_to_id.in_(uuids),
                        Company.deleted_by_id.in_(uuids),
                    )
                )
            result = await self._db.execute(query)
            rows.extend((c, Origin.COMPANY) for c in result.scalars().all())

        if origin in (None, Origin.SHARED_LEAD):
            query = select(FacebookLead).options(selectinload(FacebookLead.comments))
            if uuids is not None:
                shared = select(FacebookLeadShare.facebook_data_id).where(
                    FacebookLeadShare.employee_id.in_(uuids)
                )
                query = query.where(
                    or_(
                        FacebookLead.id.in_(shared),
                        FacebookLead.deleted_by_id.in_(uuids),
                    )
                )
            result = await self._db.execute(query)
            rows.extend((f, Origin.SHARED_LEAD) for f in result.scalars().all())

        records: List[Record] = []
        failures: List[RecordFailure] = []
        for row, row_origin in rows:
            try:
                records.append(normalize_record(_row_to_raw(row, row_origin)))
            except DataIntegrityError as exc:
                logger.warning(
                    "Malformed %s row %s: %s", row_origin.value, row.id, exc.detail
                )
                failures.append(RecordFailure(record_id=str(row.id), error=exc.detail))
        return records, failures

    async def get_record(self, origin: Origin, record_id: str) -> Record:
        """Return one record; raises ``RecordNotFoundError`` if absent."""
        row = await self._get_row(origin, record_id)
        return normalize_record(_row_to_raw(row, origin))

    async def list_expired_assignments(self, cutoff: datetime) -> List[Record]:
        """Active, assigned companies untouched since before *cutoff*."""
        has_comment = exists().where(CompanyComment.company_id == Company.id)
        query = (
            select(Company)
            .options(selectinload(Company.comments))
            .where(
                Company.deletion_state.is_(None),
                Company.assigned_to_id.is_not(None),
                Company.assigned_at <= cutoff,
                ~has_comment,
            )
        )
        result = await self._db.execute(query)
        records: List[Record] = []
        for company in result.scalars().all():
            try:
                records.append(normalize_record(_row_to_raw(company, Origin.COMPANY)))
            except DataIntegrityError as exc:
                logger.warning("Malformed company row %s: %s", company.id, exc.detail)
        return records

    async def apply_plan(
        self, plan: TransitionPlan, actor_id: Optional[str] = None
    ) -> None:
        """Write a lifecycle plan onto the stored row (no commit)."""
        row = await self._get_row(plan.origin, plan.record_id)
        if plan.destroy:
            await self._db.delete(row)
            return

        fields = plan.fields_to_write
        if "deletion_state" in fields:
            state = fields["deletion_state"]
            row.deletion_state = (
                None
                if state is None or state == DeletionState.ACTIVE
                else DeletionState(state).value
            )
        if "deleted_at" in fields:
            row.deleted_at = fields["deleted_at"]
        if "deleted_by" in fields:
            row.deleted_by_id = _uuid(fields["deleted_by"])

        if plan.clear_comments:
            row.comments.clear()

        if "assigned_to" in fields:
            if plan.origin == Origin.COMPANY:
                row.assigned_to_id = _uuid(fields["assigned_to"])
                row.assigned_at = fields.get("assigned_at")
            elif fields["assigned_to"] is not None:
                self._share(row, fields["assigned_to"], fields.get("assigned_at"))

        if plan.implicit_comment_category is not None:
            comment_model = (
                CompanyComment if plan.origin == Origin.COMPANY else FacebookLeadComment
            )
            row.comments.append(
                comment_model(
                    user_id=_uuid(actor_id),
                    comment_text="",
                    category=plan.implicit_comment_category.value,
                )
            )

    def _share(
        self, lead: FacebookLead, employee_id: str, shared_at: Optional[datetime]
    ) -> None:
        """Create or refresh the share that grants *employee_id* the lead."""
        employee_uuid = _uuid(employee_id)
        for share in lead.shares:
            if share.employee_id == employee_uuid:
                share.created_at = shared_at
                return
        lead.shares.append(
            FacebookLeadShare(employee_id=employee_uuid, created_at=shared_at)
        )

    async def _get_row(self, origin: Origin, record_id: str) -> Row:
        origin = Origin(origin)
        try:
            if origin == Origin.COMPANY:
                query = (
                    select(Company)
                    .options(selectinload(Company.comments))
                    .where(Company.id == _uuid(record_id))
                )
            else:
                query = (
                    select(FacebookLead)
                    .options(
                        selectinload(FacebookLead.comments),
                        selectinload(FacebookLead.shares),
                    )
                    .where(FacebookLead.id == int(record_id))
                )
        except ValueError:
            raise RecordNotFoundError(f"No {origin.value} with id {record_id}")
        result = await self._db.execute(query)
        row = result.scalar_one_or_none()
        if row is None:
            raise RecordNotFoundError(f"No {origin.value} with id {record_id}")
        return row
