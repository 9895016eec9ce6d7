"""Dashboard counts: per-bucket pool tallies over a record snapshot.

Aggregation is order-independent: each record lands in at most one
bucket, decided only by the record itself, the actor and the grants.
Malformed records are counted as ``skipped`` and listed in ``failures``.
"""

import logging
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from leadpool.core.constants import (
    ALL_BUCKET,
    ASSIGNMENT_WINDOW_HOURS,
    UNASSIGNED_BUCKET,
)
from leadpool.core.exceptions import DataIntegrityError
from leadpool.schemas.common import (
    DeletionState,
    GroupKey,
    Origin,
    Pool,
    Role,
    ViewKind,
)
from leadpool.schemas.engine import (
    AggregationResult,
    BatchResult,
    PoolCounts,
    RecordFailure,
    ResolvedRecord,
)
from leadpool.schemas.record import (
    ActorContext,
    Record,
    ShareGrant,
    check_integrity,
    normalize_record,
)
from leadpool.services.category_resolver import resolve_pool
from leadpool.services.lifecycle import utcnow
from leadpool.services.visibility import has_access, index_grants, is_visible

logger = logging.getLogger(__name__)

RawOrRecord = Union[Record, Mapping[str, Any]]

_RECYCLE_VIEW_FOR_STATE = {
    DeletionState.TEAM_LEAD_RECYCLE: ViewKind.TEAM_LEAD_RECYCLE,
    DeletionState.ADMIN_RECYCLE: ViewKind.ADMIN_RECYCLE,
}


def _as_record(item: RawOrRecord) -> Record:
    if isinstance(item, Record):
        return check_integrity(item)
    return normalize_record(item)


def _failure(item: RawOrRecord, exc: DataIntegrityError) -> RecordFailure:
    record_id = exc.record_id
    if record_id is None:
        record_id = item.id if isinstance(item, Record) else item.get("id")
    logger.warning("Skipping record %s: %s", record_id, exc.detail)
    return RecordFailure(
        record_id=None if record_id is None else str(record_id), error=exc.detail
    )


def _owner_bucket(
    record: Record, actor: ActorContext, grants: Sequence[ShareGrant]
) -> str:
    if record.origin == Origin.SHARED_LEAD:
        visible = [
            g
            for g in grants
            if actor.role == Role.ADMIN or actor.manages(g.employee_id)
        ]
        if visible:
            latest = max(
                visible,
                key=lambda g: (g.shared_at is not None, g.shared_at, g.employee_id),
            )
            return latest.employee_id
    return record.assigned_to or UNASSIGNED_BUCKET


def _bucket(
    record: Record,
    actor: ActorContext,
    group_key: GroupKey,
    grants: Sequence[ShareGrant],
) -> str:
    if group_key == GroupKey.OWNER:
        return _owner_bucket(record, actor, grants)
    if group_key == GroupKey.ORIGIN:
        return record.origin.value
    return ALL_BUCKET


def aggregate(
    records: Iterable[RawOrRecord],
    actor: ActorContext,
    group_key: GroupKey = GroupKey.OWNER,
    *,
    grants: Iterable[ShareGrant] = (),
    now: Optional[datetime] = None,
    window_hours: int = ASSIGNMENT_WINDOW_HOURS,
) -> AggregationResult:
    """Count visible records per ``(bucket, pool)``.

    Uses the aggregate (oversight) scope: admins count everyone, team
    leads their team, employees themselves.  Recycled records count under
    ``recycled`` only for the tier that may open that recycle bin.
    Uncategorized records count under ``uncategorized`` regardless of the
    window; those still inside it also count under ``assigned``.
    """
    group_key = GroupKey(group_key)
    when = utcnow(now)
    grant_index = index_grants(grants)
    result = AggregationResult()
    buckets = {}

    for item in records:
        try:
            record = _as_record(item)
            pool = resolve_pool(record)
        except DataIntegrityError as exc:
            result.skipped += 1
            result.failures.append(_failure(item, exc))
            continue

        record_grants = grant_index.get(record.id, [])
        assigned = False
        if pool == Pool.RECYCLED:
            visible = is_visible(
                record,
                actor,
                _RECYCLE_VIEW_FOR_STATE[record.deletion_state],
                aggregate=True,
            )
        else:
            visible, _ = has_access(record, actor, record_grants, True)
            if visible and pool == Pool.UNCATEGORIZED:
                assigned = is_visible(
                    record,
                    actor,
                    ViewKind.ASSIGNED,
                    grants=record_grants,
                    now=when,
                    aggregate=True,
                    window_hours=window_hours,
                )
        if not visible:
            continue

        key = _bucket(record, actor, group_key, record_grants)
        buckets.setdefault(key, PoolCounts()).add(pool, assigned=assigned)

    result.counts = {key: buckets[key] for key in sorted(buckets)}
    if result.skipped:
        logger.warning(
            "Aggregation for %s %s skipped %d malformed record(s)",
            actor.role.value,
            actor.user_id,
            result.skipped,
        )
    return result


def resolve_batch(records: Iterable[RawOrRecord]) -> BatchResult:
    """Resolve the pool of every record, collecting per-record failures."""
    result = BatchResult()
    for item in records:
        try:
            record = _as_record(item)
            pool = resolve_pool(record)
        except DataIntegrityError as exc:
            result.failed.append(_failure(item, exc))
            continue
        result.succeeded.append(ResolvedRecord(record=record, pool=pool))
    return result


def todays_activity(
    records: Iterable[RawOrRecord],
    actor: ActorContext,
    *,
    grants: Iterable[ShareGrant] = (),
    now: Optional[datetime] = None,
) -> int:
    """Count records in the actor's scope that received a comment today (UTC).

    Records sitting in the inactive pool or a recycle bin are left out.
    """
    today = utcnow(now).date()
    grant_index = index_grants(grants)
    count = 0
    for item in records:
        try:
            record = _as_record(item)
            pool = resolve_pool(record)
        except DataIntegrityError as exc:
            _failure(item, exc)
            continue
        if pool in (Pool.INACTIVE, Pool.RECYCLED):
            continue
        allowed, _ = has_access(record, actor, grant_index.get(record.id, []), True)
        if allowed and any(c.created_at.date() == today for c in record.comments):
            count += 1
    return count
