import logging
from datetime import datetime
from typing import List, Optional, Tuple

from leadpool.core.config import settings
from leadpool.core.events import InvalidationBus
from leadpool.repositories.record_repository import RecordRepository
from leadpool.repositories.share_repository import ShareRepository
from leadpool.schemas.api import (
    CountsResponse,
    RecordOut,
    TransitionResponse,
    ViewResponse,
)
from leadpool.schemas.common import DeletionState, GroupKey, Origin, Role, ViewKind
from leadpool.schemas.engine import RecordFailure, TransitionPlan
from leadpool.schemas.record import ActorContext, Record, ShareGrant
from leadpool.services.aggregation import aggregate, todays_activity
from leadpool.services.category_resolver import latest_comment, resolve_pool
from leadpool.services.lifecycle import LifecycleStateMachine, utcnow
from leadpool.services.visibility import visible_records

logger = logging.getLogger(__name__)


class PoolDashboardService:
    """Loads a snapshot from the store and runs the engine over it.

    Every call recomputes from fresh rows; nothing is cached between
    requests.  Writes go through the lifecycle planner, are applied by the
    repository and then announced on the invalidation bus.
    """

    def __init__(
        self,
        bus: Optional[InvalidationBus] = None,
        machine: Optional[LifecycleStateMachine] = None,
        window_hours: Optional[int] = None,
    ) -> None:
        self._bus: InvalidationBus = bus or InvalidationBus()
        self._window_hours = window_hours or settings.ASSIGNMENT_WINDOW_HOURS
        self._machine = machine or LifecycleStateMachine(self._window_hours)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    def _scope_user_ids(actor: ActorContext) -> Optional[List[str]]:
        """Users whose records the actor can ever see; ``None`` means all."""
        if actor.role == Role.ADMIN:
            return None
        return [actor.user_id, *sorted(actor.team_member_ids)]

    async def _snapshot(
        self,
        actor: ActorContext,
        record_repo: RecordRepository,
        share_repo: ShareRepository,
    ) -> Tuple[List[Record], List[RecordFailure], List[ShareGrant]]:
        user_ids = self._scope_user_ids(actor)
        records, failures = await record_repo.list_records(user_ids=user_ids)
        grants = await share_repo.list_grants(user_ids)
        return records, failures, grants

    def _to_out(self, record: Record, now: datetime) -> RecordOut:
        latest = latest_comment(record.comments)
        return RecordOut(
            id=record.id,
            origin=record.origin,
            pool=resolve_pool(record),
            assigned_to=record.assigned_to,
            assigned_at=record.assigned_at,
            deletion_state=record.deletion_state,
            deleted_at=record.deleted_at,
            deleted_by=record.deleted_by,
            latest_category=latest.category if latest else None,
            comment_count=len(record.comments),
            window=self._machine.assignment_window(record, now),
        )

    async def get_view(
        self,
        actor: ActorContext,
        view: ViewKind,
        record_repo: RecordRepository,
        share_repo: ShareRepository,
        *,
        aggregate_scope: bool = False,
        now: Optional[datetime] = None,
    ) -> ViewResponse:
        """Return the records *actor* sees in *view*, newest assignment first."""
        now = utcnow(now)
        records, failures, grants = await self._snapshot(actor, record_repo, share_repo)
        visible = visible_records(
            records,
            actor,
            view,
            grants=grants,
            now=now,
            aggregate=aggregate_scope,
            window_hours=self._window_hours,
        )
        visible.sort(
            key=lambda r: (r.assigned_at is not None, r.assigned_at, r.id),
            reverse=True,
        )
        return ViewResponse(
            view=view,
            records=[self._to_out(r, now) for r in visible],
            failures=failures,
        )

    async def get_counts(
        self,
        actor: ActorContext,
        group_by: GroupKey,
        record_repo: RecordRepository,
        share_repo: ShareRepository,
        *,
        now: Optional[datetime] = None,
    ) -> CountsResponse:
        """Return per-bucket pool counts plus today's activity badge."""
        now = utcnow(now)
        records, failures, grants = await self._snapshot(actor, record_repo, share_repo)
        result = aggregate(
            records,
            actor,
            group_by,
            grants=grants,
            now=now,
            window_hours=self._window_hours,
        )
        return CountsResponse(
            counts=result.counts,
            skipped=result.skipped + len(failures),
            failures=failures + result.failures,
            today=todays_activity(records, actor, grants=grants, now=now),
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def transition(
        self,
        actor: ActorContext,
        origin: Origin,
        record_id: str,
        target: DeletionState,
        record_repo: RecordRepository,
        share_repo: ShareRepository,
        *,
        now: Optional[datetime] = None,
    ) -> TransitionResponse:
        record = await record_repo.get_record(origin, record_id)
        grants = None
        if actor.role != Role.ADMIN and record.origin == Origin.SHARED_LEAD:
            grants = await share_repo.list_grants(self._scope_user_ids(actor))
        plan = self._machine.plan_transition(record, actor, target, now, grants=grants)
        return await self._persist(plan, actor, record_repo, f"transition:{target.value}")

    async def restore_and_reassign(
        self,
        actor: ActorContext,
        origin: Origin,
        record_id: str,
        assignee_id: str,
        record_repo: RecordRepository,
        *,
        now: Optional[datetime] = None,
    ) -> TransitionResponse:
        record = await record_repo.get_record(origin, record_id)
        plan = self._machine.plan_restore_and_reassign(record, actor, assignee_id, now)
        return await self._persist(plan, actor, record_repo, "restore_reassign")

    async def permanent_delete(
        self,
        actor: ActorContext,
        origin: Origin,
        record_id: str,
        record_repo: RecordRepository,
    ) -> TransitionResponse:
        record = await record_repo.get_record(origin, record_id)
        plan = self._machine.plan_permanent_delete(record, actor)
        return await self._persist(plan, actor, record_repo, "permanent_delete")

    async def _persist(
        self,
        plan: TransitionPlan,
        actor: ActorContext,
        record_repo: RecordRepository,
        reason: str,
    ) -> TransitionResponse:
        try:
            await record_repo.apply_plan(plan, actor_id=actor.user_id)
            await record_repo.commit()
        except Exception:
            await record_repo.rollback()
            logger.error(
                "Failed to persist %s for %s %s",
                reason,
                plan.origin.value,
                plan.record_id,
                exc_info=True,
            )
            raise
        logger.info(
            "%s %s %s by %s %s",
            reason,
            plan.origin.value,
            plan.record_id,
            actor.role.value,
            actor.user_id,
        )
        await self._bus.publish(plan.origin.value, plan.record_id, reason)
        return TransitionResponse(
            record_id=plan.record_id,
            origin=plan.origin,
            from_state=plan.from_state,
            to_state=plan.to_state,
            destroyed=plan.destroy,
            comments_cleared=plan.clear_comments,
            implicit_comment_category=plan.implicit_comment_category,
        )
