"""Soft-deletion lifecycle and assignment-window bookkeeping.

The state machine only *plans* writes.  Every method validates the
requested move completely (state, role, scope) before it builds a
:class:`TransitionPlan`, so a rejected request never yields a partial
plan.  Persisting the plan is the store's job.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional

from leadpool.core.constants import (
    ALLOWED_TRANSITIONS,
    ASSIGNMENT_WINDOW_HOURS,
    TRANSITION_ROLES,
)
from leadpool.core.exceptions import (
    InvalidTransitionError,
    UnauthorizedTransitionError,
)
from leadpool.schemas.common import (
    AssignmentWindow,
    Category,
    DeletionState,
    Origin,
    Role,
)
from leadpool.schemas.engine import TransitionPlan
from leadpool.schemas.record import ActorContext, Record, ShareGrant, check_integrity
from leadpool.services.category_resolver import latest_comment

logger = logging.getLogger(__name__)


def utcnow(now: Optional[datetime] = None) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


# ---------------------------------------------------------------------------
# Assignment window
# ---------------------------------------------------------------------------


def assignment_window(
    record: Record,
    now: Optional[datetime] = None,
    *,
    assigned_at: Optional[datetime] = None,
    window_hours: int = ASSIGNMENT_WINDOW_HOURS,
) -> AssignmentWindow:
    """Classify the record's current assignment.

    *assigned_at* overrides ``record.assigned_at``; shared leads pass the
    share grant's timestamp here.  A record with no timestamp at all was
    never assigned and never expires.
    """
    started = assigned_at if assigned_at is not None else record.assigned_at
    if started is None:
        return AssignmentWindow.UNASSIGNED
    if record.comments:
        return AssignmentWindow.WORKED
    if utcnow(now) - utcnow(started) < timedelta(hours=window_hours):
        return AssignmentWindow.FRESH
    return AssignmentWindow.EXPIRED


def is_stale(
    record: Record,
    now: Optional[datetime] = None,
    *,
    assigned_at: Optional[datetime] = None,
    window_hours: int = ASSIGNMENT_WINDOW_HOURS,
) -> bool:
    """``True`` once the window elapsed or the record received a comment."""
    window = assignment_window(
        record, now, assigned_at=assigned_at, window_hours=window_hours
    )
    return window in (AssignmentWindow.EXPIRED, AssignmentWindow.WORKED)


def needs_unassignment(
    record: Record,
    now: Optional[datetime] = None,
    *,
    window_hours: int = ASSIGNMENT_WINDOW_HOURS,
) -> bool:
    """``True`` for an active company whose window elapsed untouched."""
    return (
        record.origin == Origin.COMPANY
        and record.is_active
        and record.assigned_to is not None
        and assignment_window(record, now, window_hours=window_hours)
        == AssignmentWindow.EXPIRED
    )


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


class LifecycleStateMachine:
    """Plans deletion, escalation, restore and unassignment writes.

    Transition table (``ALLOWED_TRANSITIONS`` / ``TRANSITION_ROLES``):

    - ACTIVE -> INACTIVE                 any role acting on its own record
    - ACTIVE | INACTIVE -> TL recycle    employee
    - TL recycle -> admin recycle        team lead of the deleting employee
    - any non-ACTIVE -> ACTIVE           restore, role depends on the tier

    Admin recycle -> removed is not a transition; see
    :meth:`plan_permanent_delete`.
    """

    def __init__(self, window_hours: int = ASSIGNMENT_WINDOW_HOURS) -> None:
        self._window_hours = window_hours

    def plan_transition(
        self,
        record: Record,
        actor: ActorContext,
        target: DeletionState,
        now: Optional[datetime] = None,
        *,
        grants: Optional[Iterable[ShareGrant]] = None,
    ) -> TransitionPlan:
        """Validate and plan moving *record* to *target*.

        Raises ``InvalidTransitionError`` when the table does not allow the
        move from the current state, and ``UnauthorizedTransitionError``
        when the actor's role or scope does not cover it.  When *grants*
        is supplied, an employee acting on a shared lead must hold one; a
        team lead acting on a live shared lead needs a grant held by itself
        or a team member.
        """
        check_integrity(record)
        target = DeletionState(target)
        current = record.deletion_state

        if target == current:
            raise InvalidTransitionError(
                f"Record {record.id} is already {current.value}"
            )
        if target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransitionError(
                f"Cannot transition from {current.value} to {target.value}"
            )
        if actor.role not in TRANSITION_ROLES[(current, target)]:
            raise UnauthorizedTransitionError(
                f"{actor.role.value} may not move a record from "
                f"{current.value} to {target.value}"
            )
        self._check_scope(record, actor, current, grants)

        when = utcnow(now)
        fields: Dict[str, Any]
        if target == DeletionState.ACTIVE:
            fields = {"deletion_state": None, "deleted_at": None, "deleted_by": None}
        else:
            fields = {
                "deletion_state": target,
                "deleted_at": when,
                "deleted_by": actor.user_id,
            }

        implicit_category = None
        if target == DeletionState.INACTIVE:
            latest = latest_comment(record.comments)
            if latest is None or latest.category != Category.BLOCK:
                implicit_category = Category.BLOCK

        logger.debug(
            "Planned %s -> %s for record %s by %s %s",
            current.value,
            target.value,
            record.id,
            actor.role.value,
            actor.user_id,
        )
        return TransitionPlan(
            record_id=record.id,
            origin=record.origin,
            from_state=current,
            to_state=target,
            fields_to_write=fields,
            implicit_comment_category=implicit_category,
        )

    def plan_restore_and_reassign(
        self,
        record: Record,
        actor: ActorContext,
        assignee_id: str,
        now: Optional[datetime] = None,
    ) -> TransitionPlan:
        """Restore *record* and hand it to *assignee_id* with a clean slate.

        The comment history is cleared so the record comes back through
        the Assigned view uncategorized with a fresh window.  Team leads
        may only reassign to their own team members.
        """
        if actor.role not in (Role.TEAM_LEAD, Role.ADMIN):
            raise UnauthorizedTransitionError(
                f"{actor.role.value} may not reassign deleted records"
            )
        if actor.role == Role.TEAM_LEAD and assignee_id not in actor.team_member_ids:
            raise UnauthorizedTransitionError(
                "Team leads can only reassign to their own team members"
            )

        when = utcnow(now)
        plan = self.plan_transition(record, actor, DeletionState.ACTIVE, when)
        plan.fields_to_write.update({"assigned_to": assignee_id, "assigned_at": when})
        plan.clear_comments = True
        return plan

    def plan_permanent_delete(
        self, record: Record, actor: ActorContext
    ) -> TransitionPlan:
        """Plan irreversible removal of an admin-recycle record."""
        check_integrity(record)
        if record.deletion_state != DeletionState.ADMIN_RECYCLE:
            raise InvalidTransitionError(
                f"Only {DeletionState.ADMIN_RECYCLE.value} records can be "
                f"permanently deleted; record {record.id} is "
                f"{record.deletion_state.value}"
            )
        if actor.role != Role.ADMIN:
            raise UnauthorizedTransitionError(
                "Only admins can permanently delete records"
            )
        return TransitionPlan(
            record_id=record.id,
            origin=record.origin,
            from_state=record.deletion_state,
            destroy=True,
        )

    def plan_unassignment(
        self, record: Record, now: Optional[datetime] = None
    ) -> TransitionPlan:
        """Plan clearing an expired company assignment."""
        check_integrity(record)
        if not needs_unassignment(record, now, window_hours=self._window_hours):
            raise InvalidTransitionError(
                f"Assignment of record {record.id} has not expired"
            )
        return TransitionPlan(
            record_id=record.id,
            origin=record.origin,
            from_state=record.deletion_state,
            to_state=record.deletion_state,
            fields_to_write={"assigned_to": None, "assigned_at": None},
        )

    def assignment_window(
        self,
        record: Record,
        now: Optional[datetime] = None,
        *,
        assigned_at: Optional[datetime] = None,
    ) -> AssignmentWindow:
        return assignment_window(
            record, now, assigned_at=assigned_at, window_hours=self._window_hours
        )

    @staticmethod
    def _check_scope(
        record: Record,
        actor: ActorContext,
        current: DeletionState,
        grants: Optional[Iterable[ShareGrant]],
    ) -> None:
        """Reject actors acting on records outside their reach."""
        if actor.role == Role.ADMIN:
            return

        if actor.role == Role.TEAM_LEAD:
            if current == DeletionState.TEAM_LEAD_RECYCLE:
                in_scope = actor.manages(record.deleted_by)
            elif not record.is_active and actor.manages(record.deleted_by):
                in_scope = True
            elif record.origin == Origin.SHARED_LEAD:
                # Only grants held by the lead or a team member count
                in_scope = any(
                    g.lead_id == record.id and actor.manages(g.employee_id)
                    for g in grants or ()
                )
            else:
                in_scope = actor.manages(record.assigned_to)
            if not in_scope:
                raise UnauthorizedTransitionError(
                    f"Record {record.id} is outside this team lead's team"
                )
            return

        # Employees act on their own records only
        if record.origin == Origin.SHARED_LEAD:
            if grants is None:
                return
            if not any(
                g.lead_id == record.id and g.employee_id == actor.user_id
                for g in grants
            ):
                raise UnauthorizedTransitionError(
                    f"Shared lead {record.id} has not been shared with "
                    f"employee {actor.user_id}"
                )
            return
        if record.assigned_to != actor.user_id:
            raise UnauthorizedTransitionError(
                f"Record {record.id} is not assigned to employee {actor.user_id}"
            )


def apply_plan(record: Record, plan: TransitionPlan) -> Optional[Record]:
    """Return a copy of *record* with *plan* written, or ``None`` if destroyed.

    Mirrors what the store does with a plan; the implicit BLOCK comment is
    left to the store since it owns comment ids.
    """
    if plan.record_id != record.id:
        raise InvalidTransitionError(
            f"Plan for record {plan.record_id} applied to record {record.id}"
        )
    if plan.destroy:
        return None
    update = dict(plan.fields_to_write)
    if "deletion_state" in update and update["deletion_state"] is None:
        update["deletion_state"] = DeletionState.ACTIVE
    if plan.clear_comments:
        update["comments"] = []
    return record.model_copy(update=update)


_default_machine = LifecycleStateMachine()


def plan_transition(
    record: Record,
    actor: ActorContext,
    target: DeletionState,
    now: Optional[datetime] = None,
    *,
    grants: Optional[Iterable[ShareGrant]] = None,
) -> TransitionPlan:
    """Module-level shortcut for :meth:`LifecycleStateMachine.plan_transition`."""
    return _default_machine.plan_transition(record, actor, target, now, grants=grants)
