"""Role-aware visibility: does a record appear in a given view for an actor?

Visibility failures are ordinary negative answers, never exceptions.  The
only error that escapes is ``DataIntegrityError`` for a malformed record.
"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from leadpool.core.constants import (
    ASSIGNMENT_WINDOW_HOURS,
    RECYCLE_STATES,
    RECYCLE_VIEWS,
    VIEW_TO_POOL,
)
from leadpool.core.exceptions import DataIntegrityError
from leadpool.schemas.common import AssignmentWindow, Origin, Role, ViewKind
from leadpool.schemas.record import ActorContext, Record, ShareGrant, check_integrity
from leadpool.services.category_resolver import resolve_pool
from leadpool.services.lifecycle import assignment_window

logger = logging.getLogger(__name__)

_OPEN_WINDOWS = (AssignmentWindow.UNASSIGNED, AssignmentWindow.FRESH)


def index_grants(grants: Iterable[ShareGrant]) -> Dict[str, List[ShareGrant]]:
    """Group share grants by lead id."""
    index: Dict[str, List[ShareGrant]] = defaultdict(list)
    for grant in grants:
        index[grant.lead_id].append(grant)
    return index


def _recycle_visible(record: Record, actor: ActorContext, view: ViewKind) -> bool:
    if view not in RECYCLE_VIEWS:
        return False
    state, owning_role = RECYCLE_VIEWS[view]
    if record.deletion_state != state or actor.role != owning_role:
        return False
    if owning_role == Role.TEAM_LEAD:
        # Employee deletions land with that employee's team lead
        return actor.manages(record.deleted_by)
    return True


def _latest_share(grants: Sequence[ShareGrant]) -> Optional[datetime]:
    stamps = [g.shared_at for g in grants if g.shared_at is not None]
    return max(stamps) if stamps else None


def has_access(
    record: Record,
    actor: ActorContext,
    grants: Sequence[ShareGrant],
    aggregate: bool,
) -> Tuple[bool, Optional[datetime]]:
    """Ownership check shared by every ordinary view.

    Returns whether the actor may see the record at all and, for shared
    leads, the share timestamp the assignment window runs from.
    """
    bypass_all = aggregate and actor.role == Role.ADMIN
    team_scope = aggregate and actor.role == Role.TEAM_LEAD

    if record.origin == Origin.COMPANY:
        if bypass_all:
            return True, None
        if team_scope:
            return actor.manages(record.assigned_to), None
        return record.assigned_to == actor.user_id, None

    own = [g for g in grants if g.lead_id == record.id]
    if bypass_all:
        return True, _latest_share(own)
    if team_scope:
        held = [g for g in own if actor.manages(g.employee_id)]
    else:
        held = [g for g in own if g.employee_id == actor.user_id]
    if not held:
        return False, None
    return True, _latest_share(held)


def is_visible(
    record: Record,
    actor: ActorContext,
    view: ViewKind,
    *,
    grants: Iterable[ShareGrant] = (),
    now: Optional[datetime] = None,
    aggregate: bool = False,
    window_hours: int = ASSIGNMENT_WINDOW_HOURS,
) -> bool:
    """Decide whether *record* shows up in *view* for *actor*.

    Rules, in order:

    1. Recycled records appear only in the recycle view of the tier that
       owns them: employee deletions for that employee's team lead,
       team-lead deletions for admins.
    2. Pool views list exactly one pool.  ``ASSIGNED`` lists uncategorized
       records whose assignment window is still open.
    3. Companies need ``assigned_to == actor``; shared leads need a share
       grant to the actor, whose ``shared_at`` starts the window.
    4. With ``aggregate=True`` admins see every owner and team leads see
       their own team; employees never bypass ownership.
    """
    check_integrity(record)
    view = ViewKind(view)

    if record.deletion_state in RECYCLE_STATES or view in RECYCLE_VIEWS:
        return _recycle_visible(record, actor, view)

    if resolve_pool(record) != VIEW_TO_POOL[view]:
        return False

    allowed, shared_at = has_access(record, actor, list(grants), aggregate)
    if not allowed:
        return False

    if view == ViewKind.ASSIGNED:
        window = assignment_window(
            record, now, assigned_at=shared_at, window_hours=window_hours
        )
        return window in _OPEN_WINDOWS
    return True


def visible_records(
    records: Iterable[Record],
    actor: ActorContext,
    view: ViewKind,
    *,
    grants: Iterable[ShareGrant] = (),
    now: Optional[datetime] = None,
    aggregate: bool = False,
    window_hours: int = ASSIGNMENT_WINDOW_HOURS,
) -> List[Record]:
    """Filter *records* down to those visible in *view*.

    Malformed records are logged and left out; they never hide the rest.
    """
    grant_index = index_grants(grants)
    visible: List[Record] = []
    for record in records:
        try:
            if is_visible(
                record,
                actor,
                view,
                grants=grant_index.get(record.id, ()),
                now=now,
                aggregate=aggregate,
                window_hours=window_hours,
            ):
                visible.append(record)
        except DataIntegrityError as exc:
            logger.warning("Skipping record %s: %s", exc.record_id, exc.detail)
    return visible
