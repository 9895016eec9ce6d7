from typing import Dict, FrozenSet, List, Tuple

from leadpool.schemas.common import (
    Category,
    DeletionState,
    Pool,
    Role,
    ViewKind,
)

VALID_CATEGORIES: FrozenSet[str] = frozenset(c.value for c in Category)
VALID_DELETION_STATES: FrozenSet[str] = frozenset(s.value for s in DeletionState)

# PAID and SEO comments belong to a separate workflow; for pool purposes
# they read as GENERAL.
CATEGORY_TO_POOL: Dict[Category, Pool] = {
    Category.HOT: Pool.PRIME,
    Category.FOLLOW_UP: Pool.ACTIVE,
    Category.BLOCK: Pool.INACTIVE,
    Category.GENERAL: Pool.GENERAL,
    Category.PAID: Pool.GENERAL,
    Category.SEO: Pool.GENERAL,
}

RECYCLE_STATES: FrozenSet[DeletionState] = frozenset(
    {DeletionState.TEAM_LEAD_RECYCLE, DeletionState.ADMIN_RECYCLE}
)

# Ordinary views and the pool each one lists.  ASSIGNED additionally
# requires a fresh assignment window.
VIEW_TO_POOL: Dict[ViewKind, Pool] = {
    ViewKind.ASSIGNED: Pool.UNCATEGORIZED,
    ViewKind.PRIME: Pool.PRIME,
    ViewKind.ACTIVE: Pool.ACTIVE,
    ViewKind.INACTIVE: Pool.INACTIVE,
    ViewKind.GENERAL: Pool.GENERAL,
}

POOL_VIEWS: FrozenSet[ViewKind] = frozenset(VIEW_TO_POOL)

# Recycle-bin views, the deletion state each lists and the role that owns it
RECYCLE_VIEWS: Dict[ViewKind, Tuple[DeletionState, Role]] = {
    ViewKind.TEAM_LEAD_RECYCLE: (DeletionState.TEAM_LEAD_RECYCLE, Role.TEAM_LEAD),
    ViewKind.ADMIN_RECYCLE: (DeletionState.ADMIN_RECYCLE, Role.ADMIN),
}

ALLOWED_TRANSITIONS: Dict[DeletionState, List[DeletionState]] = {
    DeletionState.ACTIVE: [DeletionState.INACTIVE, DeletionState.TEAM_LEAD_RECYCLE],
    DeletionState.INACTIVE: [DeletionState.TEAM_LEAD_RECYCLE, DeletionState.ACTIVE],
    DeletionState.TEAM_LEAD_RECYCLE: [
        DeletionState.ADMIN_RECYCLE,
        DeletionState.ACTIVE,
    ],
    DeletionState.ADMIN_RECYCLE: [DeletionState.ACTIVE],
}

_ALL_ROLES: FrozenSet[Role] = frozenset(Role)

# (from, to) -> roles allowed to perform the transition
TRANSITION_ROLES: Dict[Tuple[DeletionState, DeletionState], FrozenSet[Role]] = {
    (DeletionState.ACTIVE, DeletionState.INACTIVE): _ALL_ROLES,
    (DeletionState.ACTIVE, DeletionState.TEAM_LEAD_RECYCLE): frozenset(
        {Role.EMPLOYEE}
    ),
    (DeletionState.INACTIVE, DeletionState.TEAM_LEAD_RECYCLE): frozenset(
        {Role.EMPLOYEE}
    ),
    (DeletionState.TEAM_LEAD_RECYCLE, DeletionState.ADMIN_RECYCLE): frozenset(
        {Role.TEAM_LEAD}
    ),
    (DeletionState.INACTIVE, DeletionState.ACTIVE): _ALL_ROLES,
    (DeletionState.TEAM_LEAD_RECYCLE, DeletionState.ACTIVE): frozenset(
        {Role.TEAM_LEAD, Role.ADMIN}
    ),
    (DeletionState.ADMIN_RECYCLE, DeletionState.ACTIVE): frozenset({Role.ADMIN}),
}

ASSIGNMENT_WINDOW_HOURS: int = 24

# Bucket label used when grouping by owner and the record has none
UNASSIGNED_BUCKET: str = "unassigned"
ALL_BUCKET: str = "all"

# Stored deletion_state column: NULL means active
DELETION_STATE_CHECK_CLAUSE: str = "deletion_state IS NULL OR deletion_state IN ({})".format(
    ", ".join(repr(s.value) for s in DeletionState)
)
