"""Pydantic schemas package – re-exports for convenience."""

# Common enums
from leadpool.schemas.common import (
    AssignmentWindow as AssignmentWindow,
    Category as Category,
    DeletionState as DeletionState,
    GroupKey as GroupKey,
    Origin as Origin,
    Pool as Pool,
    Role as Role,
    ViewKind as ViewKind,
)

# Record model
from leadpool.schemas.record import (
    ActorContext as ActorContext,
    Comment as Comment,
    Record as Record,
    ShareGrant as ShareGrant,
    check_integrity as check_integrity,
    normalize_record as normalize_record,
)

# Engine results
from leadpool.schemas.engine import (
    AggregationResult as AggregationResult,
    BatchResult as BatchResult,
    PoolCounts as PoolCounts,
    RecordFailure as RecordFailure,
    ResolvedRecord as ResolvedRecord,
    TransitionPlan as TransitionPlan,
)
