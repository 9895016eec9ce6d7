"""Result types produced by the categorization and lifecycle engine."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from leadpool.schemas.common import Category, DeletionState, Origin, Pool
from leadpool.schemas.record import Record


class TransitionPlan(BaseModel):
    """What a lifecycle transition *should* write.  Never applied by the engine."""

    record_id: str
    origin: Origin
    from_state: DeletionState
    to_state: Optional[DeletionState] = None
    allowed: bool = True
    fields_to_write: Dict[str, Any] = Field(default_factory=dict)
    # Comment the store must insert alongside the write (ACTIVE -> INACTIVE)
    implicit_comment_category: Optional[Category] = None
    clear_comments: bool = False
    # Permanent removal; fields_to_write is empty
    destroy: bool = False


class PoolCounts(BaseModel):
    prime: int = 0
    active: int = 0
    inactive: int = 0
    general: int = 0
    uncategorized: int = 0
    recycled: int = 0
    # Uncategorized records inside a fresh assignment window
    assigned: int = 0
    total: int = 0

    def add(self, pool: Pool, *, assigned: bool = False) -> None:
        setattr(self, pool.value, getattr(self, pool.value) + 1)
        if assigned:
            self.assigned += 1
        self.total += 1


class RecordFailure(BaseModel):
    record_id: Optional[str] = None
    error: str


class AggregationResult(BaseModel):
    counts: Dict[str, PoolCounts] = Field(default_factory=dict)
    skipped: int = 0
    failures: List[RecordFailure] = Field(default_factory=list)


class ResolvedRecord(BaseModel):
    record: Record
    pool: Pool


class BatchResult(BaseModel):
    succeeded: List[ResolvedRecord] = Field(default_factory=list)
    failed: List[RecordFailure] = Field(default_factory=list)
