"""Request / response bodies of the HTTP adapter."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from leadpool.schemas.common import (
    AssignmentWindow,
    Category,
    DeletionState,
    Origin,
    Pool,
    ViewKind,
)
from leadpool.schemas.engine import PoolCounts, RecordFailure


class TransitionRequest(BaseModel):
    """Body for POST /records/{origin}/{record_id}/transition."""

    target: DeletionState


class ReassignRequest(BaseModel):
    """Body for POST /records/{origin}/{record_id}/restore-reassign."""

    assignee_id: str = Field(..., min_length=1)


class RecordOut(BaseModel):
    id: str
    origin: Origin
    pool: Pool
    assigned_to: Optional[str] = None
    assigned_at: Optional[datetime] = None
    deletion_state: DeletionState
    deleted_at: Optional[datetime] = None
    deleted_by: Optional[str] = None
    latest_category: Optional[Category] = None
    comment_count: int = 0
    window: AssignmentWindow


class ViewResponse(BaseModel):
    view: ViewKind
    records: List[RecordOut] = Field(default_factory=list)
    failures: List[RecordFailure] = Field(default_factory=list)


class CountsResponse(BaseModel):
    counts: Dict[str, PoolCounts] = Field(default_factory=dict)
    skipped: int = 0
    failures: List[RecordFailure] = Field(default_factory=list)
    today: int = Field(0, description="Records commented on today (UTC)")


class TransitionResponse(BaseModel):
    success: bool = True
    record_id: str
    origin: Origin
    from_state: DeletionState
    to_state: Optional[DeletionState] = None
    destroyed: bool = False
    comments_cleared: bool = False
    implicit_comment_category: Optional[Category] = None
