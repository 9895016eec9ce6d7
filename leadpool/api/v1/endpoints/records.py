from fastapi import APIRouter, Depends

from leadpool.api.deps import (
    get_actor_context,
    get_dashboard_service,
    get_record_repo,
    get_share_repo,
)
from leadpool.repositories.record_repository import RecordRepository
from leadpool.repositories.share_repository import ShareRepository
from leadpool.schemas.api import ReassignRequest, TransitionRequest, TransitionResponse
from leadpool.schemas.common import Origin
from leadpool.schemas.record import ActorContext
from leadpool.services.dashboard_service import PoolDashboardService

router = APIRouter(prefix="/records", tags=["Records"])


@router.post(
    "/{origin}/{record_id}/transition", response_model=TransitionResponse
)
async def transition_record(
    origin: Origin,
    record_id: str,
    body: TransitionRequest,
    actor: ActorContext = Depends(get_actor_context),
    service: PoolDashboardService = Depends(get_dashboard_service),
    record_repo: RecordRepository = Depends(get_record_repo),
    share_repo: ShareRepository = Depends(get_share_repo),
) -> TransitionResponse:
    """Move a record between active, inactive and the recycle tiers."""
    return await service.transition(
        actor, origin, record_id, body.target, record_repo, share_repo
    )


@router.post(
    "/{origin}/{record_id}/restore-reassign", response_model=TransitionResponse
)
async def restore_and_reassign_record(
    origin: Origin,
    record_id: str,
    body: ReassignRequest,
    actor: ActorContext = Depends(get_actor_context),
    service: PoolDashboardService = Depends(get_dashboard_service),
    record_repo: RecordRepository = Depends(get_record_repo),
) -> TransitionResponse:
    """Restore a deleted record and hand it to an employee uncategorized."""
    return await service.restore_and_reassign(
        actor, origin, record_id, body.assignee_id, record_repo
    )


@router.delete("/{origin}/{record_id}", response_model=TransitionResponse)
async def permanently_delete_record(
    origin: Origin,
    record_id: str,
    actor: ActorContext = Depends(get_actor_context),
    service: PoolDashboardService = Depends(get_dashboard_service),
    record_repo: RecordRepository = Depends(get_record_repo),
) -> TransitionResponse:
    """Remove an admin-recycle record for good (admins only)."""
    return await service.permanent_delete(actor, origin, record_id, record_repo)
