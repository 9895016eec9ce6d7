from fastapi import APIRouter, Depends, Query

from leadpool.api.deps import (
    get_actor_context,
    get_dashboard_service,
    get_record_repo,
    get_share_repo,
)
from leadpool.repositories.record_repository import RecordRepository
from leadpool.repositories.share_repository import ShareRepository
from leadpool.schemas.api import CountsResponse, ViewResponse
from leadpool.schemas.common import GroupKey, ViewKind
from leadpool.schemas.record import ActorContext
from leadpool.services.dashboard_service import PoolDashboardService

router = APIRouter(prefix="/pools", tags=["Pools"])


@router.get("/counts", response_model=CountsResponse)
async def get_pool_counts(
    group_by: GroupKey = Query(GroupKey.OWNER),
    actor: ActorContext = Depends(get_actor_context),
    service: PoolDashboardService = Depends(get_dashboard_service),
    record_repo: RecordRepository = Depends(get_record_repo),
    share_repo: ShareRepository = Depends(get_share_repo),
) -> CountsResponse:
    """Return pool badge counts for the actor's dashboard.

    Malformed rows are reported under ``skipped``/``failures`` instead of
    failing the request.
    """
    return await service.get_counts(actor, group_by, record_repo, share_repo)


@router.get("/{view}", response_model=ViewResponse)
async def get_pool_view(
    view: ViewKind,
    team: bool = Query(
        False,
        description="Team-lead/admin oversight: include records owned by others.",
    ),
    actor: ActorContext = Depends(get_actor_context),
    service: PoolDashboardService = Depends(get_dashboard_service),
    record_repo: RecordRepository = Depends(get_record_repo),
    share_repo: ShareRepository = Depends(get_share_repo),
) -> ViewResponse:
    """Return the records listed in one pool or recycle-bin view."""
    return await service.get_view(
        actor, view, record_repo, share_repo, aggregate_scope=team
    )
