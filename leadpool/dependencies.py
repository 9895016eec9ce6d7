import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from leadpool.core.config import settings
from leadpool.core.database import get_db
from leadpool.core.events import InvalidationBus
from leadpool.core.exceptions import InvalidActorError
from leadpool.schemas.common import Role
from leadpool.schemas.record import ActorContext

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Redis client factory
# ---------------------------------------------------------------------------


async def get_redis_client() -> Optional[Redis]:
    """Get an async Redis client instance using connection pooling."""
    try:
        client = Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
        )
        await client.ping()
        return client
    except Exception:
        logger.warning("Redis unavailable – invalidation signals disabled")
        return None


async def get_invalidation_bus(
    redis_client: Optional[Redis] = Depends(get_redis_client),
) -> InvalidationBus:
    """Build an :class:`InvalidationBus` backed by the shared Redis client."""
    return InvalidationBus(redis_client=redis_client)


# ---------------------------------------------------------------------------
# Repository factory functions (one per repository, each gets the shared db)
# ---------------------------------------------------------------------------


async def get_record_repo(
    db: AsyncSession = Depends(get_db),
):
    from leadpool.repositories.record_repository import RecordRepository

    return RecordRepository(db)


async def get_share_repo(
    db: AsyncSession = Depends(get_db),
):
    from leadpool.repositories.share_repository import ShareRepository

    return ShareRepository(db)


async def get_team_repo(
    db: AsyncSession = Depends(get_db),
):
    from leadpool.repositories.team_repository import TeamRepository

    return TeamRepository(db)


# ---------------------------------------------------------------------------
# Actor context
# ---------------------------------------------------------------------------


async def get_actor_context(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
    team_repo=Depends(get_team_repo),
) -> ActorContext:
    """Build the acting user's context from the auth proxy's headers.

    Authentication happens upstream; this only shapes what it forwards.
    Team leads get their roster loaded from the store.
    """
    if not x_user_id or not x_user_role:
        raise InvalidActorError("X-User-Id and X-User-Role headers are required")
    try:
        user_id = str(UUID(x_user_id))
        role = Role(x_user_role)
    except ValueError:
        raise InvalidActorError(
            f"Invalid actor: id={x_user_id!r} role={x_user_role!r}"
        ) from None

    team_member_ids = frozenset()
    if role == Role.TEAM_LEAD:
        team_member_ids = await team_repo.get_team_member_ids(user_id)
    return ActorContext(role=role, user_id=user_id, team_member_ids=team_member_ids)


# ---------------------------------------------------------------------------
# Service factory functions
# ---------------------------------------------------------------------------


async def get_dashboard_service(
    bus: InvalidationBus = Depends(get_invalidation_bus),
):
    """Build a :class:`PoolDashboardService` with injected dependencies."""
    from leadpool.services.dashboard_service import PoolDashboardService

    return PoolDashboardService(bus=bus)
