"""API-layer dependency functions.

Re-exports all dependency factories from ``leadpool.dependencies`` so that
endpoint modules only need to import from ``leadpool.api.deps``.
"""

from leadpool.dependencies import (
    # Repository factories
    get_record_repo,
    get_share_repo,
    get_team_repo,
    # Actor
    get_actor_context,
    # Service factories
    get_dashboard_service,
    get_invalidation_bus,
    # Redis
    get_redis_client,
)

__all__ = [
    "get_record_repo",
    "get_share_repo",
    "get_team_repo",
    "get_actor_context",
    "get_dashboard_service",
    "get_invalidation_bus",
    "get_redis_client",
]
