import itertools
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Callable
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from leadpool.schemas.common import Category, DeletionState, Origin, Role
from leadpool.schemas.record import ActorContext, Comment, Record

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)

EMPLOYEE_ID = "11111111-1111-1111-1111-111111111111"
OTHER_EMPLOYEE_ID = "22222222-2222-2222-2222-222222222222"
OUTSIDER_ID = "33333333-3333-3333-3333-333333333333"
TEAM_LEAD_ID = "44444444-4444-4444-4444-444444444444"
ADMIN_ID = "55555555-5555-5555-5555-555555555555"

_UNSET = object()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def employee() -> ActorContext:
    return ActorContext(role=Role.EMPLOYEE, user_id=EMPLOYEE_ID)


@pytest.fixture
def other_employee() -> ActorContext:
    return ActorContext(role=Role.EMPLOYEE, user_id=OTHER_EMPLOYEE_ID)


@pytest.fixture
def outsider() -> ActorContext:
    """An employee outside the team lead's team."""
    return ActorContext(role=Role.EMPLOYEE, user_id=OUTSIDER_ID)


@pytest.fixture
def team_lead() -> ActorContext:
    """Leads a team of EMPLOYEE_ID and OTHER_EMPLOYEE_ID (not OUTSIDER_ID)."""
    return ActorContext(
        role=Role.TEAM_LEAD,
        user_id=TEAM_LEAD_ID,
        team_member_ids=frozenset({EMPLOYEE_ID, OTHER_EMPLOYEE_ID}),
    )


@pytest.fixture
def admin() -> ActorContext:
    return ActorContext(role=Role.ADMIN, user_id=ADMIN_ID)


@pytest.fixture
def make_comment() -> Callable[..., Comment]:
    """Factory: ``make_comment(Category.HOT, hours_ago=2)``."""
    ids = itertools.count(1)

    def _make(
        category: Category,
        *,
        hours_ago: float = 1,
        created_at: datetime = None,
        comment_id: str = None,
        author_id: str = EMPLOYEE_ID,
    ) -> Comment:
        return Comment(
            id=comment_id or str(next(ids)),
            author_id=author_id,
            text=f"{category.value} note",
            category=category,
            created_at=created_at or NOW - timedelta(hours=hours_ago),
        )

    return _make


@pytest.fixture
def make_record() -> Callable[..., Record]:
    """Factory for consistent records.

    Deleted records get ``deleted_at``/``deleted_by`` filled in unless
    given explicitly.  Pass ``assigned_at=None`` for a never-assigned record.
    """
    ids = itertools.count(1)

    def _make(
        *,
        record_id: str = None,
        origin: Origin = Origin.COMPANY,
        assigned_to=EMPLOYEE_ID,
        assigned_at=_UNSET,
        hours_since_assignment: float = 1,
        comments=(),
        deletion_state: DeletionState = DeletionState.ACTIVE,
        deleted_by=_UNSET,
        deleted_at=_UNSET,
    ) -> Record:
        if assigned_at is _UNSET:
            assigned_at = NOW - timedelta(hours=hours_since_assignment)
        active = deletion_state == DeletionState.ACTIVE
        if deleted_by is _UNSET:
            deleted_by = None if active else EMPLOYEE_ID
        if deleted_at is _UNSET:
            deleted_at = None if active else NOW - timedelta(minutes=30)
        return Record(
            id=record_id or str(next(ids)),
            origin=origin,
            assigned_to=assigned_to,
            assigned_at=assigned_at,
            created_at=NOW - timedelta(days=7),
            deletion_state=deletion_state,
            deleted_at=deleted_at,
            deleted_by=deleted_by,
            comments=list(comments),
        )

    return _make


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Return an ``AsyncMock`` that behaves like ``redis.asyncio.Redis``."""
    redis = AsyncMock()
    redis.publish = AsyncMock(return_value=1)
    redis.ping = AsyncMock()
    return redis


@pytest_asyncio.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Yield an ``httpx.AsyncClient`` wired to the FastAPI app.

    Dependency overrides set on ``app`` are cleared afterwards.
    """
    from leadpool.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
