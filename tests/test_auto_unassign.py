from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from leadpool.core.events import InvalidationBus
from leadpool.schemas.common import Category
from leadpool.services.auto_unassign import auto_unassign_expired


def _session_factory():
    """Return ``(factory, session)`` mimicking ``AsyncSessionLocal``."""
    mock_session = AsyncMock()
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=False)
    mock_session.commit = AsyncMock()
    return MagicMock(return_value=mock_session), mock_session


@pytest.fixture
def bus():
    bus = MagicMock(spec=InvalidationBus)
    bus.publish = AsyncMock(return_value=True)
    return bus


class TestAutoUnassignExpired:
    """Verify the auto-unassignment one-shot function."""

    @pytest.mark.asyncio
    async def test_no_expired_assignments_returns_zero(self, bus, now):
        """When nothing has expired, nothing is written or announced."""
        session_factory, mock_session = _session_factory()

        with patch("leadpool.services.auto_unassign.RecordRepository") as MockRepo:
            MockRepo.return_value.list_expired_assignments = AsyncMock(return_value=[])
            count = await auto_unassign_expired(session_factory, bus, now=now)

        assert count == 0
        mock_session.commit.assert_not_awaited()
        bus.publish.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_expired_assignments_are_cleared(self, bus, make_record, now):
        """Each expired company gets an unassignment plan and a signal."""
        expired = [make_record(hours_since_assignment=25) for _ in range(3)]
        session_factory, mock_session = _session_factory()

        with patch("leadpool.services.auto_unassign.RecordRepository") as MockRepo:
            repo = MockRepo.return_value
            repo.list_expired_assignments = AsyncMock(return_value=expired)
            repo.apply_plan = AsyncMock()
            count = await auto_unassign_expired(session_factory, bus, now=now)

        assert count == 3
        assert repo.apply_plan.await_count == 3
        plan = repo.apply_plan.await_args_list[0].args[0]
        assert plan.fields_to_write == {"assigned_to": None, "assigned_at": None}
        mock_session.commit.assert_awaited_once()
        bus.publish.assert_any_await("company", expired[0].id, "assignment_expired")
        assert bus.publish.await_count == 3

    @pytest.mark.asyncio
    async def test_engine_overrules_the_query(
        self, bus, make_record, make_comment, now
    ):
        """Candidates that turn out fresh or worked are skipped."""
        candidates = [
            make_record(hours_since_assignment=2),
            make_record(
                hours_since_assignment=30, comments=[make_comment(Category.HOT)]
            ),
            make_record(hours_since_assignment=30),
        ]
        session_factory, _ = _session_factory()

        with patch("leadpool.services.auto_unassign.RecordRepository") as MockRepo:
            repo = MockRepo.return_value
            repo.list_expired_assignments = AsyncMock(return_value=candidates)
            repo.apply_plan = AsyncMock()
            count = await auto_unassign_expired(session_factory, bus, now=now)

        assert count == 1
        repo.apply_plan.assert_awaited_once()
        bus.publish.assert_awaited_once_with(
            "company", candidates[2].id, "assignment_expired"
        )

    @pytest.mark.asyncio
    async def test_works_without_redis(self, make_record, now):
        """A bus with no Redis client must not break the sweep."""
        session_factory, _ = _session_factory()

        with patch("leadpool.services.auto_unassign.RecordRepository") as MockRepo:
            repo = MockRepo.return_value
            repo.list_expired_assignments = AsyncMock(
                return_value=[make_record(hours_since_assignment=48)]
            )
            repo.apply_plan = AsyncMock()
            count = await auto_unassign_expired(
                session_factory, InvalidationBus(None), now=now
            )

        assert count == 1
