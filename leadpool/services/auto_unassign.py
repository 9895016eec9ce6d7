import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from leadpool.core.config import settings
from leadpool.core.events import InvalidationBus
from leadpool.core.exceptions import LeadPoolError
from leadpool.repositories.record_repository import RecordRepository
from leadpool.services.lifecycle import LifecycleStateMachine

logger = logging.getLogger(__name__)


async def auto_unassign_expired(
    session_factory: Callable[..., AsyncSession],
    bus: Optional[InvalidationBus] = None,
    now: Optional[datetime] = None,
) -> int:
    """One-shot: clear every company assignment whose window expired.

    The query narrows candidates; the engine has the final word on
    whether each one is really expired.

    Parameters:
        session_factory: An async context-manager callable that yields
            an ``AsyncSession`` (e.g. ``AsyncSessionLocal``).

    Returns the number of unassigned companies.
    """
    now = now or datetime.now(timezone.utc)
    window_hours = settings.ASSIGNMENT_WINDOW_HOURS
    machine = LifecycleStateMachine(window_hours)
    bus = bus or InvalidationBus()
    unassigned = 0

    async with session_factory() as session:
        record_repo = RecordRepository(session)
        expired = await record_repo.list_expired_assignments(
            now - timedelta(hours=window_hours)
        )
        if not expired:
            return 0

        logger.info("Found %d expired assignment(s) to clear", len(expired))

        cleared = []
        for record in expired:
            try:
                plan = machine.plan_unassignment(record, now)
                await record_repo.apply_plan(plan)
            except LeadPoolError as exc:
                logger.warning(
                    "Skipped unassignment of company %s: %s", record.id, exc.detail
                )
                continue
            cleared.append(record.id)
            unassigned += 1

        await session.commit()

    for record_id in cleared:
        await bus.publish("company", record_id, "assignment_expired")
    return unassigned


async def start_auto_unassign_loop(
    session_factory: Callable[..., AsyncSession],
    bus: Optional[InvalidationBus] = None,
) -> None:
    """Infinite loop that clears expired assignments on a fixed interval.

    Parameters:
        session_factory: An async context-manager callable that yields
            an ``AsyncSession``.
    """
    interval = settings.UNASSIGN_SWEEP_INTERVAL_SECONDS
    logger.info(
        "Auto-unassignment background task started (interval=%ds, window=%dh)",
        interval,
        settings.ASSIGNMENT_WINDOW_HOURS,
    )
    while True:
        try:
            count = await auto_unassign_expired(session_factory, bus)
            if count:
                logger.info("Auto-unassignment cycle complete: %d company(ies)", count)
        except Exception:
            logger.error("Auto-unassignment cycle failed", exc_info=True)
        await asyncio.sleep(interval)
