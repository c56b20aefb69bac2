"""Recurring coach availability: applicability rules, queries, and the write path."""

import logging
from datetime import date, time

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from gymhub.models.availability import LessonAvailability
from gymhub.scheduling.errors import InvalidWindowError

logger = logging.getLogger(__name__)


def window_applies(window: LessonAvailability, d: date) -> bool:
    """True if a recurring window produces lessons on calendar date `d`."""
    if d.weekday() != window.day_of_week:
        return False
    if window.effective_from is not None and d < window.effective_from:
        return False
    if window.effective_until is not None and d > window.effective_until:
        return False
    return True


def validate_window(
    day_of_week: int,
    start_time: time,
    end_time: time,
    effective_from: date | None = None,
    effective_until: date | None = None,
) -> None:
    if not 0 <= day_of_week <= 6:
        raise InvalidWindowError(f"day_of_week must be 0-6, got {day_of_week}")
    if start_time >= end_time:
        raise InvalidWindowError("End time must be after start time")
    if (
        effective_from is not None
        and effective_until is not None
        and effective_from > effective_until
    ):
        raise InvalidWindowError("effective_from must be on or before effective_until")


async def list_windows(
    session: AsyncSession,
    hub_id: int,
    start: date,
    end: date,
    coach_id: int | None = None,
) -> list[LessonAvailability]:
    """Active windows for a hub (or one coach) whose effective range meets [start, end]."""
    stmt = select(LessonAvailability).where(
        LessonAvailability.hub_id == hub_id,
        LessonAvailability.is_active.is_(True),
        or_(
            LessonAvailability.effective_from.is_(None),
            LessonAvailability.effective_from <= end,
        ),
        or_(
            LessonAvailability.effective_until.is_(None),
            LessonAvailability.effective_until >= start,
        ),
    )
    if coach_id is not None:
        stmt = stmt.where(LessonAvailability.coach_user_id == coach_id)
    stmt = stmt.order_by(LessonAvailability.day_of_week, LessonAvailability.start_time)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_window(session: AsyncSession, window_id: int) -> LessonAvailability | None:
    return await session.get(LessonAvailability, window_id)


async def create_window(
    session: AsyncSession,
    hub_id: int,
    coach_id: int,
    day_of_week: int,
    start_time: time,
    end_time: time,
    effective_from: date | None = None,
    effective_until: date | None = None,
) -> LessonAvailability:
    validate_window(day_of_week, start_time, end_time, effective_from, effective_until)
    window = LessonAvailability(
        hub_id=hub_id,
        coach_user_id=coach_id,
        day_of_week=day_of_week,
        start_time=start_time,
        end_time=end_time,
        effective_from=effective_from,
        effective_until=effective_until,
    )
    session.add(window)
    await session.commit()
    await session.refresh(window)
    logger.info(
        "Coach %s available on day %s %s-%s (window %s)",
        coach_id,
        day_of_week,
        start_time,
        end_time,
        window.id,
    )
    return window


async def update_window(
    session: AsyncSession,
    window: LessonAvailability,
    day_of_week: int,
    start_time: time,
    end_time: time,
    effective_from: date | None = None,
    effective_until: date | None = None,
) -> LessonAvailability:
    """Replace a window as a whole record. Already persisted slots are left untouched."""
    validate_window(day_of_week, start_time, end_time, effective_from, effective_until)
    window.day_of_week = day_of_week
    window.start_time = start_time
    window.end_time = end_time
    window.effective_from = effective_from
    window.effective_until = effective_until
    await session.commit()
    await session.refresh(window)
    return window


async def deactivate_window(session: AsyncSession, window: LessonAvailability) -> None:
    window.is_active = False
    await session.commit()
