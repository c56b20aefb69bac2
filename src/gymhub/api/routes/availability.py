"""Availability API routes: recurring weekly lesson windows per coach."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gymhub.api.deps import get_hub_id
from gymhub.database import get_db
from gymhub.models.availability import LessonAvailability
from gymhub.scheduling import availability as store
from gymhub.scheduling.errors import InvalidWindowError
from gymhub.schemas.availability import (
    LessonAvailabilityCreate,
    LessonAvailabilityRead,
    LessonAvailabilityUpdate,
)

router = APIRouter(prefix="/api/lessons/availability", tags=["availability"])


async def _get_window_or_404(
    session: AsyncSession, hub_id: int, window_id: int
) -> LessonAvailability:
    window = await store.get_window(session, window_id)
    if window is None or window.hub_id != hub_id or not window.is_active:
        raise HTTPException(status_code=404, detail="Availability window not found")
    return window


@router.get("", response_model=list[LessonAvailabilityRead])
async def list_availability(
    coach_id: int | None = None,
    hub_id: int = Depends(get_hub_id),
    session: AsyncSession = Depends(get_db),
) -> list[LessonAvailability]:
    """List active recurring windows, ordered by day and start time."""
    stmt = select(LessonAvailability).where(
        LessonAvailability.hub_id == hub_id,
        LessonAvailability.is_active.is_(True),
    )
    if coach_id is not None:
        stmt = stmt.where(LessonAvailability.coach_user_id == coach_id)
    stmt = stmt.order_by(
        LessonAvailability.coach_user_id,
        LessonAvailability.day_of_week,
        LessonAvailability.start_time,
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


@router.post("", response_model=LessonAvailabilityRead, status_code=201)
async def create_availability(
    body: LessonAvailabilityCreate,
    hub_id: int = Depends(get_hub_id),
    session: AsyncSession = Depends(get_db),
) -> LessonAvailability:
    try:
        return await store.create_window(
            session,
            hub_id=hub_id,
            coach_id=body.coach_user_id,
            day_of_week=body.day_of_week,
            start_time=body.start_time,
            end_time=body.end_time,
            effective_from=body.effective_from,
            effective_until=body.effective_until,
        )
    except InvalidWindowError as e:
        raise HTTPException(status_code=422, detail=str(e)) from None


@router.put("/{window_id}", response_model=LessonAvailabilityRead)
async def update_availability(
    window_id: int,
    body: LessonAvailabilityUpdate,
    hub_id: int = Depends(get_hub_id),
    session: AsyncSession = Depends(get_db),
) -> LessonAvailability:
    """Replace a window. Lesson slots already booked from it keep their times."""
    window = await _get_window_or_404(session, hub_id, window_id)
    try:
        return await store.update_window(
            session,
            window,
            day_of_week=body.day_of_week,
            start_time=body.start_time,
            end_time=body.end_time,
            effective_from=body.effective_from,
            effective_until=body.effective_until,
        )
    except InvalidWindowError as e:
        raise HTTPException(status_code=422, detail=str(e)) from None


@router.delete("/{window_id}", status_code=204)
async def delete_availability(
    window_id: int,
    hub_id: int = Depends(get_hub_id),
    session: AsyncSession = Depends(get_db),
) -> None:
    """Deactivate a window; it stops generating new slots."""
    window = await _get_window_or_404(session, hub_id, window_id)
    await store.deactivate_window(session, window)
