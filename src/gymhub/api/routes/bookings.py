"""Booking API routes: book, list, and move lessons through their lifecycle."""

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from gymhub.api.deps import get_hub_id, get_scheduling_service, get_user_id
from gymhub.database import get_db
from gymhub.scheduling import ledger
from gymhub.scheduling.errors import (
    BookingNotFoundError,
    InvalidTransitionError,
    PackageNotFoundError,
    SlotExpiredError,
    SlotFullError,
    SlotNotFoundError,
)
from gymhub.scheduling.materializer import to_persisted_slot
from gymhub.scheduling.service import BookingView, SchedulingService
from gymhub.schemas.booking import BookingCancel, BookingCreate, BookingRead, DateFilter

router = APIRouter(prefix="/api/lessons/bookings", tags=["bookings"])


def _to_read(view: BookingView, booked_count: int = 0) -> BookingRead:
    b = view.booking
    return BookingRead(
        id=b.id,
        hub_id=b.hub_id,
        lesson_slot_id=b.lesson_slot_id,
        gymnast_profile_id=b.gymnast_profile_id,
        booked_by_user_id=b.booked_by_user_id,
        event=b.event,
        package_id=b.package_id,
        cost=b.cost,
        status=b.status,
        effective_status=view.effective_status,
        notes=b.notes,
        cancelled_at=b.cancelled_at,
        cancelled_by=b.cancelled_by,
        cancellation_reason=b.cancellation_reason,
        created_at=b.created_at,
        slot=to_persisted_slot(view.slot, booked_count),
    )


async def _read_one(
    session: AsyncSession, service: SchedulingService, hub_id: int, booking_id: int
) -> BookingRead:
    view = await service.get_booking(session, hub_id, booking_id)
    booked = await ledger.count_active_bookings(session, view.slot.id)
    return _to_read(view, booked)


@router.get("", response_model=list[BookingRead])
async def list_bookings(
    coach_id: int | None = None,
    requester_id: int | None = None,
    gymnast_id: int | None = None,
    date_filter: DateFilter = "upcoming",
    hub_id: int = Depends(get_hub_id),
    session: AsyncSession = Depends(get_db),
    service: SchedulingService = Depends(get_scheduling_service),
) -> list[BookingRead]:
    """List bookings by coach, requester or gymnast.

    `date_filter`: today | upcoming (default) | past | all.
    """
    views = await service.list_bookings(
        session,
        hub_id,
        coach_id=coach_id,
        requester_id=requester_id,
        gymnast_id=gymnast_id,
        date_filter=date_filter,
    )
    counts = await ledger.active_booking_counts(session, {v.slot.id for v in views})
    return [_to_read(v, counts.get(v.slot.id, 0)) for v in views]


@router.post("", response_model=BookingRead, status_code=201)
async def book_slot(
    body: BookingCreate,
    hub_id: int = Depends(get_hub_id),
    user_id: int = Depends(get_user_id),
    session: AsyncSession = Depends(get_db),
    service: SchedulingService = Depends(get_scheduling_service),
) -> BookingRead:
    """Book a gymnast into a stored or generated slot.

    Returns 409 when the slot filled up or its time has passed; the caller
    should reload the calendar.
    """
    try:
        booking = await service.book_slot(
            session,
            hub_id,
            body.slot,
            gymnast_id=body.gymnast_profile_id,
            event=body.event,
            requester_id=user_id,
            notes=body.notes,
            package_id=body.package_id,
        )
    except (SlotFullError, SlotExpiredError) as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    except (SlotNotFoundError, PackageNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    return await _read_one(session, service, hub_id, booking.id)


@router.get("/{booking_id}", response_model=BookingRead)
async def get_booking(
    booking_id: int,
    hub_id: int = Depends(get_hub_id),
    session: AsyncSession = Depends(get_db),
    service: SchedulingService = Depends(get_scheduling_service),
) -> BookingRead:
    try:
        return await _read_one(session, service, hub_id, booking_id)
    except BookingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None


@router.post("/{booking_id}/cancel", response_model=BookingRead)
async def cancel_booking(
    booking_id: int,
    body: BookingCancel | None = Body(default=None),
    hub_id: int = Depends(get_hub_id),
    user_id: int = Depends(get_user_id),
    session: AsyncSession = Depends(get_db),
    service: SchedulingService = Depends(get_scheduling_service),
) -> BookingRead:
    try:
        await service.cancel_booking(
            session,
            hub_id,
            booking_id,
            cancelled_by=user_id,
            reason=body.reason if body else None,
        )
    except BookingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    return await _read_one(session, service, hub_id, booking_id)


@router.post("/{booking_id}/confirm", response_model=BookingRead)
async def confirm_booking(
    booking_id: int,
    hub_id: int = Depends(get_hub_id),
    session: AsyncSession = Depends(get_db),
    service: SchedulingService = Depends(get_scheduling_service),
) -> BookingRead:
    try:
        await service.confirm_booking(session, hub_id, booking_id)
    except BookingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    return await _read_one(session, service, hub_id, booking_id)


@router.post("/{booking_id}/complete", response_model=BookingRead)
async def complete_booking(
    booking_id: int,
    hub_id: int = Depends(get_hub_id),
    session: AsyncSession = Depends(get_db),
    service: SchedulingService = Depends(get_scheduling_service),
) -> BookingRead:
    try:
        await service.complete_booking(session, hub_id, booking_id)
    except BookingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    return await _read_one(session, service, hub_id, booking_id)
