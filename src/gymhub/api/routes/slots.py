"""Lesson slot API routes: the bookable calendar and coach-managed slots."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from gymhub.api.deps import get_hub_id, get_scheduling_service, get_user_id
from gymhub.database import get_db
from gymhub.scheduling import ledger
from gymhub.scheduling.errors import InvalidSlotError, SlotExpiredError, SlotNotFoundError
from gymhub.scheduling.materializer import to_persisted_slot
from gymhub.scheduling.service import SchedulingService
from gymhub.schemas.slot import BookableSlot, OneOffSlotCreate, PersistedSlot

router = APIRouter(prefix="/api/lessons/slots", tags=["slots"])


@router.get("", response_model=list[BookableSlot])
async def list_slots(
    start: date = Query(),
    end: date = Query(),
    coach_id: int | None = None,
    hub_id: int = Depends(get_hub_id),
    session: AsyncSession = Depends(get_db),
    service: SchedulingService = Depends(get_scheduling_service),
) -> list[BookableSlot]:
    """Bookable slots between two dates (inclusive), stored and generated."""
    try:
        return await service.list_bookable_slots(session, hub_id, start, end, coach_id)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from None


@router.post("", response_model=PersistedSlot, status_code=201)
async def create_one_off_slot(
    body: OneOffSlotCreate,
    hub_id: int = Depends(get_hub_id),
    session: AsyncSession = Depends(get_db),
    service: SchedulingService = Depends(get_scheduling_service),
) -> PersistedSlot:
    """Offer a single lesson time outside the coach's recurring availability."""
    try:
        slot = await service.create_one_off_slot(
            session,
            hub_id=hub_id,
            coach_id=body.coach_user_id,
            slot_date=body.slot_date,
            start_time=body.start_time,
            end_time=body.end_time,
            max_gymnasts=body.max_gymnasts,
        )
    except SlotExpiredError as e:
        raise HTTPException(status_code=422, detail=str(e)) from None
    except InvalidSlotError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    return to_persisted_slot(slot)


@router.delete("/{slot_id}", response_model=PersistedSlot)
async def withdraw_slot(
    slot_id: int,
    hub_id: int = Depends(get_hub_id),
    user_id: int = Depends(get_user_id),
    session: AsyncSession = Depends(get_db),
    service: SchedulingService = Depends(get_scheduling_service),
) -> PersistedSlot:
    """Withdraw a slot; any bookings on it are cancelled."""
    try:
        slot = await service.withdraw_slot(session, hub_id, slot_id, withdrawn_by=user_id)
    except SlotNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except SlotExpiredError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    booked = await ledger.count_active_bookings(session, slot.id)
    return to_persisted_slot(slot, booked)
