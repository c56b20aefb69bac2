"""Booking ledger: status machine, capacity accounting, and derived statuses.

Booking rows are the only source of truth for slot occupancy. A slot's
available/partial/booked status is always computed from the count of its
active (pending or confirmed) bookings, so cancelling a booking frees its place
as soon as the cancellation commits.
"""

from collections.abc import Iterable
from datetime import date, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gymhub.models.booking import LessonBooking
from gymhub.models.slot import LessonSlot
from gymhub.scheduling.errors import InvalidTransitionError, SlotFullError

ACTIVE_STATUSES = ("pending", "confirmed")

TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"confirmed", "cancelled"}),
    "confirmed": frozenset({"cancelled", "completed"}),
    "cancelled": frozenset(),
    "completed": frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def transition(booking: LessonBooking, target: str) -> None:
    """Move a booking to `target`, raising InvalidTransitionError if not allowed."""
    if not can_transition(booking.status, target):
        raise InvalidTransitionError(booking.status, target)
    booking.status = target


def cancel(
    booking: LessonBooking,
    cancelled_by: int | None = None,
    reason: str | None = None,
    now: datetime | None = None,
) -> None:
    transition(booking, "cancelled")
    booking.cancelled_at = now or datetime.utcnow()
    booking.cancelled_by = cancelled_by
    booking.cancellation_reason = reason.strip() if reason and reason.strip() else None


def effective_status(status: str, slot_date: date, today: date) -> str:
    """Read-time status: a confirmed lesson whose day has passed counts as completed."""
    if status == "confirmed" and slot_date < today:
        return "completed"
    return status


def derive_slot_status(stored_status: str, booked_count: int, max_gymnasts: int) -> str:
    if stored_status == "cancelled":
        return "cancelled"
    if booked_count >= max_gymnasts:
        return "booked"
    if booked_count > 0:
        return "partial"
    return "available"


def ensure_capacity(slot: LessonSlot, active_count: int) -> None:
    if active_count >= slot.max_gymnasts:
        raise SlotFullError(slot.id, slot.max_gymnasts)


async def count_active_bookings(session: AsyncSession, slot_id: int) -> int:
    stmt = select(func.count(LessonBooking.id)).where(
        LessonBooking.lesson_slot_id == slot_id,
        LessonBooking.status.in_(ACTIVE_STATUSES),
    )
    result = await session.execute(stmt)
    return result.scalar_one()


async def active_booking_counts(
    session: AsyncSession, slot_ids: Iterable[int]
) -> dict[int, int]:
    """Active booking count per slot id (slots without bookings are omitted)."""
    ids = list(slot_ids)
    if not ids:
        return {}
    stmt = (
        select(LessonBooking.lesson_slot_id, func.count(LessonBooking.id))
        .where(
            LessonBooking.lesson_slot_id.in_(ids),
            LessonBooking.status.in_(ACTIVE_STATUSES),
        )
        .group_by(LessonBooking.lesson_slot_id)
    )
    result = await session.execute(stmt)
    return {slot_id: count for slot_id, count in result.all()}


async def lock_slot(session: AsyncSession, slot_id: int) -> LessonSlot | None:
    """Load a slot holding a row lock until the current transaction ends.

    FOR UPDATE is a no-op on SQLite, where writers are already serialized.
    """
    stmt = (
        select(LessonSlot)
        .where(LessonSlot.id == slot_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()
