"""Scheduling service: bookable slot listing and the booking lifecycle."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, time
from weakref import WeakValueDictionary
from zoneinfo import ZoneInfo

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from gymhub.config import Settings, get_settings
from gymhub.models.availability import LessonAvailability
from gymhub.models.booking import LessonBooking
from gymhub.models.lessons import CoachLessonProfile, LessonPackage
from gymhub.models.slot import LessonSlot
from gymhub.scheduling import ledger
from gymhub.scheduling.availability import list_windows, window_applies
from gymhub.scheduling.errors import (
    BookingNotFoundError,
    InvalidSlotError,
    InvalidTransitionError,
    MaterializationConflict,
    PackageNotFoundError,
    SchedulingError,
    SlotExpiredError,
    SlotNotFoundError,
)
from gymhub.scheduling.materializer import DateRange, lesson_duration, materialize, tile_window
from gymhub.schemas.booking import DateFilter
from gymhub.schemas.lessons import LESSON_EVENTS
from gymhub.schemas.slot import BookableSlot, VirtualSlot
from gymhub.store import insert_or_fetch

logger = logging.getLogger(__name__)

SlotCoordinate = tuple[int, date, time]

WITHDRAWN_REASON = "Lesson slot withdrawn by coach"


def hub_today(timezone: str) -> date:
    return datetime.now(ZoneInfo(timezone)).date()


@dataclass
class BookingView:
    """A booking with its slot and read-time status."""

    booking: LessonBooking
    slot: LessonSlot
    effective_status: str


class SchedulingService:
    """Orchestrates slot materialization and bookings for one application.

    Keep a single instance per process: it owns the per-slot locks that
    serialize concurrent booking attempts on the same coach/date/time.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        clock: Callable[[], date] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._clock = clock or (lambda: hub_today(self._settings.timezone))
        self._locks: WeakValueDictionary[SlotCoordinate, asyncio.Lock] = WeakValueDictionary()

    def today(self) -> date:
        return self._clock()

    def _lock_for(self, coordinate: SlotCoordinate) -> asyncio.Lock:
        lock = self._locks.get(coordinate)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[coordinate] = lock
        return lock

    # -- Reads ---------------------------------------------------------------

    async def list_bookable_slots(
        self,
        session: AsyncSession,
        hub_id: int,
        start: date,
        end: date,
        coach_id: int | None = None,
    ) -> list[BookableSlot]:
        """Persisted and generated slots for a hub (or one coach), sorted by time."""
        date_range = DateRange(start, end)
        span = (end - start).days + 1
        if span > self._settings.max_calendar_range_days:
            raise ValueError(
                f"Date range spans {span} days; at most "
                f"{self._settings.max_calendar_range_days} allowed"
            )

        windows = await list_windows(session, hub_id, start, end, coach_id)

        slot_stmt = select(LessonSlot).where(
            LessonSlot.hub_id == hub_id,
            LessonSlot.slot_date >= start,
            LessonSlot.slot_date <= end,
        )
        package_stmt = (
            select(LessonPackage)
            .where(LessonPackage.hub_id == hub_id, LessonPackage.is_active.is_(True))
            .order_by(LessonPackage.sort_order)
        )
        profile_stmt = select(CoachLessonProfile).where(
            CoachLessonProfile.hub_id == hub_id,
            CoachLessonProfile.is_active.is_(True),
        )
        if coach_id is not None:
            slot_stmt = slot_stmt.where(LessonSlot.coach_user_id == coach_id)
            package_stmt = package_stmt.where(LessonPackage.coach_user_id == coach_id)
            profile_stmt = profile_stmt.where(CoachLessonProfile.coach_user_id == coach_id)

        persisted = list((await session.execute(slot_stmt)).scalars().all())
        packages = list((await session.execute(package_stmt)).scalars().all())
        profiles = {p.coach_user_id: p for p in (await session.execute(profile_stmt)).scalars()}
        counts = await ledger.active_booking_counts(session, [s.id for s in persisted])

        # A coach's time held in another hub still occupies the coordinate.
        coaches = {w.coach_user_id for w in windows}
        blocked: list[SlotCoordinate] = []
        if coaches:
            blocked_stmt = select(
                LessonSlot.coach_user_id, LessonSlot.slot_date, LessonSlot.start_time
            ).where(
                LessonSlot.hub_id != hub_id,
                LessonSlot.coach_user_id.in_(coaches),
                LessonSlot.slot_date >= start,
                LessonSlot.slot_date <= end,
            )
            blocked = [tuple(row) for row in (await session.execute(blocked_stmt)).all()]

        return materialize(
            date_range,
            persisted,
            windows,
            packages,
            profiles,
            today=self.today(),
            coach_id=coach_id,
            booking_counts=counts,
            default_duration=self._settings.default_lesson_duration_minutes,
            default_max_gymnasts=self._settings.default_max_gymnasts,
            blocked=blocked,
        )

    async def list_bookings(
        self,
        session: AsyncSession,
        hub_id: int,
        coach_id: int | None = None,
        requester_id: int | None = None,
        gymnast_id: int | None = None,
        date_filter: DateFilter = "upcoming",
    ) -> list[BookingView]:
        today = self.today()
        stmt = (
            select(LessonBooking, LessonSlot)
            .join(LessonSlot, LessonBooking.lesson_slot_id == LessonSlot.id)
            .where(LessonBooking.hub_id == hub_id)
        )
        if coach_id is not None:
            stmt = stmt.where(LessonSlot.coach_user_id == coach_id)
        if requester_id is not None:
            stmt = stmt.where(LessonBooking.booked_by_user_id == requester_id)
        if gymnast_id is not None:
            stmt = stmt.where(LessonBooking.gymnast_profile_id == gymnast_id)

        if date_filter == "today":
            stmt = stmt.where(
                LessonSlot.slot_date == today,
                LessonBooking.status.in_(ledger.ACTIVE_STATUSES),
            ).order_by(LessonSlot.start_time)
        elif date_filter == "upcoming":
            stmt = stmt.where(
                LessonSlot.slot_date >= today,
                LessonBooking.status.in_(ledger.ACTIVE_STATUSES),
            ).order_by(LessonSlot.slot_date, LessonSlot.start_time)
        elif date_filter == "past":
            stmt = stmt.where(
                or_(LessonSlot.slot_date < today, LessonBooking.status == "cancelled")
            ).order_by(LessonBooking.created_at.desc(), LessonBooking.id.desc())
        elif date_filter == "all":
            stmt = stmt.order_by(LessonBooking.created_at.desc(), LessonBooking.id.desc())
        else:
            raise ValueError(f"Unknown date filter '{date_filter}'")

        result = await session.execute(stmt)
        return [
            BookingView(
                booking=booking,
                slot=slot,
                effective_status=ledger.effective_status(booking.status, slot.slot_date, today),
            )
            for booking, slot in result.all()
        ]

    async def get_booking(
        self, session: AsyncSession, hub_id: int, booking_id: int
    ) -> BookingView:
        booking = await self._get_booking(session, hub_id, booking_id)
        slot = await self._slot_of(session, booking)
        return BookingView(
            booking=booking,
            slot=slot,
            effective_status=ledger.effective_status(booking.status, slot.slot_date, self.today()),
        )

    # -- Booking -------------------------------------------------------------

    async def book_slot(
        self,
        session: AsyncSession,
        hub_id: int,
        slot: BookableSlot,
        gymnast_id: int,
        event: str,
        requester_id: int,
        notes: str | None = None,
        package_id: int | None = None,
    ) -> LessonBooking:
        """Book a gymnast into a slot, persisting a generated slot first if needed.

        Raises:
            SlotExpiredError: the slot's date is before today.
            SlotFullError: the slot has no capacity left.
            SlotNotFoundError: the slot is unknown, withdrawn, or no longer
                matches its coach's availability.
            PackageNotFoundError: `package_id` is not an active package of the coach.
        """
        if event not in LESSON_EVENTS:
            raise ValueError(f"Unknown lesson event '{event}'")

        if isinstance(slot, VirtualSlot):
            coordinate = (slot.coach_user_id, slot.slot_date, slot.start_time)
        else:
            existing = await session.get(LessonSlot, slot.id)
            if existing is None or existing.hub_id != hub_id:
                raise SlotNotFoundError(f"Lesson slot {slot.id} not found")
            coordinate = (existing.coach_user_id, existing.slot_date, existing.start_time)

        if coordinate[1] < self.today():
            raise SlotExpiredError(coordinate[1])

        async with self._lock_for(coordinate):
            try:
                if isinstance(slot, VirtualSlot):
                    slot_id = (await self._materialize(session, hub_id, slot)).id
                else:
                    slot_id = slot.id
                booking = await self._insert_booking(
                    session, hub_id, slot_id, gymnast_id, event, requester_id, notes, package_id
                )
            except Exception:
                await session.rollback()
                raise

        logger.info(
            "Booked gymnast %s into slot %s (booking %s, %s)",
            gymnast_id,
            booking.lesson_slot_id,
            booking.id,
            booking.status,
        )
        return booking

    async def _materialize(
        self, session: AsyncSession, hub_id: int, slot: VirtualSlot
    ) -> LessonSlot:
        """Get-or-create the stored slot behind a generated one."""
        window = await session.get(LessonAvailability, slot.availability_id)
        if (
            window is None
            or not window.is_active
            or window.hub_id != hub_id
            or window.coach_user_id != slot.coach_user_id
            or not window_applies(window, slot.slot_date)
        ):
            raise SlotNotFoundError("This time is no longer offered.")

        profile, packages = await self._coach_setup(session, hub_id, slot.coach_user_id)
        duration = lesson_duration(
            slot.coach_user_id,
            packages,
            profile,
            self._settings.default_lesson_duration_minutes,
        )
        tiles = tile_window(window.start_time, window.end_time, duration)
        if (slot.start_time, slot.end_time) not in tiles:
            raise SlotNotFoundError("This time is no longer offered.")

        max_gymnasts = (
            profile.max_gymnasts_per_slot
            if profile is not None and profile.max_gymnasts_per_slot
            else self._settings.default_max_gymnasts
        )
        row, created = await insert_or_fetch(
            session,
            LessonSlot,
            {
                "coach_user_id": slot.coach_user_id,
                "slot_date": slot.slot_date,
                "start_time": slot.start_time,
            },
            {
                "hub_id": hub_id,
                "end_time": slot.end_time,
                "max_gymnasts": max_gymnasts,
                "availability_id": window.id,
                "is_one_off": False,
                "status": "available",
            },
            conflict=MaterializationConflict,
        )
        if created:
            logger.info("Materialized %s as lesson slot %s", slot.key, row.id)
        return row

    async def _insert_booking(
        self,
        session: AsyncSession,
        hub_id: int,
        slot_id: int,
        gymnast_id: int,
        event: str,
        requester_id: int,
        notes: str | None,
        package_id: int | None,
    ) -> LessonBooking:
        locked = await ledger.lock_slot(session, slot_id)
        if locked is None or locked.hub_id != hub_id or locked.status == "cancelled":
            raise SlotNotFoundError("This time is no longer offered.")
        if locked.slot_date < self.today():
            raise SlotExpiredError(locked.slot_date)

        active = await ledger.count_active_bookings(session, locked.id)
        try:
            ledger.ensure_capacity(locked, active)
        except SchedulingError:
            logger.info("Slot %s is full (%s/%s)", locked.id, active, locked.max_gymnasts)
            raise

        cost = await self._lesson_cost(session, hub_id, locked.coach_user_id, package_id)
        booking = LessonBooking(
            hub_id=hub_id,
            lesson_slot_id=locked.id,
            gymnast_profile_id=gymnast_id,
            booked_by_user_id=requester_id,
            event=event,
            package_id=package_id,
            cost=cost,
            status="confirmed" if self._settings.auto_confirm_bookings else "pending",
            notes=notes.strip() if notes and notes.strip() else None,
        )
        session.add(booking)
        await session.commit()
        await session.refresh(booking)
        return booking

    async def _coach_setup(
        self, session: AsyncSession, hub_id: int, coach_id: int
    ) -> tuple[CoachLessonProfile | None, list[LessonPackage]]:
        profile_result = await session.execute(
            select(CoachLessonProfile).where(
                CoachLessonProfile.hub_id == hub_id,
                CoachLessonProfile.coach_user_id == coach_id,
                CoachLessonProfile.is_active.is_(True),
            )
        )
        package_result = await session.execute(
            select(LessonPackage).where(
                LessonPackage.hub_id == hub_id,
                LessonPackage.coach_user_id == coach_id,
                LessonPackage.is_active.is_(True),
            )
        )
        return profile_result.scalar_one_or_none(), list(package_result.scalars().all())

    async def _lesson_cost(
        self, session: AsyncSession, hub_id: int, coach_id: int, package_id: int | None
    ) -> float:
        """Package price if one was chosen, otherwise the coach's per-lesson cost."""
        if package_id is not None:
            package = await session.get(LessonPackage, package_id)
            if (
                package is None
                or not package.is_active
                or package.hub_id != hub_id
                or package.coach_user_id != coach_id
            ):
                raise PackageNotFoundError(f"Lesson package {package_id} not found")
            return package.price

        result = await session.execute(
            select(CoachLessonProfile.cost_per_lesson).where(
                CoachLessonProfile.hub_id == hub_id,
                CoachLessonProfile.coach_user_id == coach_id,
            )
        )
        return result.scalar_one_or_none() or 0.0

    # -- Status changes ------------------------------------------------------

    async def _get_booking(
        self, session: AsyncSession, hub_id: int, booking_id: int
    ) -> LessonBooking:
        booking = await session.get(LessonBooking, booking_id)
        if booking is None or booking.hub_id != hub_id:
            raise BookingNotFoundError(f"Booking {booking_id} not found")
        return booking

    async def _slot_of(self, session: AsyncSession, booking: LessonBooking) -> LessonSlot:
        slot = await session.get(LessonSlot, booking.lesson_slot_id)
        if slot is None:
            raise BookingNotFoundError(
                f"Booking {booking.id} refers to missing slot {booking.lesson_slot_id}"
            )
        return slot

    async def _check_transition(
        self, session: AsyncSession, booking: LessonBooking, target: str
    ) -> LessonSlot:
        """Reject moves out of the read-time status; a past confirmed lesson is completed."""
        slot = await self._slot_of(session, booking)
        current = ledger.effective_status(booking.status, slot.slot_date, self.today())
        if not ledger.can_transition(current, target):
            raise InvalidTransitionError(current, target)
        return slot

    async def cancel_booking(
        self,
        session: AsyncSession,
        hub_id: int,
        booking_id: int,
        cancelled_by: int | None = None,
        reason: str | None = None,
    ) -> LessonBooking:
        """Cancel a pending or confirmed booking, freeing its place immediately."""
        booking = await self._get_booking(session, hub_id, booking_id)
        await self._check_transition(session, booking, "cancelled")
        ledger.cancel(booking, cancelled_by=cancelled_by, reason=reason)
        await session.commit()
        await session.refresh(booking)
        logger.info("Cancelled booking %s on slot %s", booking.id, booking.lesson_slot_id)
        return booking

    async def confirm_booking(
        self, session: AsyncSession, hub_id: int, booking_id: int
    ) -> LessonBooking:
        """Confirm a pending booking. Lessons whose day has passed cannot be confirmed."""
        booking = await self._get_booking(session, hub_id, booking_id)
        slot = await self._check_transition(session, booking, "confirmed")
        if slot.slot_date < self.today():
            raise InvalidTransitionError(booking.status, "confirmed")
        ledger.transition(booking, "confirmed")
        await session.commit()
        await session.refresh(booking)
        return booking

    async def complete_booking(
        self, session: AsyncSession, hub_id: int, booking_id: int
    ) -> LessonBooking:
        """Mark a confirmed lesson as taught. Lessons later than today cannot complete."""
        booking = await self._get_booking(session, hub_id, booking_id)
        slot = await self._slot_of(session, booking)
        if slot.slot_date > self.today():
            raise InvalidTransitionError(booking.status, "completed")
        ledger.transition(booking, "completed")
        await session.commit()
        await session.refresh(booking)
        return booking

    # -- Coach-managed slots -------------------------------------------------

    async def create_one_off_slot(
        self,
        session: AsyncSession,
        hub_id: int,
        coach_id: int,
        slot_date: date,
        start_time: time,
        end_time: time,
        max_gymnasts: int | None = None,
    ) -> LessonSlot:
        """Offer a single extra lesson time outside recurring availability.

        Re-offering a time the coach previously withdrew reopens that slot.
        """
        if start_time >= end_time:
            raise InvalidSlotError("End time must be after start time")
        if slot_date < self.today():
            raise SlotExpiredError(slot_date)

        if max_gymnasts is None:
            profile, _ = await self._coach_setup(session, hub_id, coach_id)
            max_gymnasts = (
                profile.max_gymnasts_per_slot
                if profile is not None
                else self._settings.default_max_gymnasts
            )

        row, created = await insert_or_fetch(
            session,
            LessonSlot,
            {"coach_user_id": coach_id, "slot_date": slot_date, "start_time": start_time},
            {
                "hub_id": hub_id,
                "end_time": end_time,
                "max_gymnasts": max_gymnasts,
                "is_one_off": True,
                "status": "available",
            },
        )
        if created:
            return row
        if row.status != "cancelled" or row.hub_id != hub_id:
            raise InvalidSlotError(
                f"A lesson slot already exists on {slot_date} at {start_time.strftime('%H:%M')}"
            )

        row.status = "available"
        row.end_time = end_time
        row.max_gymnasts = max_gymnasts
        row.is_one_off = True
        row.availability_id = None
        await session.commit()
        await session.refresh(row)
        return row

    async def withdraw_slot(
        self,
        session: AsyncSession,
        hub_id: int,
        slot_id: int,
        withdrawn_by: int | None = None,
    ) -> LessonSlot:
        """Take a slot off the calendar and cancel its active bookings."""
        slot = await ledger.lock_slot(session, slot_id)
        if slot is None or slot.hub_id != hub_id:
            raise SlotNotFoundError(f"Lesson slot {slot_id} not found")
        if slot.slot_date < self.today():
            # Bookings on it already read as completed.
            raise SlotExpiredError(slot.slot_date)

        slot.status = "cancelled"
        result = await session.execute(
            select(LessonBooking).where(
                LessonBooking.lesson_slot_id == slot.id,
                LessonBooking.status.in_(ledger.ACTIVE_STATUSES),
            )
        )
        bookings = list(result.scalars().all())
        for booking in bookings:
            ledger.cancel(booking, cancelled_by=withdrawn_by, reason=WITHDRAWN_REASON)
        await session.commit()
        await session.refresh(slot)
        logger.info("Withdrew slot %s, cancelling %d booking(s)", slot.id, len(bookings))
        return slot
