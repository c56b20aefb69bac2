"""Turn recurring availability into concrete bookable slots.

Materialization is a pure function of its inputs: windows, persisted slots,
packages and profiles are loaded by the caller, and nothing here touches the
database. Virtual slots are recomputed on every request and only become rows
when someone books them.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from datetime import date, time, timedelta

from gymhub.models.availability import LessonAvailability
from gymhub.models.lessons import CoachLessonProfile, LessonPackage
from gymhub.models.slot import LessonSlot
from gymhub.scheduling.availability import window_applies
from gymhub.scheduling.ledger import derive_slot_status
from gymhub.schemas.slot import BookableSlot, PersistedSlot, VirtualSlot, virtual_slot_key

DEFAULT_LESSON_DURATION_MINUTES = 30
DEFAULT_MAX_GYMNASTS = 1


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar dates."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"Date range starts after it ends: {self.start} > {self.end}")

    def days(self) -> Iterator[date]:
        d = self.start
        while d <= self.end:
            yield d
            d += timedelta(days=1)


def _to_minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def _from_minutes(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


def lesson_duration(
    coach_id: int,
    packages: Iterable[LessonPackage],
    profile: CoachLessonProfile | None,
    default: int = DEFAULT_LESSON_DURATION_MINUTES,
) -> int:
    """Tiling granularity for a coach.

    The shortest active package wins so every package length can start on a
    slot boundary; otherwise the profile default, otherwise `default`.
    """
    durations = [
        p.duration_minutes for p in packages if p.coach_user_id == coach_id and p.is_active
    ]
    if durations:
        return min(durations)
    if profile is not None and profile.lesson_duration_minutes:
        return profile.lesson_duration_minutes
    return default


def tile_window(start_time: time, end_time: time, duration_minutes: int) -> list[tuple[time, time]]:
    """Split [start_time, end_time) into back-to-back lessons, dropping any remainder."""
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")
    tiles = []
    cursor = _to_minutes(start_time)
    end = _to_minutes(end_time)
    while cursor + duration_minutes <= end:
        tiles.append((_from_minutes(cursor), _from_minutes(cursor + duration_minutes)))
        cursor += duration_minutes
    return tiles


def to_persisted_slot(slot: LessonSlot, booked_count: int = 0) -> PersistedSlot:
    return PersistedSlot(
        id=slot.id,
        coach_user_id=slot.coach_user_id,
        slot_date=slot.slot_date,
        start_time=slot.start_time,
        end_time=slot.end_time,
        max_gymnasts=slot.max_gymnasts,
        status=derive_slot_status(slot.status, booked_count, slot.max_gymnasts),
        availability_id=slot.availability_id,
        is_one_off=slot.is_one_off,
        booked_count=booked_count,
    )


def materialize(
    date_range: DateRange,
    persisted_slots: Iterable[LessonSlot],
    windows: Iterable[LessonAvailability],
    packages: Iterable[LessonPackage],
    profiles: Mapping[int, CoachLessonProfile],
    today: date,
    coach_id: int | None = None,
    booking_counts: Mapping[int, int] | None = None,
    default_duration: int = DEFAULT_LESSON_DURATION_MINUTES,
    default_max_gymnasts: int = DEFAULT_MAX_GYMNASTS,
    blocked: Iterable[tuple[int, date, time]] = (),
) -> list[BookableSlot]:
    """Build the ordered list of bookable slots for a date range.

    Args:
        date_range: Inclusive dates to cover.
        persisted_slots: Stored slots in the range, including withdrawn ones.
            A stored slot suppresses generation at its (coach, date, start) even
            when withdrawn; withdrawn slots are left out of the result.
        windows: Recurring availability windows (inactive ones are ignored).
        packages: Lesson packages, used for tiling granularity.
        profiles: Coach lesson profiles keyed by coach user id.
        today: Dates before this never produce virtual slots.
        coach_id: Restrict the result to one coach.
        booking_counts: Active booking count per persisted slot id.
        blocked: Extra (coach, date, start) coordinates that must not generate,
            such as times a coach already holds in another hub.

    Returns:
        Persisted and virtual slots sorted by (date, start time); on ties
        persisted slots come first.
    """
    booking_counts = booking_counts or {}
    package_list = list(packages)
    persisted = [s for s in persisted_slots if coach_id is None or s.coach_user_id == coach_id]
    occupied = {(s.coach_user_id, s.slot_date, s.start_time) for s in persisted}
    occupied.update(blocked)

    active_windows = [
        w
        for w in windows
        if w.is_active and (coach_id is None or w.coach_user_id == coach_id)
    ]

    durations: dict[int, int] = {}
    generated: list[VirtualSlot] = []
    for d in date_range.days():
        if d < today:
            continue
        for window in active_windows:
            if not window_applies(window, d):
                continue

            coach = window.coach_user_id
            if coach not in durations:
                durations[coach] = lesson_duration(
                    coach, package_list, profiles.get(coach), default_duration
                )
            profile = profiles.get(coach)
            max_gymnasts = (
                profile.max_gymnasts_per_slot
                if profile is not None and profile.max_gymnasts_per_slot
                else default_max_gymnasts
            )

            for start, end in tile_window(window.start_time, window.end_time, durations[coach]):
                if (coach, d, start) in occupied:
                    continue
                # Overlapping windows for one coach would otherwise emit duplicates.
                occupied.add((coach, d, start))
                generated.append(
                    VirtualSlot(
                        key=virtual_slot_key(window.id, d, start),
                        availability_id=window.id,
                        coach_user_id=coach,
                        slot_date=d,
                        start_time=start,
                        end_time=end,
                        max_gymnasts=max_gymnasts,
                        status="available",
                    )
                )

    combined: list[BookableSlot] = [
        to_persisted_slot(s, booking_counts.get(s.id, 0))
        for s in persisted
        if s.status != "cancelled" and date_range.start <= s.slot_date <= date_range.end
    ]
    combined.extend(generated)
    combined.sort(key=lambda s: (s.slot_date, s.start_time))
    return combined
