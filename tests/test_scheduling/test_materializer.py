"""Tests for slot materialization from recurring availability."""

from datetime import date, time

import pytest

from gymhub.models.availability import LessonAvailability
from gymhub.models.lessons import CoachLessonProfile, LessonPackage
from gymhub.models.slot import LessonSlot
from gymhub.scheduling.materializer import (
    DateRange,
    lesson_duration,
    materialize,
    tile_window,
)
from gymhub.schemas.slot import PersistedSlot, VirtualSlot

COACH = 10
OTHER_COACH = 11
TODAY = date(2026, 10, 19)  # Monday
MONDAY = date(2026, 10, 26)


def _window(
    start: time,
    end: time,
    day: int = 0,
    coach: int = COACH,
    window_id: int = 1,
    effective_from: date | None = None,
    effective_until: date | None = None,
    is_active: bool = True,
) -> LessonAvailability:
    return LessonAvailability(
        id=window_id,
        hub_id=1,
        coach_user_id=coach,
        day_of_week=day,
        start_time=start,
        end_time=end,
        effective_from=effective_from,
        effective_until=effective_until,
        is_active=is_active,
    )


def _package(duration: int, coach: int = COACH, is_active: bool = True) -> LessonPackage:
    return LessonPackage(
        hub_id=1,
        coach_user_id=coach,
        name=f"{duration} min",
        duration_minutes=duration,
        price=40.0,
        max_gymnasts=1,
        sort_order=0,
        is_active=is_active,
    )


def _profile(duration: int | None = None, max_gymnasts: int = 1) -> CoachLessonProfile:
    return CoachLessonProfile(
        hub_id=1,
        coach_user_id=COACH,
        lesson_duration_minutes=duration,
        max_gymnasts_per_slot=max_gymnasts,
        is_active=True,
    )


def _slot(
    slot_id: int,
    slot_date: date,
    start: time,
    end: time,
    status: str = "available",
    max_gymnasts: int = 1,
    coach: int = COACH,
) -> LessonSlot:
    return LessonSlot(
        id=slot_id,
        hub_id=1,
        coach_user_id=coach,
        slot_date=slot_date,
        start_time=start,
        end_time=end,
        max_gymnasts=max_gymnasts,
        status=status,
        is_one_off=False,
        availability_id=1,
    )


def _times(slots: list) -> list[tuple[time, time]]:
    return [(s.start_time, s.end_time) for s in slots]


class TestTileWindow:
    def test_exact_multiple(self) -> None:
        assert tile_window(time(9, 0), time(10, 30), 30) == [
            (time(9, 0), time(9, 30)),
            (time(9, 30), time(10, 0)),
            (time(10, 0), time(10, 30)),
        ]

    def test_remainder_left_untiled(self) -> None:
        assert tile_window(time(9, 0), time(10, 40), 30) == [
            (time(9, 0), time(9, 30)),
            (time(9, 30), time(10, 0)),
            (time(10, 0), time(10, 30)),
        ]

    def test_window_shorter_than_lesson(self) -> None:
        assert tile_window(time(9, 0), time(9, 20), 30) == []

    def test_rejects_non_positive_duration(self) -> None:
        with pytest.raises(ValueError):
            tile_window(time(9, 0), time(10, 0), 0)


class TestLessonDuration:
    def test_shortest_active_package_wins(self) -> None:
        packages = [_package(60), _package(45), _package(15, is_active=False)]
        assert lesson_duration(COACH, packages, _profile(30)) == 45

    def test_other_coach_packages_ignored(self) -> None:
        packages = [_package(20, coach=OTHER_COACH)]
        assert lesson_duration(COACH, packages, _profile(50)) == 50

    def test_falls_back_to_default(self) -> None:
        assert lesson_duration(COACH, [], None) == 30
        assert lesson_duration(COACH, [], _profile(None)) == 30


class TestMaterialize:
    def test_tiling_correctness(self) -> None:
        slots = materialize(
            DateRange(MONDAY, MONDAY),
            persisted_slots=[],
            windows=[_window(time(9, 0), time(10, 30))],
            packages=[],
            profiles={},
            today=TODAY,
        )
        assert _times(slots) == [
            (time(9, 0), time(9, 30)),
            (time(9, 30), time(10, 0)),
            (time(10, 0), time(10, 30)),
        ]
        assert all(isinstance(s, VirtualSlot) for s in slots)
        assert all(s.status == "available" and s.is_generated for s in slots)
        assert slots[0].key == "gen-1-2026-10-26-09:00"

    def test_persisted_slot_takes_precedence(self) -> None:
        persisted = _slot(42, MONDAY, time(9, 0), time(9, 30))
        slots = materialize(
            DateRange(MONDAY, MONDAY),
            persisted_slots=[persisted],
            windows=[_window(time(9, 0), time(10, 0))],
            packages=[],
            profiles={},
            today=TODAY,
            booking_counts={42: 1},
        )
        assert len(slots) == 2
        first, second = slots
        assert isinstance(first, PersistedSlot)
        assert first.id == 42
        assert first.status == "booked"
        assert first.booked_count == 1
        assert isinstance(second, VirtualSlot)
        assert second.start_time == time(9, 30)

    def test_no_generation_for_past_dates(self) -> None:
        last_monday = date(2026, 10, 12)
        slots = materialize(
            DateRange(last_monday, last_monday),
            persisted_slots=[],
            windows=[_window(time(6, 0), time(22, 0))],
            packages=[],
            profiles={},
            today=TODAY,
        )
        assert slots == []

    def test_blocked_coordinate_not_generated(self) -> None:
        slots = materialize(
            DateRange(MONDAY, MONDAY),
            persisted_slots=[],
            windows=[_window(time(9, 0), time(10, 0))],
            packages=[],
            profiles={},
            today=TODAY,
            blocked=[(COACH, MONDAY, time(9, 0)), (OTHER_COACH, MONDAY, time(9, 30))],
        )
        assert _times(slots) == [(time(9, 30), time(10, 0))]

    def test_today_is_generated(self) -> None:
        slots = materialize(
            DateRange(TODAY, TODAY),
            persisted_slots=[],
            windows=[_window(time(9, 0), time(9, 30))],
            packages=[],
            profiles={},
            today=TODAY,
        )
        assert len(slots) == 1

    def test_past_persisted_slots_still_listed(self) -> None:
        last_monday = date(2026, 10, 12)
        persisted = _slot(5, last_monday, time(9, 0), time(9, 30))
        slots = materialize(
            DateRange(last_monday, last_monday),
            persisted_slots=[persisted],
            windows=[_window(time(9, 0), time(10, 0))],
            packages=[],
            profiles={},
            today=TODAY,
        )
        assert [s.kind for s in slots] == ["persisted"]

    def test_only_matching_weekday(self) -> None:
        slots = materialize(
            DateRange(MONDAY, date(2026, 11, 1)),
            persisted_slots=[],
            windows=[_window(time(9, 0), time(9, 30), day=2)],
            packages=[],
            profiles={},
            today=TODAY,
        )
        assert [s.slot_date for s in slots] == [date(2026, 10, 28)]

    def test_effective_range_respected(self) -> None:
        window = _window(
            time(9, 0),
            time(9, 30),
            effective_from=date(2026, 11, 2),
            effective_until=date(2026, 11, 9),
        )
        slots = materialize(
            DateRange(MONDAY, date(2026, 11, 22)),
            persisted_slots=[],
            windows=[window],
            packages=[],
            profiles={},
            today=TODAY,
        )
        assert [s.slot_date for s in slots] == [date(2026, 11, 2), date(2026, 11, 9)]

    def test_inactive_window_ignored(self) -> None:
        slots = materialize(
            DateRange(MONDAY, MONDAY),
            persisted_slots=[],
            windows=[_window(time(9, 0), time(10, 0), is_active=False)],
            packages=[],
            profiles={},
            today=TODAY,
        )
        assert slots == []

    def test_fully_persisted_window_generates_nothing(self) -> None:
        persisted = [
            _slot(1, MONDAY, time(9, 0), time(9, 30)),
            _slot(2, MONDAY, time(9, 30), time(10, 0)),
        ]
        slots = materialize(
            DateRange(MONDAY, MONDAY),
            persisted_slots=persisted,
            windows=[_window(time(9, 0), time(10, 0))],
            packages=[],
            profiles={},
            today=TODAY,
        )
        assert all(isinstance(s, PersistedSlot) for s in slots)
        assert [s.id for s in slots] == [1, 2]

    def test_cancelled_slot_hidden_and_not_regenerated(self) -> None:
        withdrawn = _slot(9, MONDAY, time(9, 0), time(9, 30), status="cancelled")
        slots = materialize(
            DateRange(MONDAY, MONDAY),
            persisted_slots=[withdrawn],
            windows=[_window(time(9, 0), time(10, 0))],
            packages=[],
            profiles={},
            today=TODAY,
        )
        assert _times(slots) == [(time(9, 30), time(10, 0))]
        assert isinstance(slots[0], VirtualSlot)

    def test_capacity_and_duration_from_profile(self) -> None:
        slots = materialize(
            DateRange(MONDAY, MONDAY),
            persisted_slots=[],
            windows=[_window(time(16, 0), time(17, 0))],
            packages=[],
            profiles={COACH: _profile(duration=60, max_gymnasts=3)},
            today=TODAY,
        )
        assert len(slots) == 1
        assert slots[0].max_gymnasts == 3
        assert slots[0].end_time == time(17, 0)

    def test_partial_status_from_counts(self) -> None:
        persisted = _slot(3, MONDAY, time(9, 0), time(9, 30), max_gymnasts=3)
        slots = materialize(
            DateRange(MONDAY, MONDAY),
            persisted_slots=[persisted],
            windows=[],
            packages=[],
            profiles={},
            today=TODAY,
            booking_counts={3: 2},
        )
        assert slots[0].status == "partial"

    def test_coach_scope(self) -> None:
        windows = [
            _window(time(9, 0), time(9, 30), coach=COACH, window_id=1),
            _window(time(9, 0), time(9, 30), coach=OTHER_COACH, window_id=2),
        ]
        slots = materialize(
            DateRange(MONDAY, MONDAY),
            persisted_slots=[_slot(8, MONDAY, time(12, 0), time(12, 30), coach=OTHER_COACH)],
            windows=windows,
            packages=[],
            profiles={},
            today=TODAY,
            coach_id=COACH,
        )
        assert [s.coach_user_id for s in slots] == [COACH]

    def test_sorted_by_date_then_time(self) -> None:
        windows = [
            _window(time(14, 0), time(14, 30), day=0, window_id=1),
            _window(time(8, 0), time(8, 30), day=1, window_id=2),
            _window(time(8, 0), time(8, 30), day=0, window_id=3),
        ]
        slots = materialize(
            DateRange(MONDAY, date(2026, 10, 27)),
            persisted_slots=[_slot(4, MONDAY, time(11, 0), time(11, 30))],
            windows=windows,
            packages=[],
            profiles={},
            today=TODAY,
        )
        assert [(s.slot_date, s.start_time) for s in slots] == [
            (MONDAY, time(8, 0)),
            (MONDAY, time(11, 0)),
            (MONDAY, time(14, 0)),
            (date(2026, 10, 27), time(8, 0)),
        ]

    def test_overlapping_windows_do_not_duplicate(self) -> None:
        windows = [
            _window(time(9, 0), time(10, 0), window_id=1),
            _window(time(9, 30), time(10, 30), window_id=2),
        ]
        slots = materialize(
            DateRange(MONDAY, MONDAY),
            persisted_slots=[],
            windows=windows,
            packages=[],
            profiles={},
            today=TODAY,
        )
        assert [s.start_time for s in slots] == [time(9, 0), time(9, 30), time(10, 0)]

    def test_forty_five_minute_package(self) -> None:
        slots = materialize(
            DateRange(MONDAY, MONDAY),
            persisted_slots=[],
            windows=[_window(time(13, 0), time(14, 30))],
            packages=[_package(45), _package(90)],
            profiles={},
            today=TODAY,
        )
        assert _times(slots) == [(time(13, 0), time(13, 45)), (time(13, 45), time(14, 30))]

    def test_generated_slots_stay_inside_window(self) -> None:
        window = _window(time(7, 10), time(11, 55))
        slots = materialize(
            DateRange(MONDAY, MONDAY),
            persisted_slots=[],
            windows=[window],
            packages=[_package(50)],
            profiles={},
            today=TODAY,
        )
        assert slots
        for s in slots:
            assert window.start_time <= s.start_time < s.end_time <= window.end_time


class TestDateRange:
    def test_inclusive_days(self) -> None:
        days = list(DateRange(date(2026, 10, 30), date(2026, 11, 2)).days())
        assert days == [
            date(2026, 10, 30),
            date(2026, 10, 31),
            date(2026, 11, 1),
            date(2026, 11, 2),
        ]

    def test_inverted_range_rejected(self) -> None:
        with pytest.raises(ValueError):
            DateRange(date(2026, 11, 2), date(2026, 10, 30))
