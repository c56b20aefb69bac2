"""Errors raised by the private-lesson scheduling core."""

from gymhub.store import InsertConflict


class SchedulingError(Exception):
    """Base class for expected, user-facing scheduling failures."""


class SlotFullError(SchedulingError):
    def __init__(self, slot_id: int, max_gymnasts: int) -> None:
        self.slot_id = slot_id
        self.max_gymnasts = max_gymnasts
        super().__init__("This time is no longer available.")


class SlotExpiredError(SchedulingError):
    def __init__(self, slot_date: object) -> None:
        self.slot_date = slot_date
        super().__init__("This time has passed.")


class SlotNotFoundError(SchedulingError):
    pass


class BookingNotFoundError(SchedulingError):
    pass


class InvalidWindowError(SchedulingError):
    """An availability window failed validation at write time."""


class InvalidTransitionError(SchedulingError):
    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot move booking from '{current}' to '{target}'")


class MaterializationConflict(InsertConflict):
    """Two callers promoted the same virtual slot; resolved by re-fetching."""


class InvalidSlotError(SchedulingError):
    pass


class PackageNotFoundError(SchedulingError):
    pass
