from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from gymhub.schemas.lessons import LESSON_EVENTS
from gymhub.schemas.slot import BookableSlot, PersistedSlot

BookingStatus = Literal["pending", "confirmed", "cancelled", "completed"]
DateFilter = Literal["today", "upcoming", "past", "all"]

_EVENT_PATTERN = "^(" + "|".join(LESSON_EVENTS) + ")$"


class BookingCreate(BaseModel):
    slot: BookableSlot
    gymnast_profile_id: int
    event: str = Field(pattern=_EVENT_PATTERN)
    package_id: int | None = None
    notes: str | None = Field(default=None, max_length=1000)


class BookingCancel(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class BookingRead(BaseModel):
    id: int
    hub_id: int
    lesson_slot_id: int
    gymnast_profile_id: int
    booked_by_user_id: int
    event: str
    package_id: int | None = None
    cost: float
    status: BookingStatus
    effective_status: BookingStatus
    notes: str | None = None
    cancelled_at: datetime | None = None
    cancelled_by: int | None = None
    cancellation_reason: str | None = None
    created_at: datetime
    slot: PersistedSlot | None = None
