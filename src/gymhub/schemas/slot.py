"""Bookable slot views.

A slot is either virtual (computed from a recurring availability window and not
stored yet) or persisted (a row in `lesson_slots`). Only persisted slots have an
`id`; the `kind` field discriminates the two.
"""

from datetime import date, time
from typing import Annotated, Literal

from pydantic import BaseModel, Field, model_validator

SlotStatus = Literal["available", "partial", "booked", "cancelled"]


class SlotBase(BaseModel):
    coach_user_id: int
    slot_date: date
    start_time: time
    end_time: time
    max_gymnasts: int = Field(ge=1)
    status: SlotStatus = "available"


class VirtualSlot(SlotBase):
    kind: Literal["virtual"] = "virtual"
    key: str
    availability_id: int
    is_generated: Literal[True] = True


class PersistedSlot(SlotBase):
    kind: Literal["persisted"] = "persisted"
    id: int
    availability_id: int | None = None
    is_one_off: bool = False
    booked_count: int = 0
    is_generated: Literal[False] = False


BookableSlot = Annotated[VirtualSlot | PersistedSlot, Field(discriminator="kind")]


class OneOffSlotCreate(BaseModel):
    coach_user_id: int
    slot_date: date
    start_time: time
    end_time: time
    max_gymnasts: int | None = Field(default=None, ge=1, le=20)

    @model_validator(mode="after")
    def _check_times(self) -> "OneOffSlotCreate":
        if self.start_time >= self.end_time:
            raise ValueError("End time must be after start time")
        return self


def virtual_slot_key(availability_id: int, slot_date: date, start_time: time) -> str:
    return f"gen-{availability_id}-{slot_date.isoformat()}-{start_time.strftime('%H:%M')}"
