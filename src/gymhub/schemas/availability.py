from datetime import date, datetime, time

from pydantic import BaseModel, Field


class LessonAvailabilityBase(BaseModel):
    day_of_week: int = Field(ge=0, le=6)  # 0=Monday
    start_time: time
    end_time: time
    effective_from: date | None = None
    effective_until: date | None = None


class LessonAvailabilityCreate(LessonAvailabilityBase):
    coach_user_id: int


class LessonAvailabilityUpdate(LessonAvailabilityBase):
    pass


class LessonAvailabilityRead(LessonAvailabilityBase):
    id: int
    hub_id: int
    coach_user_id: int
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
