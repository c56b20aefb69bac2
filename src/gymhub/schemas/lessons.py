from pydantic import BaseModel, Field

LESSON_EVENTS = (
    "vault",
    "bars",
    "beam",
    "floor",
    "pommel",
    "rings",
    "pbars",
    "highbar",
    "all_around",
    "strength",
    "flexibility",
)


class CoachLessonProfileBase(BaseModel):
    lesson_duration_minutes: int | None = Field(default=None, gt=0, le=240)
    max_gymnasts_per_slot: int = Field(default=1, ge=1, le=20)
    cost_per_lesson: float = Field(default=0.0, ge=0)
    events: list[str] = Field(default_factory=list)
    levels: list[str] = Field(default_factory=list)
    bio: str | None = None
    is_active: bool = True


class CoachLessonProfileUpsert(CoachLessonProfileBase):
    pass


class CoachLessonProfileRead(CoachLessonProfileBase):
    id: int
    hub_id: int
    coach_user_id: int

    model_config = {"from_attributes": True}


class LessonPackageBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    duration_minutes: int = Field(gt=0, le=240)
    price: float = Field(default=0.0, ge=0)
    max_gymnasts: int = Field(default=1, ge=1, le=20)
    sort_order: int = 0
    is_active: bool = True


class LessonPackageCreate(LessonPackageBase):
    coach_user_id: int


class LessonPackageUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    duration_minutes: int | None = Field(default=None, gt=0, le=240)
    price: float | None = Field(default=None, ge=0)
    max_gymnasts: int | None = Field(default=None, ge=1, le=20)
    sort_order: int | None = None
    is_active: bool | None = None


class LessonPackageRead(LessonPackageBase):
    id: int
    hub_id: int
    coach_user_id: int

    model_config = {"from_attributes": True}
