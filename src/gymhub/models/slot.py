from datetime import date, datetime, time

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from gymhub.database import Base


class LessonSlot(Base):
    __tablename__ = "lesson_slots"
    # One persisted slot per coach coordinate; materialization relies on it.
    __table_args__ = (
        UniqueConstraint(
            "coach_user_id", "slot_date", "start_time", name="uq_lesson_slots_coordinate"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    hub_id: Mapped[int]
    coach_user_id: Mapped[int]
    slot_date: Mapped[date]
    start_time: Mapped[time]
    end_time: Mapped[time]
    max_gymnasts: Mapped[int] = mapped_column(default=1)
    status: Mapped[str] = mapped_column(String(20), default="available")  # available, cancelled
    is_one_off: Mapped[bool] = mapped_column(default=False)
    availability_id: Mapped[int | None] = mapped_column(
        ForeignKey("lesson_availability.id"), default=None
    )
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
