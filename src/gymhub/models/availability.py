from datetime import date, datetime, time

from sqlalchemy import Index
from sqlalchemy.orm import Mapped, mapped_column

from gymhub.database import Base


class LessonAvailability(Base):
    __tablename__ = "lesson_availability"
    __table_args__ = (Index("ix_lesson_availability_hub_coach", "hub_id", "coach_user_id"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    hub_id: Mapped[int]
    coach_user_id: Mapped[int]
    day_of_week: Mapped[int]  # 0=Monday, 6=Sunday
    start_time: Mapped[time]
    end_time: Mapped[time]
    effective_from: Mapped[date | None] = mapped_column(default=None)
    effective_until: Mapped[date | None] = mapped_column(default=None)
    is_active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
