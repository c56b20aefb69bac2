from datetime import datetime

from sqlalchemy import JSON, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from gymhub.database import Base


class CoachLessonProfile(Base):
    __tablename__ = "coach_lesson_profiles"
    __table_args__ = (UniqueConstraint("hub_id", "coach_user_id"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    hub_id: Mapped[int]
    coach_user_id: Mapped[int]
    lesson_duration_minutes: Mapped[int | None] = mapped_column(default=None)
    max_gymnasts_per_slot: Mapped[int] = mapped_column(default=1)
    cost_per_lesson: Mapped[float] = mapped_column(default=0.0)
    events: Mapped[list[str]] = mapped_column(JSON, default=list)  # vault, bars, beam, ...
    levels: Mapped[list[str]] = mapped_column(JSON, default=list)
    bio: Mapped[str | None] = mapped_column(Text, default=None)
    is_active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow)


class LessonPackage(Base):
    __tablename__ = "lesson_packages"

    id: Mapped[int] = mapped_column(primary_key=True)
    hub_id: Mapped[int]
    coach_user_id: Mapped[int]
    name: Mapped[str] = mapped_column(String(100))
    description: Mapped[str | None] = mapped_column(Text, default=None)
    duration_minutes: Mapped[int]
    price: Mapped[float] = mapped_column(default=0.0)
    max_gymnasts: Mapped[int] = mapped_column(default=1)
    sort_order: Mapped[int] = mapped_column(default=0)
    is_active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
