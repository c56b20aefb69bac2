from datetime import datetime

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from gymhub.database import Base


class LessonBooking(Base):
    __tablename__ = "lesson_bookings"

    id: Mapped[int] = mapped_column(primary_key=True)
    hub_id: Mapped[int]
    lesson_slot_id: Mapped[int] = mapped_column(ForeignKey("lesson_slots.id"), index=True)
    gymnast_profile_id: Mapped[int]
    booked_by_user_id: Mapped[int]
    event: Mapped[str] = mapped_column(String(30))  # vault, bars, beam, floor, ...
    package_id: Mapped[int | None] = mapped_column(
        ForeignKey("lesson_packages.id"), default=None
    )
    cost: Mapped[float] = mapped_column(default=0.0)
    status: Mapped[str] = mapped_column(
        String(20), default="pending"
    )  # pending, confirmed, cancelled, completed
    notes: Mapped[str | None] = mapped_column(Text, default=None)
    cancelled_at: Mapped[datetime | None] = mapped_column(default=None)
    cancelled_by: Mapped[int | None] = mapped_column(default=None)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, default=None)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow)
