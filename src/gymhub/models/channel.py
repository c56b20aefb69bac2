from datetime import datetime

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from gymhub.database import Base


class Channel(Base):
    __tablename__ = "channels"
    __table_args__ = (UniqueConstraint("hub_id", "dm_key", name="uq_channels_dm_key"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    hub_id: Mapped[int]
    name: Mapped[str] = mapped_column(String(100))
    type: Mapped[str] = mapped_column(String(20), default="public")  # public, private
    dm_key: Mapped[str | None] = mapped_column(
        String(50), default=None
    )  # "<low user id>:<high user id>" for direct messages
    created_by: Mapped[int]
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
