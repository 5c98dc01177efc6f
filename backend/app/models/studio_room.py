from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.core.clock import generate_uid
from app.db.base import Base

STUDIO_ROOM_UID_PREFIX = "srm"


class StudioRoomType(str, Enum):
    small = "s"
    medium = "m"
    large = "l"


class StudioRoom(Base):
    __tablename__ = "studio_rooms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uid: Mapped[str] = mapped_column(
        String(64), unique=True, index=True, nullable=False, default=lambda: generate_uid(STUDIO_ROOM_UID_PREFIX)
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    studio_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    room_type: Mapped[StudioRoomType] = mapped_column(
        SAEnum(StudioRoomType, name="studio_room_type"), nullable=False, default=StudioRoomType.medium
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
