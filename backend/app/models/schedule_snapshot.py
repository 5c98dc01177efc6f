from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.core.clock import generate_uid
from app.db.base import Base
from app.models.schedule import Schedule
from app.models.user import User

SNAPSHOT_UID_PREFIX = "snapshot"


class SnapshotReason(str, Enum):
    auto_save = "auto_save"
    manual = "manual"
    pre_publish = "pre_publish"
    before_restore = "before_restore"


class ScheduleSnapshot(Base):
    """Append-only copy of a schedule's plan document at a given version."""

    __tablename__ = "schedule_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uid: Mapped[str] = mapped_column(
        String(64), unique=True, index=True, nullable=False, default=lambda: generate_uid(SNAPSHOT_UID_PREFIX)
    )
    schedule_id: Mapped[int] = mapped_column(ForeignKey("schedules.id"), nullable=False, index=True)
    plan_document: Mapped[dict] = mapped_column(JSON, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    snapshot_reason: Mapped[str] = mapped_column(String(50), nullable=False)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)

    schedule: Mapped[Schedule] = relationship(Schedule)
    created_by_user: Mapped[User | None] = relationship(User)
