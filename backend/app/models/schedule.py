from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Integer, JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.core.clock import generate_uid
from app.db.base import Base
from app.models.client import Client
from app.models.user import User

SCHEDULE_UID_PREFIX = "schedule"


class ScheduleStatus(str, Enum):
    draft = "draft"
    review = "review"
    published = "published"


def empty_plan_document() -> dict:
    return {"metadata": {"totalShows": 0}, "shows": []}


class Schedule(Base):
    __tablename__ = "schedules"
    __table_args__ = (UniqueConstraint("client_id", "name", name="uq_schedules_client_name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uid: Mapped[str] = mapped_column(
        String(64), unique=True, index=True, nullable=False, default=lambda: generate_uid(SCHEDULE_UID_PREFIX)
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id"), nullable=False, index=True)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[ScheduleStatus] = mapped_column(
        SAEnum(ScheduleStatus, name="schedule_status"), nullable=False, default=ScheduleStatus.draft, index=True
    )
    plan_document: Mapped[dict] = mapped_column(JSON, nullable=False, default=empty_plan_document)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    meta: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    published_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    client: Mapped[Client] = relationship(Client)
    created_by_user: Mapped[User | None] = relationship(User, foreign_keys=[created_by])
    published_by_user: Mapped[User | None] = relationship(User, foreign_keys=[published_by])
