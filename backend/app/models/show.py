from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.core.clock import generate_uid
from app.db.base import Base
from app.models.client import Client
from app.models.schedule import Schedule
from app.models.show_reference import ShowStandard, ShowStatus, ShowType
from app.models.studio_room import StudioRoom

SHOW_UID_PREFIX = "show"


class Show(Base):
    __tablename__ = "shows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uid: Mapped[str] = mapped_column(
        String(64), unique=True, index=True, nullable=False, default=lambda: generate_uid(SHOW_UID_PREFIX)
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id"), nullable=False, index=True)
    studio_room_id: Mapped[int | None] = mapped_column(ForeignKey("studio_rooms.id"), nullable=True, index=True)
    show_type_id: Mapped[int] = mapped_column(ForeignKey("show_types.id"), nullable=False)
    show_status_id: Mapped[int] = mapped_column(ForeignKey("show_statuses.id"), nullable=False)
    show_standard_id: Mapped[int] = mapped_column(ForeignKey("show_standards.id"), nullable=False)
    schedule_id: Mapped[int | None] = mapped_column(ForeignKey("schedules.id"), nullable=True, index=True)
    meta: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    client: Mapped[Client] = relationship(Client)
    studio_room: Mapped[StudioRoom | None] = relationship(StudioRoom)
    show_type: Mapped[ShowType] = relationship(ShowType)
    show_status: Mapped[ShowStatus] = relationship(ShowStatus)
    show_standard: Mapped[ShowStandard] = relationship(ShowStandard)
    schedule: Mapped[Schedule | None] = relationship(Schedule)

    # Only assignments that have not been soft-deleted.
    active_mcs: Mapped[list["ShowMc"]] = relationship(
        "ShowMc",
        primaryjoin="and_(Show.id == ShowMc.show_id, ShowMc.deleted_at.is_(None))",
        order_by="ShowMc.id",
        viewonly=True,
    )
    active_platforms: Mapped[list["ShowPlatform"]] = relationship(
        "ShowPlatform",
        primaryjoin="and_(Show.id == ShowPlatform.show_id, ShowPlatform.deleted_at.is_(None))",
        order_by="ShowPlatform.id",
        viewonly=True,
    )
