from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, JSON, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.core.clock import generate_uid
from app.db.base import Base
from app.models.mc import Mc
from app.models.platform import Platform

SHOW_MC_UID_PREFIX = "show_mc"
SHOW_PLATFORM_UID_PREFIX = "show_plt"

_ACTIVE_ONLY = text("deleted_at IS NULL")


class ShowMc(Base):
    __tablename__ = "show_mcs"
    __table_args__ = (
        Index(
            "uq_show_mcs_active",
            "show_id",
            "mc_id",
            unique=True,
            sqlite_where=_ACTIVE_ONLY,
            postgresql_where=_ACTIVE_ONLY,
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uid: Mapped[str] = mapped_column(
        String(64), unique=True, index=True, nullable=False, default=lambda: generate_uid(SHOW_MC_UID_PREFIX)
    )
    show_id: Mapped[int] = mapped_column(ForeignKey("shows.id"), nullable=False, index=True)
    mc_id: Mapped[int] = mapped_column(ForeignKey("mcs.id"), nullable=False, index=True)
    note: Mapped[str | None] = mapped_column(String(500), nullable=True)
    meta: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    mc: Mapped[Mc] = relationship(Mc)


class ShowPlatform(Base):
    __tablename__ = "show_platforms"
    __table_args__ = (
        Index(
            "uq_show_platforms_active",
            "show_id",
            "platform_id",
            unique=True,
            sqlite_where=_ACTIVE_ONLY,
            postgresql_where=_ACTIVE_ONLY,
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uid: Mapped[str] = mapped_column(
        String(64), unique=True, index=True, nullable=False, default=lambda: generate_uid(SHOW_PLATFORM_UID_PREFIX)
    )
    show_id: Mapped[int] = mapped_column(ForeignKey("shows.id"), nullable=False, index=True)
    platform_id: Mapped[int] = mapped_column(ForeignKey("platforms.id"), nullable=False, index=True)
    live_stream_link: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    platform_show_id: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    viewer_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    meta: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    platform: Mapped[Platform] = relationship(Platform)
