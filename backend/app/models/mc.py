from datetime import datetime

from sqlalchemy import DateTime, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.core.clock import generate_uid
from app.db.base import Base

MC_UID_PREFIX = "mc"


class Mc(Base):
    """A host who presents shows."""

    __tablename__ = "mcs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uid: Mapped[str] = mapped_column(
        String(64), unique=True, index=True, nullable=False, default=lambda: generate_uid(MC_UID_PREFIX)
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    alias_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    is_banned: Mapped[bool] = mapped_column(nullable=False, default=False)
    meta: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
