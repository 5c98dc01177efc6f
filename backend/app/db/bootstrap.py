from __future__ import annotations

import logging

from sqlalchemy import inspect

from app.core.config import get_settings
from app.db.base import Base
from app.db.session import engine
import app.models  # noqa: F401

logger = logging.getLogger(__name__)

REQUIRED_TABLES: set[str] = {
    "users",
    "clients",
    "studio_rooms",
    "show_types",
    "show_statuses",
    "show_standards",
    "mcs",
    "platforms",
    "schedules",
    "schedule_snapshots",
    "shows",
    "show_mcs",
    "show_platforms",
    "activity_logs",
}


def missing_tables() -> list[str]:
    with engine.connect() as connection:
        existing = set(inspect(connection).get_table_names())
    return sorted(REQUIRED_TABLES - existing)


def ensure_schema() -> None:
    """Create tables for local/dev databases; deployed databases are migrated with alembic."""
    settings = get_settings()
    if not settings.auto_create_tables:
        return
    missing = missing_tables()
    if not missing:
        return
    logger.info("Creating %d missing table(s): %s", len(missing), ", ".join(missing))
    Base.metadata.create_all(bind=engine)
