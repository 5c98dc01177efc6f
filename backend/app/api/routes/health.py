from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

from app.core.clock import utc_now
from app.db.bootstrap import REQUIRED_TABLES
from app.db.session import engine

router = APIRouter()

REQUIRED_COLUMNS = {
    "schedules": {"id", "uid", "status", "plan_document", "version", "published_at"},
    "schedule_snapshots": {"id", "schedule_id", "plan_document", "version", "snapshot_reason"},
    "show_mcs": {"id", "show_id", "mc_id", "deleted_at"},
    "show_platforms": {"id", "show_id", "platform_id", "deleted_at"},
}


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": utc_now().isoformat()}


@router.get("/health/ready")
def health_ready() -> JSONResponse:
    db_ok = True
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    db_error: str | None = None

    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
            inspector = inspect(connection)
            table_names = set(inspector.get_table_names())
            missing_tables = sorted(REQUIRED_TABLES - table_names)
            for table_name, columns in REQUIRED_COLUMNS.items():
                if table_name not in table_names:
                    continue
                existing = {item["name"] for item in inspector.get_columns(table_name)}
                missing = sorted(columns - existing)
                if missing:
                    missing_columns[table_name] = missing
    except SQLAlchemyError as exc:  # pragma: no cover - environment dependent
        db_ok = False
        db_error = str(exc)

    schema_ok = not missing_tables and not missing_columns
    ready = db_ok and schema_ok

    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": utc_now().isoformat(),
        "database": {
            "ok": db_ok,
            "schema_ok": schema_ok,
            "missing_tables": missing_tables,
            "missing_columns": missing_columns,
            "error": db_error,
        },
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
