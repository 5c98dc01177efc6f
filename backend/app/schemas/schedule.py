from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from app.core.clock import ensure_utc
from app.models.schedule import Schedule, ScheduleStatus
from app.schemas.schedule_planning import PlanDocument


class ScheduleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    client_id: str = Field(min_length=1, max_length=64)
    start_date: datetime
    end_date: datetime
    plan_document: PlanDocument | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("name must not be blank")
        return stripped

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_timezone(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class ScheduleUpdate(BaseModel):
    version: int = Field(ge=1, description="Version the caller last read; used for optimistic locking")
    name: str | None = Field(default=None, min_length=1, max_length=200)
    start_date: datetime | None = None
    end_date: datetime | None = None
    plan_document: PlanDocument | None = None
    metadata: dict[str, Any] | None = None

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_timezone(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value) if value is not None else None


class PlanDocumentUpdateRequest(BaseModel):
    plan_document: PlanDocument
    version: int = Field(ge=1)


class VersionedRequest(BaseModel):
    version: int = Field(ge=1)


class DuplicateScheduleRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)


class ScheduleOut(BaseModel):
    id: str
    name: str
    client_id: str | None
    client_name: str | None
    start_date: datetime
    end_date: datetime
    status: ScheduleStatus
    version: int
    plan_document: dict | None = None
    metadata: dict
    created_by: str | None
    published_by: str | None
    published_at: datetime | None
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_model(cls, schedule: Schedule, include_plan_document: bool = True) -> "ScheduleOut":
        return cls(
            id=schedule.uid,
            name=schedule.name,
            client_id=schedule.client.uid if schedule.client else None,
            client_name=schedule.client.name if schedule.client else None,
            start_date=schedule.start_date,
            end_date=schedule.end_date,
            status=schedule.status,
            version=schedule.version,
            plan_document=schedule.plan_document if include_plan_document else None,
            metadata=schedule.meta or {},
            created_by=schedule.created_by_user.uid if schedule.created_by_user else None,
            published_by=schedule.published_by_user.uid if schedule.published_by_user else None,
            published_at=schedule.published_at,
            created_at=schedule.created_at,
            updated_at=schedule.updated_at,
        )


class PublishScheduleOut(ScheduleOut):
    shows_created: int = 0
