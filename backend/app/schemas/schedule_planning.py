from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from app.core.clock import ensure_utc

ValidationErrorType = Literal[
    "missing_reference",
    "time_conflict",
    "invalid_time_range",
    "duplicate_temp_id",
    "client_mismatch",
]


class ShowPlanMc(BaseModel):
    mc_id: str = Field(alias="mcId", min_length=1, max_length=64)
    note: str | None = Field(default=None, max_length=500)

    model_config = {"populate_by_name": True}


class ShowPlanPlatform(BaseModel):
    platform_id: str = Field(alias="platformId", min_length=1, max_length=64)
    live_stream_link: str | None = Field(default=None, alias="liveStreamLink", max_length=500)
    platform_show_id: str | None = Field(default=None, alias="platformShowId", max_length=200)

    model_config = {"populate_by_name": True}


class ShowPlanItem(BaseModel):
    # Only the shape is enforced here; time ordering, references and uniqueness are
    # reported by the plan validator so that invalid drafts can still be saved.
    temp_id: str | None = Field(default=None, alias="tempId", min_length=1, max_length=100)
    name: str = Field(min_length=1, max_length=255)
    start_time: datetime = Field(alias="startTime")
    end_time: datetime = Field(alias="endTime")
    client_id: str = Field(alias="clientId", min_length=1, max_length=64)
    studio_room_id: str | None = Field(default=None, alias="studioRoomId", min_length=1, max_length=64)
    show_type_id: str = Field(alias="showTypeId", min_length=1, max_length=64)
    show_status_id: str = Field(alias="showStatusId", min_length=1, max_length=64)
    show_standard_id: str = Field(alias="showStandardId", min_length=1, max_length=64)
    mcs: list[ShowPlanMc] = Field(default_factory=list)
    platforms: list[ShowPlanPlatform] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_timezone(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class PlanDateRange(BaseModel):
    start: datetime
    end: datetime


class PlanMetadata(BaseModel):
    last_edited_by: str | None = Field(default=None, alias="lastEditedBy")
    last_edited_at: datetime | None = Field(default=None, alias="lastEditedAt")
    total_shows: int = Field(default=0, alias="totalShows", ge=0)
    client_name: str | None = Field(default=None, alias="clientName", max_length=200)
    date_range: PlanDateRange | None = Field(default=None, alias="dateRange")

    model_config = {"populate_by_name": True, "extra": "allow"}


class PlanDocument(BaseModel):
    metadata: PlanMetadata = Field(default_factory=PlanMetadata)
    shows: list[ShowPlanItem] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    def to_storage(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ScheduleValidationError(BaseModel):
    type: ValidationErrorType
    message: str
    show_index: int | None = Field(default=None, alias="showIndex")
    show_temp_id: str | None = Field(default=None, alias="showTempId")
    conflicting_show_index: int | None = Field(default=None, alias="conflictingShowIndex")
    conflicting_show_temp_id: str | None = Field(default=None, alias="conflictingShowTempId")
    entity_kind: str | None = Field(default=None, alias="entityKind")
    entity_id: str | None = Field(default=None, alias="entityId")

    model_config = {"populate_by_name": True}


class ValidationResult(BaseModel):
    is_valid: bool = Field(alias="isValid")
    errors: list[ScheduleValidationError] = Field(default_factory=list)

    model_config = {"populate_by_name": True}
