from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from app.core.clock import ensure_utc
from app.models.show import Show


class ShowMcAssignmentIn(BaseModel):
    mc_id: str = Field(min_length=1, max_length=64)
    note: str | None = Field(default=None, max_length=500)
    metadata: dict[str, Any] | None = None


class ShowPlatformAssignmentIn(BaseModel):
    platform_id: str = Field(min_length=1, max_length=64)
    live_stream_link: str | None = Field(default=None, max_length=500)
    platform_show_id: str | None = Field(default=None, max_length=200)
    viewer_count: int | None = Field(default=None, ge=0)
    metadata: dict[str, Any] | None = None


class ShowCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    start_time: datetime
    end_time: datetime
    client_id: str = Field(min_length=1, max_length=64)
    studio_room_id: str | None = Field(default=None, min_length=1, max_length=64)
    show_type_id: str = Field(min_length=1, max_length=64)
    show_status_id: str = Field(min_length=1, max_length=64)
    show_standard_id: str = Field(min_length=1, max_length=64)
    schedule_id: str | None = Field(default=None, min_length=1, max_length=64)
    metadata: dict[str, Any] = Field(default_factory=dict)
    mcs: list[ShowMcAssignmentIn] = Field(default_factory=list)
    platforms: list[ShowPlatformAssignmentIn] = Field(default_factory=list)

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_timezone(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class ShowUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    start_time: datetime | None = None
    end_time: datetime | None = None
    client_id: str | None = Field(default=None, min_length=1, max_length=64)
    studio_room_id: str | None = Field(default=None, min_length=1, max_length=64)
    show_type_id: str | None = Field(default=None, min_length=1, max_length=64)
    show_status_id: str | None = Field(default=None, min_length=1, max_length=64)
    show_standard_id: str | None = Field(default=None, min_length=1, max_length=64)
    metadata: dict[str, Any] | None = None
    # None leaves assignments untouched; a list (even empty) replaces them.
    mcs: list[ShowMcAssignmentIn] | None = None
    platforms: list[ShowPlatformAssignmentIn] | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_timezone(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value) if value is not None else None


class ReplaceShowMcsRequest(BaseModel):
    mcs: list[ShowMcAssignmentIn] = Field(default_factory=list, max_length=200)


class ReplaceShowPlatformsRequest(BaseModel):
    platforms: list[ShowPlatformAssignmentIn] = Field(default_factory=list, max_length=200)


class RemoveShowMcsRequest(BaseModel):
    mc_ids: list[str] = Field(min_length=1, max_length=200)


class RemoveShowPlatformsRequest(BaseModel):
    platform_ids: list[str] = Field(min_length=1, max_length=200)


class ShowMcOut(BaseModel):
    id: str
    mc_id: str
    mc_name: str
    note: str | None
    metadata: dict


class ShowPlatformOut(BaseModel):
    id: str
    platform_id: str
    platform_name: str
    live_stream_link: str
    platform_show_id: str
    viewer_count: int
    metadata: dict


class ShowOut(BaseModel):
    id: str
    name: str
    start_time: datetime
    end_time: datetime
    client_id: str
    client_name: str
    studio_room_id: str | None
    studio_room_name: str | None
    show_type: str
    show_status: str
    show_standard: str
    schedule_id: str | None
    metadata: dict
    mcs: list[ShowMcOut]
    platforms: list[ShowPlatformOut]
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_model(cls, show: Show) -> "ShowOut":
        return cls(
            id=show.uid,
            name=show.name,
            start_time=show.start_time,
            end_time=show.end_time,
            client_id=show.client.uid,
            client_name=show.client.name,
            studio_room_id=show.studio_room.uid if show.studio_room else None,
            studio_room_name=show.studio_room.name if show.studio_room else None,
            show_type=show.show_type.name,
            show_status=show.show_status.name,
            show_standard=show.show_standard.name,
            schedule_id=show.schedule.uid if show.schedule else None,
            metadata=show.meta or {},
            mcs=[
                ShowMcOut(
                    id=item.uid,
                    mc_id=item.mc.uid,
                    mc_name=item.mc.name,
                    note=item.note,
                    metadata=item.meta or {},
                )
                for item in show.active_mcs
            ],
            platforms=[
                ShowPlatformOut(
                    id=item.uid,
                    platform_id=item.platform.uid,
                    platform_name=item.platform.name,
                    live_stream_link=item.live_stream_link,
                    platform_show_id=item.platform_show_id,
                    viewer_count=item.viewer_count,
                    metadata=item.meta or {},
                )
                for item in show.active_platforms
            ],
            created_at=show.created_at,
            updated_at=show.updated_at,
        )
