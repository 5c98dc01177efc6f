from pydantic import BaseModel, Field

from app.schemas.schedule import ScheduleCreate, ScheduleUpdate


class BulkScheduleCreateItem(ScheduleCreate):
    item_key: str | None = Field(default=None, max_length=200)


class BulkScheduleUpdateItem(ScheduleUpdate):
    schedule_id: str = Field(min_length=1, max_length=64)
    item_key: str | None = Field(default=None, max_length=200)


class BulkScheduleCreateRequest(BaseModel):
    schedules: list[BulkScheduleCreateItem] = Field(min_length=1)


class BulkScheduleUpdateRequest(BaseModel):
    schedules: list[BulkScheduleUpdateItem] = Field(min_length=1)


class BulkItemResult(BaseModel):
    index: int
    item_key: str
    schedule_id: str | None = None
    client_id: str | None = None
    success: bool
    error: str | None = None
    error_code: str | None = None


class BulkSuccessfulItem(BaseModel):
    id: str
    version: int


class BulkOperationResult(BaseModel):
    total: int
    successful: int
    failed: int
    results: list[BulkItemResult]
    successful_items: list[BulkSuccessfulItem]
