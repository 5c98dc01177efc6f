from datetime import datetime

from pydantic import BaseModel, Field

from app.models.schedule_snapshot import ScheduleSnapshot


class ScheduleSnapshotOut(BaseModel):
    id: str
    schedule_id: str
    version: int
    status: str
    snapshot_reason: str
    plan_document: dict
    created_by: str | None
    created_at: datetime | None

    @classmethod
    def from_model(cls, snapshot: ScheduleSnapshot) -> "ScheduleSnapshotOut":
        return cls(
            id=snapshot.uid,
            schedule_id=snapshot.schedule.uid,
            version=snapshot.version,
            status=snapshot.status,
            snapshot_reason=snapshot.snapshot_reason,
            plan_document=snapshot.plan_document,
            created_by=snapshot.created_by_user.uid if snapshot.created_by_user else None,
            created_at=snapshot.created_at,
        )


class RestoreSnapshotRequest(BaseModel):
    version: int = Field(ge=1, description="Current version of the schedule being restored")
