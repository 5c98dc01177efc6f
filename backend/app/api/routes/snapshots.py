from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db
from app.models.user import User
from app.schemas.schedule import ScheduleOut
from app.schemas.snapshot import RestoreSnapshotRequest, ScheduleSnapshotOut
from app.services.schedule_planning import SchedulePlanningService

router = APIRouter()


@router.get("/snapshots/{snapshot_id}", response_model=ScheduleSnapshotOut)
def get_snapshot(
    snapshot_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ScheduleSnapshotOut:
    return ScheduleSnapshotOut.from_model(SchedulePlanningService(db).get_snapshot(snapshot_id))


@router.post("/snapshots/{snapshot_id}/restore", response_model=ScheduleOut)
def restore_snapshot(
    snapshot_id: str,
    payload: RestoreSnapshotRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    schedule = SchedulePlanningService(db).restore_from_snapshot(snapshot_id, payload.version, current_user)
    return ScheduleOut.from_model(schedule)
