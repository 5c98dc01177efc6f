from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db
from app.core.config import get_settings
from app.models.schedule import ScheduleStatus
from app.models.user import User
from app.schemas.bulk import BulkOperationResult, BulkScheduleCreateRequest, BulkScheduleUpdateRequest
from app.schemas.schedule import (
    DuplicateScheduleRequest,
    PlanDocumentUpdateRequest,
    PublishScheduleOut,
    ScheduleCreate,
    ScheduleOut,
    ScheduleUpdate,
    VersionedRequest,
)
from app.schemas.schedule_planning import ValidationResult
from app.schemas.snapshot import ScheduleSnapshotOut
from app.services.bulk_import import BulkImportCoordinator
from app.services.schedule_planning import SchedulePlanningService

router = APIRouter()

settings = get_settings()


@router.post("/schedules/bulk", response_model=BulkOperationResult, status_code=status.HTTP_201_CREATED)
def bulk_create_schedules(
    payload: BulkScheduleCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> BulkOperationResult:
    return BulkImportCoordinator(db).bulk_create(payload.schedules, current_user)


@router.patch("/schedules/bulk", response_model=BulkOperationResult)
def bulk_update_schedules(
    payload: BulkScheduleUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> BulkOperationResult:
    return BulkImportCoordinator(db).bulk_update(payload.schedules, current_user)


@router.post("/schedules", response_model=ScheduleOut, status_code=status.HTTP_201_CREATED)
def create_schedule(
    payload: ScheduleCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    schedule = SchedulePlanningService(db).create_schedule(payload, current_user)
    return ScheduleOut.from_model(schedule)


@router.get("/schedules", response_model=list[ScheduleOut])
def list_schedules(
    client_id: str | None = Query(default=None),
    schedule_status: ScheduleStatus | None = Query(default=None, alias="status"),
    name: str | None = Query(default=None, max_length=200),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    include_plan_document: bool = Query(default=False),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ScheduleOut]:
    schedules = SchedulePlanningService(db).list_schedules(
        client_uid=client_id, status=schedule_status, name=name, limit=limit, offset=offset
    )
    return [ScheduleOut.from_model(item, include_plan_document=include_plan_document) for item in schedules]


@router.get("/schedules/{schedule_id}", response_model=ScheduleOut)
def get_schedule(
    schedule_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    return ScheduleOut.from_model(SchedulePlanningService(db).get_schedule(schedule_id))


@router.patch("/schedules/{schedule_id}", response_model=ScheduleOut)
def update_schedule(
    schedule_id: str,
    payload: ScheduleUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    schedule = SchedulePlanningService(db).update_schedule(schedule_id, payload, current_user)
    return ScheduleOut.from_model(schedule)


@router.delete("/schedules/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_schedule(
    schedule_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    SchedulePlanningService(db).delete_schedule(schedule_id, current_user)


@router.patch("/schedules/{schedule_id}/plan-document", response_model=ScheduleOut)
def update_plan_document(
    schedule_id: str,
    payload: PlanDocumentUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    schedule = SchedulePlanningService(db).update_plan_document(
        schedule_id, payload.plan_document, payload.version, current_user
    )
    return ScheduleOut.from_model(schedule)


@router.get("/schedules/{schedule_id}/validation", response_model=ValidationResult)
def validate_schedule(
    schedule_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ValidationResult:
    return SchedulePlanningService(db).validate_schedule(schedule_id)


@router.post("/schedules/{schedule_id}/publish", response_model=PublishScheduleOut)
def publish_schedule(
    schedule_id: str,
    payload: VersionedRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PublishScheduleOut:
    schedule, shows_created = SchedulePlanningService(db).publish_schedule(schedule_id, payload.version, current_user)
    return PublishScheduleOut(**ScheduleOut.from_model(schedule).model_dump(), shows_created=shows_created)


@router.post("/schedules/{schedule_id}/review", response_model=ScheduleOut)
def submit_for_review(
    schedule_id: str,
    payload: VersionedRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    schedule = SchedulePlanningService(db).submit_for_review(schedule_id, payload.version, current_user)
    return ScheduleOut.from_model(schedule)


@router.post("/schedules/{schedule_id}/return-to-draft", response_model=ScheduleOut)
def return_to_draft(
    schedule_id: str,
    payload: VersionedRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    schedule = SchedulePlanningService(db).return_to_draft(schedule_id, payload.version, current_user)
    return ScheduleOut.from_model(schedule)


@router.post("/schedules/{schedule_id}/duplicate", response_model=ScheduleOut, status_code=status.HTTP_201_CREATED)
def duplicate_schedule(
    schedule_id: str,
    payload: DuplicateScheduleRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    schedule = SchedulePlanningService(db).duplicate_schedule(schedule_id, payload.name, current_user)
    return ScheduleOut.from_model(schedule)


@router.get("/schedules/{schedule_id}/snapshots", response_model=list[ScheduleSnapshotOut])
def list_snapshots(
    schedule_id: str,
    limit: int | None = Query(default=None, ge=1, le=500),
    order: Literal["asc", "desc"] = Query(default="desc"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ScheduleSnapshotOut]:
    snapshots = SchedulePlanningService(db).list_snapshots(
        schedule_id, limit=limit or settings.snapshot_list_default_limit, order=order
    )
    return [ScheduleSnapshotOut.from_model(item) for item in snapshots]


@router.post(
    "/schedules/{schedule_id}/snapshots",
    response_model=ScheduleSnapshotOut,
    status_code=status.HTTP_201_CREATED,
)
def create_snapshot(
    schedule_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ScheduleSnapshotOut:
    snapshot = SchedulePlanningService(db).create_manual_snapshot(schedule_id, current_user)
    return ScheduleSnapshotOut.from_model(snapshot)
