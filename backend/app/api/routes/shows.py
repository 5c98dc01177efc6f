from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db
from app.models.user import User
from app.schemas.show import (
    RemoveShowMcsRequest,
    RemoveShowPlatformsRequest,
    ReplaceShowMcsRequest,
    ReplaceShowPlatformsRequest,
    ShowCreate,
    ShowOut,
    ShowUpdate,
)
from app.services.show_orchestration import ShowOrchestrationService

router = APIRouter()


@router.post("/shows", response_model=ShowOut, status_code=status.HTTP_201_CREATED)
def create_show(
    payload: ShowCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ShowOut:
    return ShowOut.from_model(ShowOrchestrationService(db).create_show(payload, current_user))


@router.get("/shows", response_model=list[ShowOut])
def list_shows(
    client_id: str | None = Query(default=None),
    schedule_id: str | None = Query(default=None),
    studio_room_id: str | None = Query(default=None),
    start_from: datetime | None = Query(default=None),
    end_to: datetime | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ShowOut]:
    shows = ShowOrchestrationService(db).list_shows(
        client_uid=client_id,
        schedule_uid=schedule_id,
        studio_room_uid=studio_room_id,
        start_from=start_from,
        end_to=end_to,
        limit=limit,
        offset=offset,
    )
    return [ShowOut.from_model(item) for item in shows]


@router.get("/shows/{show_id}", response_model=ShowOut)
def get_show(
    show_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ShowOut:
    return ShowOut.from_model(ShowOrchestrationService(db).get_show(show_id))


@router.patch("/shows/{show_id}", response_model=ShowOut)
def update_show(
    show_id: str,
    payload: ShowUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ShowOut:
    return ShowOut.from_model(ShowOrchestrationService(db).update_show(show_id, payload, current_user))


@router.delete("/shows/{show_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_show(
    show_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    ShowOrchestrationService(db).delete_show(show_id, current_user)


@router.patch("/shows/{show_id}/mcs/replace", response_model=ShowOut)
def replace_show_mcs(
    show_id: str,
    payload: ReplaceShowMcsRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ShowOut:
    return ShowOut.from_model(ShowOrchestrationService(db).replace_mcs(show_id, payload.mcs, current_user))


@router.patch("/shows/{show_id}/platforms/replace", response_model=ShowOut)
def replace_show_platforms(
    show_id: str,
    payload: ReplaceShowPlatformsRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ShowOut:
    show = ShowOrchestrationService(db).replace_platforms(show_id, payload.platforms, current_user)
    return ShowOut.from_model(show)


@router.patch("/shows/{show_id}/mcs/remove", response_model=ShowOut)
def remove_show_mcs(
    show_id: str,
    payload: RemoveShowMcsRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ShowOut:
    return ShowOut.from_model(ShowOrchestrationService(db).remove_mcs(show_id, payload.mc_ids, current_user))


@router.patch("/shows/{show_id}/platforms/remove", response_model=ShowOut)
def remove_show_platforms(
    show_id: str,
    payload: RemoveShowPlatformsRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ShowOut:
    show = ShowOrchestrationService(db).remove_platforms(show_id, payload.platform_ids, current_user)
    return ShowOut.from_model(show)
