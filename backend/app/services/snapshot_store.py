from __future__ import annotations

import copy
from typing import Literal

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.models.schedule import Schedule
from app.models.schedule_snapshot import ScheduleSnapshot, SnapshotReason
from app.models.user import User


def create_snapshot(
    db: Session,
    *,
    schedule_id: int,
    reason: SnapshotReason,
    actor: User | None,
) -> ScheduleSnapshot:
    """Record the schedule's state as currently persisted.

    Must run inside the caller's transaction. The row is read with a fresh query instead of
    relying on the session's copy so the snapshot matches what is in the database.
    """
    row = db.execute(
        select(Schedule.uid, Schedule.plan_document, Schedule.version, Schedule.status).where(
            Schedule.id == schedule_id
        )
    ).one_or_none()
    if row is None:
        raise NotFoundError("Schedule", str(schedule_id))

    snapshot = ScheduleSnapshot(
        schedule_id=schedule_id,
        plan_document=copy.deepcopy(row.plan_document),
        version=row.version,
        status=row.status.value,
        snapshot_reason=reason.value,
        created_by=actor.id if actor is not None else None,
    )
    db.add(snapshot)
    db.flush()
    return snapshot


def list_snapshots(
    db: Session,
    *,
    schedule_id: int,
    limit: int = 50,
    order: Literal["asc", "desc"] = "desc",
) -> list[ScheduleSnapshot]:
    query = select(ScheduleSnapshot).where(ScheduleSnapshot.schedule_id == schedule_id)
    if order == "asc":
        query = query.order_by(ScheduleSnapshot.created_at.asc(), ScheduleSnapshot.id.asc())
    else:
        query = query.order_by(ScheduleSnapshot.created_at.desc(), ScheduleSnapshot.id.desc())
    return list(db.execute(query.limit(max(1, limit))).scalars().all())


def get_snapshot(db: Session, snapshot_uid: str) -> ScheduleSnapshot:
    snapshot = db.execute(select(ScheduleSnapshot).where(ScheduleSnapshot.uid == snapshot_uid)).scalar_one_or_none()
    if snapshot is None:
        raise NotFoundError("ScheduleSnapshot", snapshot_uid)
    return snapshot
