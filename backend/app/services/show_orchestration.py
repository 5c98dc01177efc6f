from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.core.clock import ensure_utc, utc_now
from app.core.exceptions import InvalidTimeRangeError, NotFoundError
from app.db.session import run_in_transaction
from app.models.mc import Mc
from app.models.platform import Platform
from app.models.schedule import Schedule
from app.models.show import Show
from app.models.show_assignment import ShowMc, ShowPlatform
from app.models.user import User
from app.schemas.schedule_planning import ShowPlanItem
from app.schemas.show import ShowCreate, ShowMcAssignmentIn, ShowPlatformAssignmentIn, ShowUpdate
from app.services.audit import log_activity
from app.services.entity_resolver import EntityKind, require_all, resolve_one

logger = logging.getLogger(__name__)


def _collapse(items, key_attr: str) -> dict:
    # Repeated ids keep the last occurrence, in first-seen order.
    collapsed: dict = {}
    for item in items:
        collapsed[getattr(item, key_attr)] = item
    return collapsed


def _check_time_range(start: datetime, end: datetime) -> None:
    if ensure_utc(end) <= ensure_utc(start):
        raise InvalidTimeRangeError(start, end, "Show end time must be after start time")


class ShowOrchestrationService:
    """Writes shows together with their MC and platform assignments.

    Public methods each run in one transaction: either the show and every assignment change
    is committed, or nothing is. The ``*_in_transaction`` helpers do the same work inside a
    transaction the caller already owns (used when a schedule is published).
    """

    def __init__(self, db: Session):
        self.db = db

    # Reads

    def _show_query(self):
        return select(Show).options(
            selectinload(Show.active_mcs).selectinload(ShowMc.mc),
            selectinload(Show.active_platforms).selectinload(ShowPlatform.platform),
        )

    def get_show(self, show_uid: str) -> Show:
        show = self.db.execute(
            self._show_query().where(Show.uid == show_uid, Show.deleted_at.is_(None))
        ).scalar_one_or_none()
        if show is None:
            raise NotFoundError(EntityKind.show.value, show_uid)
        return show

    def list_shows(
        self,
        *,
        client_uid: str | None = None,
        schedule_uid: str | None = None,
        studio_room_uid: str | None = None,
        start_from: datetime | None = None,
        end_to: datetime | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Show]:
        query = self._show_query().where(Show.deleted_at.is_(None))
        if client_uid:
            query = query.where(Show.client_id == resolve_one(self.db, EntityKind.client, client_uid).id)
        if schedule_uid:
            query = query.where(Show.schedule_id == self._resolve_schedule(schedule_uid).id)
        if studio_room_uid:
            query = query.where(Show.studio_room_id == resolve_one(self.db, EntityKind.studio_room, studio_room_uid).id)
        if start_from is not None:
            query = query.where(Show.start_time >= start_from)
        if end_to is not None:
            query = query.where(Show.end_time <= end_to)
        query = query.order_by(Show.start_time.asc(), Show.id.asc()).offset(offset).limit(limit)
        return list(self.db.execute(query).scalars().all())

    def _reload(self, show_uid: str) -> Show:
        self.db.expire_all()
        return self.get_show(show_uid)

    def _resolve_schedule(self, schedule_uid: str) -> Schedule:
        schedule = self.db.execute(
            select(Schedule).where(Schedule.uid == schedule_uid, Schedule.deleted_at.is_(None))
        ).scalar_one_or_none()
        if schedule is None:
            raise NotFoundError("Schedule", schedule_uid)
        return schedule

    def _get_show_for_update(self, show_uid: str) -> Show:
        show = self.db.execute(
            select(Show).where(Show.uid == show_uid, Show.deleted_at.is_(None))
        ).scalar_one_or_none()
        if show is None:
            raise NotFoundError(EntityKind.show.value, show_uid)
        return show

    # Assignment sync, caller owns the transaction

    def replace_mcs_in_transaction(self, show: Show, desired: list[ShowMcAssignmentIn]) -> None:
        wanted = _collapse(desired, "mc_id")
        active = self.db.execute(
            select(ShowMc, Mc.uid)
            .join(Mc, ShowMc.mc_id == Mc.id)
            .where(ShowMc.show_id == show.id, ShowMc.deleted_at.is_(None))
        ).all()

        now = utc_now()
        kept: dict[str, ShowMc] = {}
        for row, mc_uid in active:
            if mc_uid in wanted:
                kept[mc_uid] = row
            else:
                row.deleted_at = now

        mcs = require_all(self.db, EntityKind.mc, wanted.keys())
        for mc_uid, item in wanted.items():
            row = kept.get(mc_uid)
            if row is not None:
                row.note = item.note
                if item.metadata is not None:
                    row.meta = item.metadata
                continue
            self.db.add(ShowMc(show_id=show.id, mc_id=mcs[mc_uid].id, note=item.note, meta=item.metadata or {}))
        self.db.flush()

    def replace_platforms_in_transaction(self, show: Show, desired: list[ShowPlatformAssignmentIn]) -> None:
        wanted = _collapse(desired, "platform_id")
        active = self.db.execute(
            select(ShowPlatform, Platform.uid)
            .join(Platform, ShowPlatform.platform_id == Platform.id)
            .where(ShowPlatform.show_id == show.id, ShowPlatform.deleted_at.is_(None))
        ).all()

        now = utc_now()
        kept: dict[str, ShowPlatform] = {}
        for row, platform_uid in active:
            if platform_uid in wanted:
                kept[platform_uid] = row
            else:
                row.deleted_at = now

        platforms = require_all(self.db, EntityKind.platform, wanted.keys())
        for platform_uid, item in wanted.items():
            row = kept.get(platform_uid)
            if row is None:
                row = ShowPlatform(show_id=show.id, platform_id=platforms[platform_uid].id, meta={})
                self.db.add(row)
            if item.live_stream_link is not None:
                row.live_stream_link = item.live_stream_link
            if item.platform_show_id is not None:
                row.platform_show_id = item.platform_show_id
            if item.viewer_count is not None:
                row.viewer_count = item.viewer_count
            if item.metadata is not None:
                row.meta = item.metadata
        self.db.flush()

    def _remove_mcs_in_transaction(self, show: Show, mc_uids: list[str]) -> int:
        rows = self.db.execute(
            select(ShowMc)
            .join(Mc, ShowMc.mc_id == Mc.id)
            .where(ShowMc.show_id == show.id, ShowMc.deleted_at.is_(None), Mc.uid.in_(set(mc_uids)))
        ).scalars().all()
        now = utc_now()
        for row in rows:
            row.deleted_at = now
        self.db.flush()
        return len(rows)

    def _remove_platforms_in_transaction(self, show: Show, platform_uids: list[str]) -> int:
        rows = self.db.execute(
            select(ShowPlatform)
            .join(Platform, ShowPlatform.platform_id == Platform.id)
            .where(
                ShowPlatform.show_id == show.id,
                ShowPlatform.deleted_at.is_(None),
                Platform.uid.in_(set(platform_uids)),
            )
        ).scalars().all()
        now = utc_now()
        for row in rows:
            row.deleted_at = now
        self.db.flush()
        return len(rows)

    def _resolve_show_fields(self, values: dict) -> dict:
        resolved = {}
        lookups = {
            "client_id": EntityKind.client,
            "studio_room_id": EntityKind.studio_room,
            "show_type_id": EntityKind.show_type,
            "show_status_id": EntityKind.show_status,
            "show_standard_id": EntityKind.show_standard,
        }
        for field_name, kind in lookups.items():
            if field_name not in values:
                continue
            uid = values[field_name]
            if uid is None:
                # Only the studio room is optional on a show.
                if field_name == "studio_room_id":
                    resolved[field_name] = None
                continue
            resolved[field_name] = resolve_one(self.db, kind, uid).id
        return resolved

    def create_show_in_transaction(
        self,
        data: ShowCreate,
        *,
        schedule: Schedule | None = None,
    ) -> Show:
        _check_time_range(data.start_time, data.end_time)
        fields = self._resolve_show_fields(
            {
                "client_id": data.client_id,
                "studio_room_id": data.studio_room_id,
                "show_type_id": data.show_type_id,
                "show_status_id": data.show_status_id,
                "show_standard_id": data.show_standard_id,
            }
        )
        if schedule is None and data.schedule_id:
            schedule = self._resolve_schedule(data.schedule_id)

        show = Show(
            name=data.name,
            start_time=data.start_time,
            end_time=data.end_time,
            schedule_id=schedule.id if schedule is not None else None,
            meta=data.metadata,
            **fields,
        )
        self.db.add(show)
        self.db.flush()
        self.replace_mcs_in_transaction(show, data.mcs)
        self.replace_platforms_in_transaction(show, data.platforms)
        return show

    def materialize_plan_item(self, schedule: Schedule, item: ShowPlanItem) -> Show:
        data = ShowCreate(
            name=item.name,
            start_time=item.start_time,
            end_time=item.end_time,
            client_id=item.client_id,
            studio_room_id=item.studio_room_id,
            show_type_id=item.show_type_id,
            show_status_id=item.show_status_id,
            show_standard_id=item.show_standard_id,
            metadata={**item.metadata, "tempId": item.temp_id} if item.temp_id else dict(item.metadata),
            mcs=[ShowMcAssignmentIn(mc_id=mc.mc_id, note=mc.note) for mc in item.mcs],
            platforms=[
                ShowPlatformAssignmentIn(
                    platform_id=platform.platform_id,
                    live_stream_link=platform.live_stream_link,
                    platform_show_id=platform.platform_show_id,
                )
                for platform in item.platforms
            ],
        )
        return self.create_show_in_transaction(data, schedule=schedule)

    # Public operations, one transaction each

    def create_show(self, data: ShowCreate, actor: User | None) -> Show:
        with run_in_transaction(self.db):
            show = self.create_show_in_transaction(data)
            log_activity(
                self.db,
                user=actor,
                action="show.create",
                entity_type="show",
                entity_id=show.uid,
                details={"mcs": len(data.mcs), "platforms": len(data.platforms)},
            )
            show_uid = show.uid
        logger.info("Created show %s", show_uid)
        return self._reload(show_uid)

    def update_show(self, show_uid: str, data: ShowUpdate, actor: User | None) -> Show:
        with run_in_transaction(self.db):
            show = self._get_show_for_update(show_uid)
            changes = data.model_dump(exclude_unset=True, exclude={"mcs", "platforms", "metadata"})
            start = changes.get("start_time") or show.start_time
            end = changes.get("end_time") or show.end_time
            _check_time_range(start, end)

            for field_name, value in self._resolve_show_fields(changes).items():
                setattr(show, field_name, value)
            if "name" in changes and changes["name"] is not None:
                show.name = changes["name"]
            show.start_time = start
            show.end_time = end
            if data.metadata is not None:
                show.meta = data.metadata
            self.db.flush()

            if data.mcs is not None:
                self.replace_mcs_in_transaction(show, data.mcs)
            if data.platforms is not None:
                self.replace_platforms_in_transaction(show, data.platforms)
            log_activity(
                self.db,
                user=actor,
                action="show.update",
                entity_type="show",
                entity_id=show_uid,
                details={"fields": sorted(data.model_dump(exclude_unset=True).keys())},
            )
        return self._reload(show_uid)

    def delete_show(self, show_uid: str, actor: User | None) -> None:
        with run_in_transaction(self.db):
            show = self._get_show_for_update(show_uid)
            now = utc_now()
            show.deleted_at = now
            for model in (ShowMc, ShowPlatform):
                rows = self.db.execute(
                    select(model).where(model.show_id == show.id, model.deleted_at.is_(None))
                ).scalars().all()
                for row in rows:
                    row.deleted_at = now
            log_activity(self.db, user=actor, action="show.delete", entity_type="show", entity_id=show_uid)
        logger.info("Deleted show %s", show_uid)

    def replace_mcs(self, show_uid: str, desired: list[ShowMcAssignmentIn], actor: User | None) -> Show:
        with run_in_transaction(self.db):
            show = self._get_show_for_update(show_uid)
            self.replace_mcs_in_transaction(show, desired)
            log_activity(
                self.db,
                user=actor,
                action="show.mcs.replace",
                entity_type="show",
                entity_id=show_uid,
                details={"mc_ids": list(_collapse(desired, "mc_id"))},
            )
        return self._reload(show_uid)

    def replace_platforms(self, show_uid: str, desired: list[ShowPlatformAssignmentIn], actor: User | None) -> Show:
        with run_in_transaction(self.db):
            show = self._get_show_for_update(show_uid)
            self.replace_platforms_in_transaction(show, desired)
            log_activity(
                self.db,
                user=actor,
                action="show.platforms.replace",
                entity_type="show",
                entity_id=show_uid,
                details={"platform_ids": list(_collapse(desired, "platform_id"))},
            )
        return self._reload(show_uid)

    def remove_mcs(self, show_uid: str, mc_uids: list[str], actor: User | None) -> Show:
        with run_in_transaction(self.db):
            show = self._get_show_for_update(show_uid)
            removed = self._remove_mcs_in_transaction(show, mc_uids)
            log_activity(
                self.db,
                user=actor,
                action="show.mcs.remove",
                entity_type="show",
                entity_id=show_uid,
                details={"mc_ids": mc_uids, "removed": removed},
            )
        return self._reload(show_uid)

    def remove_platforms(self, show_uid: str, platform_uids: list[str], actor: User | None) -> Show:
        with run_in_transaction(self.db):
            show = self._get_show_for_update(show_uid)
            removed = self._remove_platforms_in_transaction(show, platform_uids)
            log_activity(
                self.db,
                user=actor,
                action="show.platforms.remove",
                entity_type="show",
                entity_id=show_uid,
                details={"platform_ids": platform_uids, "removed": removed},
            )
        return self._reload(show_uid)
