from __future__ import annotations

import copy
import logging
from typing import Literal

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.clock import ensure_utc, generate_uid, utc_now
from app.core.exceptions import (
    InvalidStateTransitionError,
    InvalidTimeRangeError,
    NotFoundError,
    ValidationFailedError,
    VersionConflictError,
    unique_violation_from_integrity_error,
)
from app.db.session import run_in_transaction
from app.models.schedule import Schedule, ScheduleStatus
from app.models.schedule_snapshot import ScheduleSnapshot, SnapshotReason
from app.models.user import User
from app.schemas.schedule import ScheduleCreate, ScheduleUpdate
from app.schemas.schedule_planning import PlanDateRange, PlanDocument, ValidationResult
from app.services import snapshot_store
from app.services.audit import log_activity
from app.services.entity_resolver import EntityKind, resolve_one
from app.services.plan_validation import PlanDocumentValidator, parse_plan_document
from app.services.show_orchestration import ShowOrchestrationService

logger = logging.getLogger(__name__)

SCHEDULE_ENTITY = "Schedule"
TEMP_ID_PREFIX = "temp"


class SchedulePlanningService:
    """Lifecycle of a schedule and its embedded plan document.

    Every mutation is a compare-and-swap on ``version``: the caller states the version it
    last read, and the write only lands if the row still carries that version. A lost race
    surfaces as ``VersionConflictError`` rather than silently overwriting the other writer.
    Each version bump is preceded by a snapshot of the state it replaces.
    """

    def __init__(self, db: Session):
        self.db = db
        self.validator = PlanDocumentValidator(db)
        self.shows = ShowOrchestrationService(db)

    # Reads

    def get_schedule(self, schedule_uid: str) -> Schedule:
        schedule = self.db.execute(
            select(Schedule)
            .options(
                selectinload(Schedule.client),
                selectinload(Schedule.created_by_user),
                selectinload(Schedule.published_by_user),
            )
            .where(Schedule.uid == schedule_uid, Schedule.deleted_at.is_(None))
        ).scalar_one_or_none()
        if schedule is None:
            raise NotFoundError(SCHEDULE_ENTITY, schedule_uid)
        return schedule

    def list_schedules(
        self,
        *,
        client_uid: str | None = None,
        status: ScheduleStatus | None = None,
        name: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Schedule]:
        query = (
            select(Schedule)
            .options(selectinload(Schedule.client), selectinload(Schedule.created_by_user))
            .where(Schedule.deleted_at.is_(None))
        )
        if client_uid:
            query = query.where(Schedule.client_id == resolve_one(self.db, EntityKind.client, client_uid).id)
        if status is not None:
            query = query.where(Schedule.status == status)
        if name:
            query = query.where(Schedule.name.ilike(f"%{name.strip()}%"))
        query = query.order_by(Schedule.start_date.desc(), Schedule.id.desc()).offset(offset).limit(limit)
        return list(self.db.execute(query).scalars().all())

    def validate_schedule(self, schedule_uid: str) -> ValidationResult:
        return self.validator.validate(self.get_schedule(schedule_uid))

    def list_snapshots(
        self,
        schedule_uid: str,
        *,
        limit: int = 50,
        order: Literal["asc", "desc"] = "desc",
    ) -> list[ScheduleSnapshot]:
        schedule = self.get_schedule(schedule_uid)
        return snapshot_store.list_snapshots(self.db, schedule_id=schedule.id, limit=limit, order=order)

    def get_snapshot(self, snapshot_uid: str) -> ScheduleSnapshot:
        return snapshot_store.get_snapshot(self.db, snapshot_uid)

    # Helpers

    def _stamp(self, plan: PlanDocument, schedule: Schedule | None, actor: User | None) -> dict:
        stamped = plan.model_copy(deep=True)
        stamped.metadata.last_edited_by = actor.uid if actor is not None else None
        stamped.metadata.last_edited_at = utc_now()
        stamped.metadata.total_shows = len(stamped.shows)
        if schedule is not None:
            if stamped.metadata.client_name is None and schedule.client is not None:
                stamped.metadata.client_name = schedule.client.name
            if stamped.metadata.date_range is None:
                stamped.metadata.date_range = PlanDateRange(
                    start=ensure_utc(schedule.start_date), end=ensure_utc(schedule.end_date)
                )
        return stamped.to_storage()

    def _check_version(self, schedule: Schedule, expected_version: int) -> None:
        if schedule.version != expected_version:
            logger.info(
                "Version conflict on schedule %s: expected %s, found %s",
                schedule.uid,
                expected_version,
                schedule.version,
            )
            raise VersionConflictError(expected_version, schedule.version)

    def _compare_and_swap(self, schedule: Schedule, expected_version: int, **values) -> int:
        """Apply ``values`` only if the row is still at ``expected_version``; returns the new version."""
        new_version = expected_version + 1
        try:
            result = self.db.execute(
                update(Schedule)
                .where(Schedule.id == schedule.id, Schedule.version == expected_version)
                .values(version=new_version, updated_at=utc_now(), **values)
                .execution_options(synchronize_session=False)
            )
        except IntegrityError as exc:
            raise unique_violation_from_integrity_error(exc) from exc
        if result.rowcount != 1:
            current = self.db.execute(select(Schedule.version).where(Schedule.id == schedule.id)).scalar_one_or_none()
            logger.info(
                "Conditional update lost on schedule %s: expected %s, now %s",
                schedule.uid,
                expected_version,
                current,
            )
            raise VersionConflictError(expected_version, current)
        return new_version

    def _flush(self) -> None:
        try:
            self.db.flush()
        except IntegrityError as exc:
            raise unique_violation_from_integrity_error(exc) from exc

    @staticmethod
    def _check_date_range(start, end) -> None:
        if ensure_utc(end) <= ensure_utc(start):
            raise InvalidTimeRangeError(start, end, "Schedule end date must be after start date")

    @staticmethod
    def _require_editable(schedule: Schedule) -> None:
        if schedule.status == ScheduleStatus.published:
            raise InvalidStateTransitionError(
                schedule.status.value,
                ScheduleStatus.draft.value,
                "Published schedules cannot be edited",
            )

    # Mutations

    def create_schedule(self, data: ScheduleCreate, actor: User | None) -> Schedule:
        self._check_date_range(data.start_date, data.end_date)
        with run_in_transaction(self.db):
            client = resolve_one(self.db, EntityKind.client, data.client_id)
            schedule = Schedule(
                name=data.name,
                client_id=client.id,
                start_date=data.start_date,
                end_date=data.end_date,
                status=ScheduleStatus.draft,
                version=1,
                meta=data.metadata,
                created_by=actor.id if actor is not None else None,
            )
            schedule.client = client
            schedule.plan_document = self._stamp(data.plan_document or PlanDocument(), schedule, actor)
            self.db.add(schedule)
            self._flush()
            log_activity(
                self.db,
                user=actor,
                action="schedule.create",
                entity_type="schedule",
                entity_id=schedule.uid,
                details={"client_id": client.uid, "name": schedule.name},
            )
            schedule_uid = schedule.uid
        logger.info("Created schedule %s", schedule_uid)
        return self.get_schedule(schedule_uid)

    def update_schedule(self, schedule_uid: str, data: ScheduleUpdate, actor: User | None) -> Schedule:
        with run_in_transaction(self.db):
            schedule = self.get_schedule(schedule_uid)
            if data.plan_document is not None:
                self._require_editable(schedule)
            self._check_version(schedule, data.version)

            values: dict = {}
            if data.name is not None:
                values["name"] = data.name.strip()
            start = data.start_date or schedule.start_date
            end = data.end_date or schedule.end_date
            if data.start_date is not None or data.end_date is not None:
                self._check_date_range(start, end)
                values["start_date"] = start
                values["end_date"] = end
            if data.metadata is not None:
                values["meta"] = data.metadata
            snapshot_store.create_snapshot(
                self.db, schedule_id=schedule.id, reason=SnapshotReason.auto_save, actor=actor
            )
            if data.plan_document is not None:
                values["plan_document"] = self._stamp(data.plan_document, schedule, actor)

            new_version = self._compare_and_swap(schedule, data.version, **values)
            log_activity(
                self.db,
                user=actor,
                action="schedule.update",
                entity_type="schedule",
                entity_id=schedule_uid,
                details={"fields": sorted(values), "version": new_version},
            )
        return self.get_schedule(schedule_uid)

    def update_plan_document(
        self,
        schedule_uid: str,
        plan: PlanDocument,
        expected_version: int,
        actor: User | None,
    ) -> Schedule:
        """Replace the plan document. The document is stored even if it would not pass validation."""
        with run_in_transaction(self.db):
            schedule = self.get_schedule(schedule_uid)
            self._require_editable(schedule)
            self._check_version(schedule, expected_version)
            snapshot_store.create_snapshot(
                self.db, schedule_id=schedule.id, reason=SnapshotReason.auto_save, actor=actor
            )
            new_version = self._compare_and_swap(
                schedule, expected_version, plan_document=self._stamp(plan, schedule, actor)
            )
            log_activity(
                self.db,
                user=actor,
                action="schedule.plan_document.update",
                entity_type="schedule",
                entity_id=schedule_uid,
                details={"total_shows": len(plan.shows), "version": new_version},
            )
        return self.get_schedule(schedule_uid)

    def publish_schedule(self, schedule_uid: str, expected_version: int, actor: User | None) -> tuple[Schedule, int]:
        with run_in_transaction(self.db):
            schedule = self.get_schedule(schedule_uid)
            if schedule.status != ScheduleStatus.draft:
                raise InvalidStateTransitionError(
                    schedule.status.value,
                    ScheduleStatus.published.value,
                    f"Only draft schedules can be published; schedule is {schedule.status.value}",
                )
            self._check_version(schedule, expected_version)

            result = self.validator.validate(schedule)
            if not result.is_valid:
                raise ValidationFailedError(
                    [error.model_dump(mode="json", by_alias=True, exclude_none=True) for error in result.errors]
                )

            snapshot_store.create_snapshot(
                self.db, schedule_id=schedule.id, reason=SnapshotReason.pre_publish, actor=actor
            )
            new_version = self._compare_and_swap(
                schedule,
                expected_version,
                status=ScheduleStatus.published,
                published_at=utc_now(),
                published_by=actor.id if actor is not None else None,
            )

            plan = parse_plan_document(schedule.plan_document)
            for item in plan.shows:
                self.shows.materialize_plan_item(schedule, item)
            shows_created = len(plan.shows)

            log_activity(
                self.db,
                user=actor,
                action="schedule.publish",
                entity_type="schedule",
                entity_id=schedule_uid,
                details={"version": new_version, "shows_created": shows_created},
            )
        logger.info("Published schedule %s at version %s with %d show(s)", schedule_uid, new_version, shows_created)
        return self.get_schedule(schedule_uid), shows_created

    def _transition(
        self,
        schedule_uid: str,
        expected_version: int,
        actor: User | None,
        *,
        source: ScheduleStatus,
        target: ScheduleStatus,
    ) -> Schedule:
        with run_in_transaction(self.db):
            schedule = self.get_schedule(schedule_uid)
            if schedule.status != source:
                raise InvalidStateTransitionError(schedule.status.value, target.value)
            self._check_version(schedule, expected_version)
            snapshot_store.create_snapshot(
                self.db, schedule_id=schedule.id, reason=SnapshotReason.auto_save, actor=actor
            )
            new_version = self._compare_and_swap(schedule, expected_version, status=target)
            log_activity(
                self.db,
                user=actor,
                action=f"schedule.status.{target.value}",
                entity_type="schedule",
                entity_id=schedule_uid,
                details={"from": source.value, "to": target.value, "version": new_version},
            )
        return self.get_schedule(schedule_uid)

    def submit_for_review(self, schedule_uid: str, expected_version: int, actor: User | None) -> Schedule:
        return self._transition(
            schedule_uid, expected_version, actor, source=ScheduleStatus.draft, target=ScheduleStatus.review
        )

    def return_to_draft(self, schedule_uid: str, expected_version: int, actor: User | None) -> Schedule:
        return self._transition(
            schedule_uid, expected_version, actor, source=ScheduleStatus.review, target=ScheduleStatus.draft
        )

    def duplicate_schedule(self, schedule_uid: str, new_name: str, actor: User | None) -> Schedule:
        with run_in_transaction(self.db):
            source = self.get_schedule(schedule_uid)
            plan = parse_plan_document(copy.deepcopy(source.plan_document))
            for show in plan.shows:
                show.temp_id = generate_uid(TEMP_ID_PREFIX)

            duplicate = Schedule(
                name=new_name.strip(),
                client_id=source.client_id,
                start_date=source.start_date,
                end_date=source.end_date,
                status=ScheduleStatus.draft,
                version=1,
                meta=copy.deepcopy(source.meta or {}),
                created_by=actor.id if actor is not None else None,
            )
            duplicate.client = source.client
            duplicate.plan_document = self._stamp(plan, duplicate, actor)
            self.db.add(duplicate)
            self._flush()
            log_activity(
                self.db,
                user=actor,
                action="schedule.duplicate",
                entity_type="schedule",
                entity_id=duplicate.uid,
                details={"source_id": schedule_uid},
            )
            duplicate_uid = duplicate.uid
        logger.info("Duplicated schedule %s into %s", schedule_uid, duplicate_uid)
        return self.get_schedule(duplicate_uid)

    def create_manual_snapshot(self, schedule_uid: str, actor: User | None) -> ScheduleSnapshot:
        with run_in_transaction(self.db):
            schedule = self.get_schedule(schedule_uid)
            snapshot = snapshot_store.create_snapshot(
                self.db, schedule_id=schedule.id, reason=SnapshotReason.manual, actor=actor
            )
            log_activity(
                self.db,
                user=actor,
                action="schedule.snapshot.create",
                entity_type="schedule",
                entity_id=schedule_uid,
                details={"snapshot_id": snapshot.uid, "version": snapshot.version},
            )
            snapshot_uid = snapshot.uid
        return self.get_snapshot(snapshot_uid)

    def restore_from_snapshot(self, snapshot_uid: str, expected_version: int, actor: User | None) -> Schedule:
        with run_in_transaction(self.db):
            snapshot = self.get_snapshot(snapshot_uid)
            schedule = self.db.execute(
                select(Schedule).where(Schedule.id == snapshot.schedule_id, Schedule.deleted_at.is_(None))
            ).scalar_one_or_none()
            if schedule is None:
                raise NotFoundError(SCHEDULE_ENTITY, str(snapshot.schedule_id))
            self._require_editable(schedule)
            self._check_version(schedule, expected_version)

            snapshot_store.create_snapshot(
                self.db, schedule_id=schedule.id, reason=SnapshotReason.before_restore, actor=actor
            )
            restored = parse_plan_document(copy.deepcopy(snapshot.plan_document))
            new_version = self._compare_and_swap(
                schedule, expected_version, plan_document=self._stamp(restored, schedule, actor)
            )
            log_activity(
                self.db,
                user=actor,
                action="schedule.snapshot.restore",
                entity_type="schedule",
                entity_id=schedule.uid,
                details={"snapshot_id": snapshot_uid, "restored_version": snapshot.version, "version": new_version},
            )
            schedule_uid = schedule.uid
        logger.info("Restored schedule %s from snapshot %s", schedule_uid, snapshot_uid)
        return self.get_schedule(schedule_uid)

    def delete_schedule(self, schedule_uid: str, actor: User | None) -> None:
        with run_in_transaction(self.db):
            schedule = self.get_schedule(schedule_uid)
            if schedule.status == ScheduleStatus.published:
                raise InvalidStateTransitionError(
                    schedule.status.value, "deleted", "Published schedules cannot be deleted"
                )
            schedule.deleted_at = utc_now()
            log_activity(self.db, user=actor, action="schedule.delete", entity_type="schedule", entity_id=schedule_uid)
        logger.info("Deleted schedule %s", schedule_uid)
